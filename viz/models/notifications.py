"""
Toast and dialog models shown to the dashboard user.
"""
from typing import Literal, Optional
from pydantic import BaseModel


class ToastAction(BaseModel):
    """Link rendered as the action button of a toast."""
    label: str
    href: str


class ToastPayload(BaseModel):
    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"
    action: Optional[ToastAction] = None
