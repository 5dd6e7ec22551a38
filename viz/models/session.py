"""
Session and chat history models.
"""
from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel


class UserSession(BaseModel):
    """An active Supabase session for one user."""
    user_id: str
    email: Optional[str] = None
    access_token: str


class ChatSessionRecord(BaseModel):
    """One row of the chat_sessions history table."""
    id: Optional[str] = None
    user_id: Optional[str] = None
    prompt: str
    answer: Optional[str] = None
    sql_query: Optional[str] = None
    chart_code: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
