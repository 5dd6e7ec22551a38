"""
Translate upstream errors into user-facing toasts.

Only mapped, human-readable summaries leave this module; technical error
text is logged, never shown.
"""
import asyncio
import json
import logging
from typing import Optional

from viz.config import CONTACT_SALES_PATH
from viz.exceptions import VizException
from viz.models.notifications import ToastAction, ToastPayload
from viz.services.functions_client import FunctionsFetchError, FunctionsHttpError

logger = logging.getLogger(__name__)

DAILY_LIMIT_TITLE = "Daily limit reached"
REQUEST_FAILED_TITLE = "Request failed"


def _response_details(error: FunctionsHttpError) -> str:
    """Surface a concise message from an error response body."""
    body = error.body or ""
    if "application/json" in (error.content_type or ""):
        try:
            payload = json.loads(body)
        except ValueError:
            return body
        if isinstance(payload, dict):
            if payload.get("error"):
                err = payload["error"]
                return err if isinstance(err, str) else json.dumps(err)
            if payload.get("message"):
                return str(payload["message"])
        return json.dumps(payload)
    return body


def _destructive(title: str, description: str, action: Optional[ToastAction] = None) -> ToastPayload:
    return ToastPayload(title=title, description=description, variant="destructive", action=action)


def map_error_to_toast(error: Optional[BaseException]) -> ToastPayload:
    """Map any error raised while talking to the backend to a toast."""
    if isinstance(error, VizException):
        return error.toast

    if isinstance(error, FunctionsHttpError):
        status_code = error.status_code
        if status_code == 401:
            return _destructive("Sign in required", "You are signed out. Please sign in to continue.")
        if status_code == 403:
            return _destructive(
                "Access restricted",
                "This feature is limited to admins. Contact your admin if you need access.",
            )
        if status_code == 429:
            return _destructive(
                DAILY_LIMIT_TITLE,
                "You have reached today's 5-message limit. Try again tomorrow. "
                "Tip: combine related questions in one message.",
                ToastAction(label="Contact Sales", href=CONTACT_SALES_PATH),
            )
        if status_code == 502:
            details = _response_details(error)
            return _destructive(
                "Service unavailable",
                "Our analytics service is temporarily unavailable. Please try again in a minute."
                + (f" ({details})" if details else ""),
            )
        if status_code == 504:
            return _destructive(
                "Request timed out",
                "The data source took too long. Try narrowing your question (e.g., last 30 days, one metric).",
            )
        details = _response_details(error)
        return _destructive(REQUEST_FAILED_TITLE, details or "The server returned an error. Please try again.")

    # No response: network/offline or generic error
    if isinstance(error, asyncio.TimeoutError) or (isinstance(error, FunctionsFetchError) and error.timed_out):
        return _destructive("Request timed out", "The data source took too long. Try narrowing your question.")

    message = str(error or "").lower()
    if isinstance(error, FunctionsFetchError) or any(
        hint in message for hint in ("failed to fetch", "network", "cors", "connect")
    ):
        return _destructive(
            "Unable to reach API",
            "Please check your internet connection and Supabase URL, then retry.",
        )

    logger.error(f"Unmapped error shown as generic toast: {error!r}")
    return _destructive("Something went wrong", "Please try again.")


def is_rate_limit_toast(toast: ToastPayload) -> bool:
    return toast.title == DAILY_LIMIT_TITLE
