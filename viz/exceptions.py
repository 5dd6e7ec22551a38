"""
Custom exception classes and error handling.

This module provides custom exceptions and utilities for consistent
error handling across the application. Every exception carries the toast
the dashboard shows for it, so no raw error text reaches the user.
"""
import logging
from typing import Any, Dict, Optional
from fastapi import Request, status
from fastapi.responses import JSONResponse

from viz.config import ADD_DATA_PATH, CONTACT_SALES_PATH
from viz.models.notifications import ToastAction, ToastPayload

logger = logging.getLogger(__name__)


class VizException(Exception):
    """Base exception for all Viz-specific errors."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        toast: Optional[ToastPayload] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.toast = toast or ToastPayload(
            title="Something went wrong",
            description="Please try again.",
            variant="destructive",
        )
        super().__init__(self.message)


class ValidationError(VizException):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        toast: Optional[ToastPayload] = None,
    ):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details, toast)
        self.field = field


class EmptyPromptError(ValidationError):
    """Raised when a question is empty or whitespace only."""

    def __init__(self):
        super().__init__(
            "Empty prompt",
            field="prompt",
            toast=ToastPayload(
                title="Empty prompt",
                description="Please enter a question or request",
                variant="destructive",
            ),
        )


class InvalidTabError(ValidationError):
    """Raised when an unknown tab is activated."""

    def __init__(self, tab: str):
        super().__init__(f"Unknown tab: {tab}", field="tab")
        self.tab = tab


class QueryInFlightError(VizException):
    """Raised when a second question is submitted while one is still running."""

    def __init__(self):
        super().__init__(
            "A query is already in progress",
            status.HTTP_409_CONFLICT,
            toast=ToastPayload(
                title="Query in progress",
                description="Please wait for the current answer before asking again.",
            ),
        )


class DailyLimitReachedError(VizException):
    """Raised when the local daily message counter is exhausted."""

    def __init__(self, count: int, limit: int):
        super().__init__(
            "Daily message limit reached",
            status.HTTP_429_TOO_MANY_REQUESTS,
            details={"count": count, "limit": limit, "source": "local"},
            toast=ToastPayload(
                title="Daily limit reached",
                description=f"You have used all {limit} messages for today. Try again tomorrow.",
                action=ToastAction(label="Contact Sales", href=CONTACT_SALES_PATH),
            ),
        )
        self.count = count
        self.limit = limit


class RemoteRateLimitError(VizException):
    """Raised when an upstream function answers HTTP 429."""

    def __init__(self, toast: ToastPayload):
        super().__init__(
            "Upstream rate limit reached",
            status.HTTP_429_TOO_MANY_REQUESTS,
            details={"source": "remote", "show_limit_dialog": True},
            toast=toast,
        )


class NoDataSourceError(VizException):
    """Raised when the user has no tables to query."""

    def __init__(self):
        super().__init__(
            "No data source connected",
            status.HTTP_412_PRECONDITION_FAILED,
            toast=ToastPayload(
                title="No Data Source Connected",
                description="Please add a data source before making a query.",
                action=ToastAction(label="Add Data", href=ADD_DATA_PATH),
            ),
        )


class QueryFailedError(VizException):
    """Raised when the inference call fails after retries."""

    def __init__(self, toast: ToastPayload, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            "Query failed",
            status.HTTP_502_BAD_GATEWAY,
            details=details,
            toast=toast,
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def viz_exception_handler(request: Request, exc: VizException) -> JSONResponse:
    """Handle VizException instances."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.message,
            "details": exc.details,
            "toast": exc.toast.model_dump(),
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions without leaking internals to the user."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "details": {},
            "toast": ToastPayload(
                title="Something went wrong",
                description="Please try again.",
                variant="destructive",
            ).model_dump(),
        }
    )


def register_exception_handlers(app):
    """
    Register all custom exception handlers with the FastAPI app.

    Call this during app initialization:
        from viz.exceptions import register_exception_handlers
        register_exception_handlers(app)
    """
    app.add_exception_handler(VizException, viz_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
