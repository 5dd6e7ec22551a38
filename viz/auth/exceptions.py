"""
Authentication exceptions.
"""
from typing import Any, Dict, Optional
from fastapi import status

from viz.exceptions import VizException
from viz.models.notifications import ToastPayload

SIGN_IN_TOAST = ToastPayload(
    title="Sign in required",
    description="You are signed out. Please sign in to continue.",
    variant="destructive",
)


class AuthenticationError(VizException):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Authentication required", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED, details, SIGN_IN_TOAST)


class InvalidTokenError(AuthenticationError):
    """Raised when the provided token is invalid."""

    def __init__(self, message: str = "Invalid or malformed token", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class TokenExpiredError(AuthenticationError):
    """Raised when the token has expired."""

    def __init__(self, message: str = "Token has expired", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class NoActiveSessionError(AuthenticationError):
    """Raised when the session provider has no session for the user."""

    def __init__(self, message: str = "No active session", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
