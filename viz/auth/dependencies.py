"""
FastAPI authentication dependencies.

Provides dependency injection for authenticated endpoints.
"""
import logging
from typing import Optional

from fastapi import Header

from viz.auth.exceptions import AuthenticationError
from viz.auth.jwt import session_from_token
from viz.models.session import UserSession

logger = logging.getLogger(__name__)


def extract_token(authorization: Optional[str]) -> str:
    """
    Extract the JWT token from Authorization header.

    Raises:
        AuthenticationError: If header is missing or malformed
    """
    if not authorization:
        raise AuthenticationError("Authorization header required")

    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthenticationError("Invalid authorization header format. Use: Bearer <token>")

    return parts[1]


async def get_current_user(authorization: Optional[str] = Header(None)) -> UserSession:
    """
    Verify the bearer token locally and return the caller's identity.

    The token is passed on to Supabase when the orchestrator resolves the
    session, so revoked tokens are still caught there.
    """
    return session_from_token(extract_token(authorization))
