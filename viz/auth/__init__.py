"""
Authentication module for the Viz Insight backend.

Provides Supabase JWT verification and session resolution.
"""

from viz.auth.config import (
    SUPABASE_URL,
    SUPABASE_ANON_KEY,
    SUPABASE_JWT_SECRET,
    FRONTEND_URL,
)
from viz.auth.exceptions import (
    AuthenticationError,
    InvalidTokenError,
    TokenExpiredError,
    NoActiveSessionError,
)
from viz.auth.dependencies import get_current_user
from viz.auth.supabase_client import SupabaseAuthClient

__all__ = [
    # Config
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "SUPABASE_JWT_SECRET",
    "FRONTEND_URL",
    # Exceptions
    "AuthenticationError",
    "InvalidTokenError",
    "TokenExpiredError",
    "NoActiveSessionError",
    # Dependencies
    "get_current_user",
    "SupabaseAuthClient",
]
