"""
Supabase Auth client wrapper.

Resolves the active session for an access token.
"""
import logging
from typing import Dict, Optional
import httpx

from viz.auth import config
from viz.auth.exceptions import NoActiveSessionError
from viz.config import REQUEST_TIMEOUT
from viz.models.session import UserSession

logger = logging.getLogger(__name__)


class SupabaseAuthClient:
    """
    Client for the Supabase Auth API.

    Acts as the session provider of the query orchestrator: a session
    exists when Supabase accepts the user's access token.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        anon_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = f"{base_url or config.SUPABASE_URL}/auth/v1"
        self.anon_key = anon_key if anon_key is not None else config.SUPABASE_ANON_KEY
        self._transport = transport

    def _get_headers(self, access_token: str) -> Dict[str, str]:
        """Get headers for Supabase API requests."""
        return {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }

    async def get_session(self, access_token: Optional[str]) -> UserSession:
        """
        Resolve the session behind an access token.

        Raises:
            NoActiveSessionError: If there is no token or Supabase rejects it
            httpx.HTTPError: On transport failures (retryable)
        """
        if not access_token:
            raise NoActiveSessionError()

        async with httpx.AsyncClient(transport=self._transport, timeout=REQUEST_TIMEOUT) as client:
            response = await client.get(
                f"{self.base_url}/user",
                headers=self._get_headers(access_token),
            )

        if response.status_code in (401, 403):
            logger.info("Supabase rejected access token")
            raise NoActiveSessionError()
        response.raise_for_status()

        user = response.json()
        return UserSession(
            user_id=user["id"],
            email=user.get("email"),
            access_token=access_token,
        )
