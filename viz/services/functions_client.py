"""
Supabase Edge Functions client.

Thin httpx wrapper around {SUPABASE_URL}/functions/v1/<name>, raising
typed errors so the retry helper can tell transient failures from
terminal ones.
"""
import asyncio
import logging
from typing import Any, Dict, Optional
import httpx

from viz.auth import config as auth_config
from viz.config import REQUEST_TIMEOUT

logger = logging.getLogger(__name__)


class FunctionsError(Exception):
    """Base error for edge function calls."""


class FunctionsHttpError(FunctionsError):
    """The function answered with a non-2xx status."""

    def __init__(self, name: str, status_code: int, body: str = "", content_type: str = ""):
        self.name = name
        self.status_code = status_code
        self.body = body
        self.content_type = content_type
        super().__init__(f"Edge function '{name}' returned HTTP {status_code}")


class FunctionsFetchError(FunctionsError):
    """The function could not be reached (network, DNS, timeout)."""

    def __init__(self, name: str, cause: Exception):
        self.name = name
        self.cause = cause
        self.timed_out = isinstance(cause, httpx.TimeoutException)
        super().__init__(f"Failed to reach edge function '{name}': {cause}")


def is_transient_error(error: Optional[BaseException]) -> bool:
    """True for errors worth retrying: transport failures and 5xx answers."""
    if isinstance(error, (FunctionsFetchError, httpx.TransportError, asyncio.TimeoutError)):
        return True
    status_code = response_status(error)
    return status_code is not None and status_code >= 500


def response_status(error: Optional[BaseException]) -> Optional[int]:
    if isinstance(error, FunctionsHttpError):
        return error.status_code
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    return None


class SupabaseFunctionsClient:
    """
    Client for Supabase Edge Functions.

    Example:
        client = SupabaseFunctionsClient(access_token=session.access_token)
        data = await client.invoke("inference", {"prompt": "monthly revenue?"})
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        anon_key: Optional[str] = None,
        access_token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.base_url = (base_url or auth_config.SUPABASE_URL).rstrip("/")
        self.anon_key = anon_key if anon_key is not None else auth_config.SUPABASE_ANON_KEY
        self.access_token = access_token
        self.timeout = timeout
        self._transport = transport

    def function_url(self, name: str) -> str:
        return f"{self.base_url}/functions/v1/{name}"

    def _get_headers(self, authorize: bool = True) -> Dict[str, str]:
        headers = {"apikey": self.anon_key}
        if authorize:
            headers["Authorization"] = f"Bearer {self.access_token or self.anon_key}"
        return headers

    async def invoke(
        self,
        name: str,
        body: Optional[Dict[str, Any]] = None,
        method: str = "POST",
        authorize: bool = True,
    ) -> Any:
        """
        Invoke an edge function.

        Returns:
            The decoded JSON body, or the raw text for non-JSON responses

        Raises:
            FunctionsHttpError: On non-2xx responses
            FunctionsFetchError: When the function cannot be reached
        """
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                response = await client.request(
                    method,
                    self.function_url(name),
                    headers=self._get_headers(authorize),
                    json=body if method != "GET" else None,
                )
        except httpx.HTTPError as e:
            logger.warning(f"Edge function '{name}' unreachable: {e}")
            raise FunctionsFetchError(name, e) from e

        content_type = response.headers.get("content-type", "")
        if response.status_code >= 400:
            logger.error(f"Edge function '{name}' failed: {response.status_code} - {response.text[:500]}")
            raise FunctionsHttpError(name, response.status_code, response.text, content_type)

        if "application/json" in content_type:
            try:
                return response.json()
            except ValueError:
                return response.text
        return response.text
