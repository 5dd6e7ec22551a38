"""
Loading of third-party chart library scripts.
"""
import logging
from typing import Optional, Protocol, Set
import httpx

from viz.config import REQUEST_TIMEOUT

logger = logging.getLogger(__name__)


class ScriptLoadError(Exception):
    """A required library script could not be loaded."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to load script {url}: {reason}")


class ScriptLoader(Protocol):
    async def load(self, url: str) -> None: ...

    def forget(self, url: str) -> None: ...


class HttpScriptLoader:
    """
    Confirms a library URL serves a script before the page references it.

    Successful URLs are remembered until forget() is called, which the
    mounter does when it removes the library from the page.
    """

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self._transport = transport
        self._timeout = timeout
        self._loaded: Set[str] = set()

    async def load(self, url: str) -> None:
        if url in self._loaded:
            return
        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=self._timeout,
                follow_redirects=True,
            ) as client:
                response = await client.get(url)
        except httpx.HTTPError as e:
            raise ScriptLoadError(url, str(e)) from e

        if response.status_code != 200:
            raise ScriptLoadError(url, f"HTTP {response.status_code}")

        self._loaded.add(url)
        logger.info(f"Loaded chart library {url}")

    def forget(self, url: str) -> None:
        self._loaded.discard(url)
