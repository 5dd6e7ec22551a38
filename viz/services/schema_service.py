"""
Data access check against the schema service.
"""
import logging
from typing import Optional
import httpx

from viz.config import REQUEST_TIMEOUT, SCHEMA_SERVICE_URL

logger = logging.getLogger(__name__)


class SchemaService:
    """Answers whether a user has any tables the assistant can query."""

    def __init__(
        self,
        url: str = SCHEMA_SERVICE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self._transport = transport

    async def has_tables(self, email: Optional[str]) -> bool:
        """Any failure counts as no access."""
        if not email:
            return False
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=REQUEST_TIMEOUT) as client:
                response = await client.post(self.url, json={"email": email})
            if response.status_code != 200:
                logger.warning(f"Schema service returned {response.status_code} for {email}")
                return False
            schema = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error checking data access: {e}")
            return False

        tables = schema.get("tables") if isinstance(schema, dict) else None
        return isinstance(tables, list) and len(tables) > 0
