"""
Chat history stored in the chat_sessions table (Supabase REST).
"""
import logging
from datetime import datetime, timezone
from typing import Any, List, Optional
import httpx
from pydantic import ValidationError

from viz.auth import config as auth_config
from viz.config import REQUEST_TIMEOUT
from viz.models.session import ChatSessionRecord, UserSession

logger = logging.getLogger(__name__)


class ChatHistoryService:
    TABLE = "chat_sessions"

    def __init__(
        self,
        session: UserSession,
        base_url: Optional[str] = None,
        anon_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.session = session
        self.base_url = f"{(base_url or auth_config.SUPABASE_URL).rstrip('/')}/rest/v1"
        self.anon_key = anon_key if anon_key is not None else auth_config.SUPABASE_ANON_KEY
        self._transport = transport

    def _get_headers(self) -> dict:
        return {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {self.session.access_token}",
            "Content-Type": "application/json",
        }

    async def list_recent(self, limit: int = 10) -> List[ChatSessionRecord]:
        """Most recent sessions first; errors are logged and yield an empty list."""
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=REQUEST_TIMEOUT) as client:
                response = await client.get(
                    f"{self.base_url}/{self.TABLE}",
                    headers=self._get_headers(),
                    params={"select": "*", "order": "created_at.desc", "limit": str(limit)},
                )
            response.raise_for_status()
            rows = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error loading sessions: {e}")
            return []

        if not isinstance(rows, list):
            logger.warning(f"Unexpected sessions payload: {type(rows).__name__}")
            return []

        records = []
        for row in rows:
            if not isinstance(row, dict):
                continue
            try:
                records.append(ChatSessionRecord(**row))
            except ValidationError as e:
                logger.warning(f"Skipping malformed chat session {row.get('id')!r}: {e}")
        return records

    async def record(
        self,
        prompt: str,
        answer: str,
        sql_query: str,
        data: Any = None,
        chart_code: Optional[str] = None,
    ) -> Optional[ChatSessionRecord]:
        """Insert one exchange. Best effort: failures are logged and return None."""
        row = {
            "user_id": self.session.user_id,
            "prompt": prompt,
            "answer": answer,
            "sql_query": sql_query,
            "chart_code": chart_code,
            "metadata": {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "data": data,
                "user_query": prompt,
                "chart_generated": chart_code is not None,
            },
        }
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=REQUEST_TIMEOUT) as client:
                response = await client.post(
                    f"{self.base_url}/{self.TABLE}",
                    headers={**self._get_headers(), "Prefer": "return=representation"},
                    json=row,
                )
            response.raise_for_status()
            created = response.json()
            if isinstance(created, list):
                created = created[0] if created else None
            return ChatSessionRecord(**created) if isinstance(created, dict) else None
        except (httpx.HTTPError, ValidationError, ValueError) as e:
            logger.warning(f"Could not save chat session: {e}")
            return None
