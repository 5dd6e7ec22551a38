"""
Daily message limiter.

Counts questions per user per calendar day in a LocalStore. The key
embeds the date, so the counter resets implicitly at midnight; old keys
are abandoned rather than deleted. The upstream service enforces its own
limit (HTTP 429), this counter only saves a round-trip.
"""
import logging
from datetime import date
from typing import Callable, Optional

from viz.config import DAILY_MESSAGE_LIMIT, MESSAGE_COUNT_KEY_PREFIX
from viz.models.rate_limit import RateLimitCounter
from viz.utils.local_store import LocalStore

logger = logging.getLogger(__name__)


def message_count_key(user_id: str, day: date) -> str:
    """Build the storage key, e.g. chatMessageCount:<user>:2026-10-19."""
    return f"{MESSAGE_COUNT_KEY_PREFIX}:{user_id}:{day.isoformat()}"


class DailyMessageLimiter:
    def __init__(
        self,
        store: LocalStore,
        user_id: str,
        max_messages: int = DAILY_MESSAGE_LIMIT,
        today: Optional[Callable[[], date]] = None,
    ):
        self.store = store
        self.user_id = user_id
        self.max_messages = max_messages
        self._today = today or date.today

    @property
    def scope_key(self) -> str:
        return message_count_key(self.user_id, self._today())

    def current(self) -> RateLimitCounter:
        key = self.scope_key
        raw = self.store.get_item(key)
        try:
            count = max(int(raw), 0) if raw is not None else 0
        except ValueError:
            logger.warning(f"Ignoring corrupt message counter {key}={raw!r}")
            count = 0
        return RateLimitCounter(scope_key=key, count=count, max=self.max_messages)

    def is_exhausted(self) -> bool:
        return self.current().exhausted

    def increment(self) -> RateLimitCounter:
        """Count one message; the stored value never exceeds the limit."""
        counter = self.current()
        counter.count = min(counter.count + 1, counter.max)
        self.store.set_item(counter.scope_key, str(counter.count))
        logger.info(f"Message count for {self.user_id}: {counter.count}/{counter.max}")
        return counter
