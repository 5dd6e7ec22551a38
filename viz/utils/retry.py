"""
Retry helper for upstream calls.

fetch_with_retry never raises: callers branch on the returned
(data, error) pair instead of wrapping every call in try/except.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, NamedTuple, Optional

from viz.config import RETRY_ATTEMPTS, RETRY_DELAY, RETRY_BACKOFF, RETRY_MAX_DELAY

logger = logging.getLogger(__name__)


class RetryResult(NamedTuple):
    data: Any
    error: Optional[BaseException]

    @property
    def ok(self) -> bool:
        return self.error is None


def backoff_delay(attempt: int, delay: float, backoff: float, max_delay: float) -> float:
    """Seconds to wait after the given zero-based failed attempt."""
    return min(delay * (backoff ** attempt), max_delay)


async def fetch_with_retry(
    operation: Callable[[], Awaitable[Any]],
    retries: Optional[int] = None,
    delay: Optional[float] = None,
    backoff: Optional[float] = None,
    max_delay: Optional[float] = None,
    retry_on: Optional[Callable[[BaseException], bool]] = None,
    attempt_timeout: Optional[float] = None,
) -> RetryResult:
    """
    Run an async operation, retrying failures with exponential backoff.

    An attempt fails when the operation raises, times out, or returns a
    result with a truthy .error (such as a RetryResult). Up to `retries`
    additional attempts are made, sleeping
    min(delay * backoff**attempt, max_delay) in between. A backoff of 1.0
    gives a fixed delay.

    Args:
        operation: Zero-argument coroutine factory
        retries: Additional attempts after the first one
        delay: Base delay in seconds
        backoff: Multiplier applied per attempt
        max_delay: Upper bound on a single wait
        retry_on: Predicate deciding whether an error is worth retrying.
            Errors it rejects end the loop immediately.
        attempt_timeout: Per-attempt timeout in seconds

    Returns:
        RetryResult(data, None) on success, RetryResult(None, last_error) otherwise
    """
    retries = RETRY_ATTEMPTS if retries is None else retries
    delay = RETRY_DELAY if delay is None else delay
    backoff = RETRY_BACKOFF if backoff is None else backoff
    max_delay = RETRY_MAX_DELAY if max_delay is None else max_delay

    last_error: Optional[BaseException] = None

    for attempt in range(retries + 1):
        try:
            if attempt_timeout is not None:
                result = await asyncio.wait_for(operation(), timeout=attempt_timeout)
            else:
                result = await operation()
            # Supabase-style results report failures in .error instead of raising
            error = getattr(result, "error", None)
            if not error:
                return result if isinstance(result, RetryResult) else RetryResult(result, None)
            last_error = error if isinstance(error, BaseException) else RuntimeError(str(error))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            last_error = e

        if retry_on is not None and not retry_on(last_error):
            logger.info(f"Not retrying {type(last_error).__name__}: {last_error}")
            break

        if attempt < retries:
            wait = backoff_delay(attempt, delay, backoff, max_delay)
            logger.warning(
                f"Attempt {attempt + 1}/{retries + 1} failed ({type(last_error).__name__}), "
                f"retrying in {wait:.1f}s"
            )
            await asyncio.sleep(wait)

    return RetryResult(None, last_error)
