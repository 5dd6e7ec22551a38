"""
Utility modules shared by services and routers.
"""
from viz.utils.retry import RetryResult, fetch_with_retry, backoff_delay
from viz.utils.local_store import LocalStore, InMemoryStore, JsonFileStore
from viz.utils.generation import GenerationCounter

__all__ = [
    "RetryResult",
    "fetch_with_retry",
    "backoff_delay",
    "LocalStore",
    "InMemoryStore",
    "JsonFileStore",
    "GenerationCounter",
]
