"""
Upstream API connectivity check.
"""
import logging
from enum import Enum
from typing import Any, Dict, Optional

from viz.config import HEALTH_FUNCTION
from viz.models.notifications import ToastPayload
from viz.services.functions_client import FunctionsError, SupabaseFunctionsClient
from viz.services.notifications import NotificationCenter
from viz.utils.retry import fetch_with_retry

logger = logging.getLogger(__name__)


class ApiStatus(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"


def _is_ok(data: Any) -> bool:
    return isinstance(data, dict) and data.get("status") == "ok"


async def check_api_connection(
    functions: SupabaseFunctionsClient,
    notifier: Optional[NotificationCenter] = None,
    retry_options: Optional[Dict[str, Any]] = None,
) -> ApiStatus:
    """
    Check the health-check function.

    Tries the authorized invoke with retries first, then a single direct
    GET carrying only the anon key (the function may reject unknown
    bearer tokens). Reports a toast when both fail.
    """
    options = {"retries": 2, "delay": 1.0, **(retry_options or {})}
    result = await fetch_with_retry(
        lambda: functions.invoke(HEALTH_FUNCTION, method="GET"),
        **options,
    )
    if result.ok and _is_ok(result.data):
        return ApiStatus.ONLINE

    try:
        data = await functions.invoke(HEALTH_FUNCTION, method="GET", authorize=False)
        if _is_ok(data):
            return ApiStatus.ONLINE
    except FunctionsError as e:
        logger.warning(f"Direct health check failed: {e}")

    if notifier is not None:
        notifier.toast(ToastPayload(
            title="Connection Error",
            description="Unable to connect to the API. Please check your environment URL and try again.",
            variant="destructive",
        ))
    return ApiStatus.OFFLINE
