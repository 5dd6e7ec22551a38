"""
Service layer for business logic.
"""
from .functions_client import (
    SupabaseFunctionsClient,
    FunctionsError,
    FunctionsHttpError,
    FunctionsFetchError,
    is_transient_error,
)
from .error_messages import map_error_to_toast
from .notifications import NotificationCenter
from .rate_limiter import DailyMessageLimiter, message_count_key
from .chart_service import ChartService
from .health_service import ApiStatus, check_api_connection
from .schema_service import SchemaService
from .chat_history_service import ChatHistoryService
from .query_orchestrator import QueryOrchestrator
from .insight_surface import InsightSurface, create_insight_surface

__all__ = [
    "SupabaseFunctionsClient",
    "FunctionsError",
    "FunctionsHttpError",
    "FunctionsFetchError",
    "is_transient_error",
    "map_error_to_toast",
    "NotificationCenter",
    "DailyMessageLimiter",
    "message_count_key",
    "ChartService",
    "ApiStatus",
    "check_api_connection",
    "SchemaService",
    "ChatHistoryService",
    "QueryOrchestrator",
    "InsightSurface",
    "create_insight_surface",
]
