"""
Pydantic models for the Viz Insight API.
"""
from viz.models.notifications import ToastAction, ToastPayload
from viz.models.chart import ChartKind, ChartDataset, ChartPayload
from viz.models.rate_limit import RateLimitCounter
from viz.models.query import (
    QueryRequest,
    QueryResult,
    QueryResponse,
    TabRequest,
    InsightStateResponse,
)
from viz.models.session import UserSession, ChatSessionRecord

__all__ = [
    "ToastAction",
    "ToastPayload",
    "ChartKind",
    "ChartDataset",
    "ChartPayload",
    "RateLimitCounter",
    "QueryRequest",
    "QueryResult",
    "QueryResponse",
    "TabRequest",
    "InsightStateResponse",
    "UserSession",
    "ChatSessionRecord",
]
