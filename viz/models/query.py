"""
Query models.
"""
from typing import Any, List, Optional
from pydantic import BaseModel, Field

from viz.config import QUICK_QUERIES
from viz.models.chart import ChartPayload
from viz.models.notifications import ToastPayload
from viz.models.rate_limit import RateLimitCounter


class QueryRequest(BaseModel):
    prompt: str
    email: Optional[str] = None


class QueryResult(BaseModel):
    """Answer, SQL and rows produced for one question."""
    answer_text: str
    sql_text: str = ""
    raw_data: Optional[Any] = None
    chart: Optional[ChartPayload] = None
    user_query: str = ""


class QueryResponse(BaseModel):
    """Response body of POST /insight/query."""
    result: Optional[QueryResult] = None
    notices: List[ToastPayload] = Field(default_factory=list)
    show_limit_dialog: bool = False
    counter: RateLimitCounter


class TabRequest(BaseModel):
    tab: str


class InsightStateResponse(BaseModel):
    active_tab: str
    is_loading: bool
    result: Optional[QueryResult] = None
    mounter_state: str
    notices: List[ToastPayload] = Field(default_factory=list)
    show_limit_dialog: bool = False
    quick_queries: List[str] = Field(default_factory=lambda: list(QUICK_QUERIES))
