"""
Insight endpoints - ask questions, switch tabs and fetch the chart page.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from viz.auth.dependencies import get_current_user
from viz.dependencies import drop_surface, get_surface
from viz.models import (
    ChatSessionRecord,
    InsightStateResponse,
    QueryRequest,
    QueryResponse,
    RateLimitCounter,
    TabRequest,
    UserSession,
)
from viz.services.insight_surface import InsightSurface

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/insight", tags=["Insight"])


@router.post("/query", response_model=QueryResponse)
async def submit_query(
    request: QueryRequest,
    surface: InsightSurface = Depends(get_surface),
):
    """
    Ask one question.

    Precondition failures (empty prompt, query in flight, daily limit,
    no data source) answer with their toast and no upstream call is made.
    """
    logger.info(f"Query from {surface.orchestrator.user.user_id}: {request.prompt[:80]}")
    result = await surface.ask(request.prompt)
    notices, show_dialog = surface.notifier.drain()
    return QueryResponse(
        result=result,
        notices=notices,
        show_limit_dialog=show_dialog,
        counter=surface.orchestrator.limiter.current(),
    )


@router.put("/tab", response_model=InsightStateResponse)
async def activate_tab(
    request: TabRequest,
    surface: InsightSurface = Depends(get_surface),
):
    """Switch tabs; the charts tab mounts the chart, generating it if needed."""
    await surface.activate_tab(request.tab)
    return surface.state()


@router.get("", response_model=InsightStateResponse)
async def get_state(surface: InsightSurface = Depends(get_surface)):
    return surface.state()


@router.get("/page", response_class=HTMLResponse)
async def get_page(surface: InsightSurface = Depends(get_surface)):
    """The chart document as currently mounted."""
    return HTMLResponse(surface.render_page())


@router.get("/limit", response_model=RateLimitCounter)
async def get_limit(surface: InsightSurface = Depends(get_surface)):
    return surface.orchestrator.limiter.current()


@router.get("/history", response_model=List[ChatSessionRecord])
async def get_history(surface: InsightSurface = Depends(get_surface)):
    history = surface.orchestrator.history
    if history is None:
        return []
    return await history.list_recent()


@router.delete("")
async def close_surface(user: UserSession = Depends(get_current_user)):
    """Leave the insight screen: cancel pending results and remove the chart."""
    surface = drop_surface(user.user_id)
    if surface is not None:
        surface.close()
    return {"status": "closed"}
