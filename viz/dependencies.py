"""
FastAPI dependency injection factories.

One InsightSurface is kept per signed-in user for the lifetime of the
process; the local store and the script loader are shared.
"""
import logging
from typing import Dict, Optional
import httpx
from fastapi import Depends

from viz.auth.dependencies import get_current_user
from viz.config import DATA_DIR
from viz.models.session import UserSession
from viz.mounter import HttpScriptLoader, ScriptLoader
from viz.services.insight_surface import InsightSurface, create_insight_surface
from viz.utils.local_store import JsonFileStore, LocalStore

logger = logging.getLogger(__name__)

_surfaces: Dict[str, InsightSurface] = {}
_local_store: Optional[LocalStore] = None
_script_loader: Optional[ScriptLoader] = None
_upstream_transport: Optional[httpx.AsyncBaseTransport] = None


def set_local_store(store: Optional[LocalStore]):
    """Set the store backing the daily message counters."""
    global _local_store
    _local_store = store


def get_local_store() -> LocalStore:
    global _local_store
    if _local_store is None:
        _local_store = JsonFileStore(DATA_DIR / "local_store.json")
    return _local_store


def set_script_loader(loader: Optional[ScriptLoader]):
    global _script_loader
    _script_loader = loader


def get_script_loader() -> ScriptLoader:
    global _script_loader
    if _script_loader is None:
        _script_loader = HttpScriptLoader()
    return _script_loader


def set_upstream_transport(transport: Optional[httpx.AsyncBaseTransport]):
    """Route all upstream calls through a transport (tests use httpx.MockTransport)."""
    global _upstream_transport
    _upstream_transport = transport


def reset_surfaces():
    _surfaces.clear()


async def get_surface(user: UserSession = Depends(get_current_user)) -> InsightSurface:
    """Get the caller's surface, creating it and checking data access on first use."""
    surface = _surfaces.get(user.user_id)
    if surface is None:
        surface = create_insight_surface(
            user,
            get_local_store(),
            get_script_loader(),
            transport=_upstream_transport,
        )
        await surface.orchestrator.refresh_data_access()
        _surfaces[user.user_id] = surface
        logger.info(f"Created insight surface for {user.user_id}")
    else:
        # Tokens rotate; keep upstream calls on the latest one
        surface.orchestrator.user = user
        surface.orchestrator.functions.access_token = user.access_token
        if surface.orchestrator.history is not None:
            surface.orchestrator.history.session = user
    return surface


def drop_surface(user_id: str) -> Optional[InsightSurface]:
    return _surfaces.pop(user_id, None)


def get_upstream_transport() -> Optional[httpx.AsyncBaseTransport]:
    return _upstream_transport
