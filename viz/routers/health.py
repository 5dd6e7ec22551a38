"""
Health check router with upstream connectivity verification.
"""
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from viz.dependencies import get_upstream_transport
from viz.services.functions_client import SupabaseFunctionsClient
from viz.services.health_service import ApiStatus, check_api_connection

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check():
    """Liveness probe; does not touch upstream services."""
    return {"status": "healthy", "service": "viz-insight"}


@router.get("/health/upstream")
async def upstream_status():
    """Check the health-check edge function.

    Returns 200 when the API answers {"status": "ok"}.
    Returns 503 when it cannot be reached after retries.
    """
    functions = SupabaseFunctionsClient(transport=get_upstream_transport())
    status = await check_api_connection(functions)
    if status == ApiStatus.ONLINE:
        return {"status": "healthy", "service": "viz-insight", "api": status.value}
    return JSONResponse(
        status_code=503,
        content={"status": "unhealthy", "service": "viz-insight", "api": status.value}
    )
