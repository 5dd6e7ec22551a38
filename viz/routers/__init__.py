"""
API routers for endpoint organization.
"""
from .health import router as health_router
from .insight import router as insight_router

__all__ = [
    "health_router",
    "insight_router",
]
