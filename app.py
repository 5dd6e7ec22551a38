import os
import logging
from contextlib import asynccontextmanager
from dotenv import load_dotenv
load_dotenv()  # Load .env file for local development

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from viz.auth.config import FRONTEND_URL, SUPABASE_URL
from viz.config import DATA_DIR, ENVIRONMENT
from viz.dependencies import reset_surfaces
from viz.exceptions import register_exception_handlers
from viz.routers import health_router, insight_router

logger = logging.getLogger(__name__)

if not SUPABASE_URL:
    logger.warning("SUPABASE_URL is not set; upstream calls will fail")
elif "supabase.com/dashboard" in SUPABASE_URL:
    # A dashboard link instead of the project API URL is a common mistake
    logger.warning(f"SUPABASE_URL looks like a dashboard URL: {SUPABASE_URL}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle - prepare local storage on startup."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    logger.info(f"Viz Insight starting ({ENVIRONMENT}), data dir {DATA_DIR}")
    yield
    # Cleanup on shutdown
    reset_surfaces()

app = FastAPI(title="Viz Insight", lifespan=lifespan)

# CORS middleware for the dashboard frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[FRONTEND_URL] if ENVIRONMENT == "production" else ["*"],
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    allow_credentials=True,
)

register_exception_handlers(app)

app.include_router(health_router)
app.include_router(insight_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", 8080)))
