"""
Configuration module for the Viz Insight backend.
Centralizes environment variables, logging setup, and constants.
"""
import os
import logging
from pathlib import Path
from dotenv import load_dotenv

# Load .env file for local development
load_dotenv()

# ============================================================================
# Environment Configuration
# ============================================================================

# Environment identifier (production, staging, development, etc.)
ENVIRONMENT = os.environ.get("ENVIRONMENT", "production")

PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Directory for client-local persistent state (daily message counters)
DATA_DIR = Path(os.environ.get("VIZ_DATA_DIR", str(PROJECT_ROOT / "data")))

# ============================================================================
# External Service Configuration
# ============================================================================

# Schema service used to decide whether a user has any backing tables
SCHEMA_SERVICE_URL = os.environ.get(
    "VIZ_SCHEMA_URL",
    "https://viz-fetch-schema-286070583332.us-central1.run.app",
)

# Edge function names
INFERENCE_FUNCTION = "inference"
CHART_FUNCTION = "generate-chart"
HEALTH_FUNCTION = "health-check"

# Timeout (seconds) for a single upstream HTTP request
REQUEST_TIMEOUT = float(os.environ.get("VIZ_REQUEST_TIMEOUT", "30"))

# ============================================================================
# Retry Configuration
# ============================================================================

RETRY_ATTEMPTS = int(os.environ.get("VIZ_RETRY_ATTEMPTS", "2"))
RETRY_DELAY = float(os.environ.get("VIZ_RETRY_DELAY", "1.0"))
RETRY_BACKOFF = float(os.environ.get("VIZ_RETRY_BACKOFF", "2.0"))
RETRY_MAX_DELAY = float(os.environ.get("VIZ_RETRY_MAX_DELAY", "8.0"))

# ============================================================================
# Rate Limiting
# ============================================================================

DAILY_MESSAGE_LIMIT = int(os.environ.get("VIZ_DAILY_MESSAGE_LIMIT", "5"))
MESSAGE_COUNT_KEY_PREFIX = "chatMessageCount"

# ============================================================================
# Chart Mounting
# ============================================================================

# Loaded in this order, each at most once per document
CHART_LIBRARY_URLS = [
    "https://cdn.jsdelivr.net/npm/chart.js",
    "https://cdn.jsdelivr.net/npm/chartjs-plugin-datalabels@2",
]

CHART_CONTAINER_ID = "chartContainer"
CHART_CANVAS_ID = "myChart"

# Helper nodes Chart.js leaves behind outside the canvas
CHART_HELPER_CLASSES = [
    "chartjs-size-monitor",
    "chartjs-size-monitor-expand",
    "chartjs-size-monitor-shrink",
    "chartjs-render-monitor",
    "chartjs-tooltip",
]

# Server-supplied chart scripts are only emitted into the page when enabled
ALLOW_OPAQUE_CHART_SCRIPTS = os.environ.get(
    "VIZ_ALLOW_OPAQUE_CHART_SCRIPTS", "true"
).lower() in ("1", "true", "yes")

# ============================================================================
# Logging Configuration
# ============================================================================

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# ============================================================================
# Application Constants
# ============================================================================

# Tabs of the insight screen
ANSWER_TAB = "answer"
SQL_TAB = "sql"
CHARTS_TAB = "charts"
TABS = (ANSWER_TAB, SQL_TAB, CHARTS_TAB)

# Where toasts send the user
ADD_DATA_PATH = "/data-control"
CONTACT_SALES_PATH = "/contact"

# Sample quick queries shown next to the chat input
QUICK_QUERIES = [
    "Which SKUs are at risk of stockout this week?",
    "Show top 10 slow-moving items by location",
    "Inventory turns by category for the last 12 months",
    "Suggest reorder quantities for items below ROP",
]
