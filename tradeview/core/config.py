import os
import logging

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Initialize
load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid value for %s=%r, using %s", name, raw, default)
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid value for %s=%r, using %s", name, raw, default)
        return default


def _env_positive_float(name: str, default: float) -> float:
    value = _env_float(name, default)
    if value <= 0:
        logger.warning("%s must be positive, got %s, using %s", name, value, default)
        return default
    return value


API_BASE_URL = os.getenv("TRADEVIEW_API_URL", "http://localhost:3001").rstrip("/")
STORAGE_PATH = os.getenv(
    "TRADEVIEW_STORAGE_PATH",
    os.path.join(os.path.expanduser("~"), ".tradeview", "storage.json"),
)
HTTP_TIMEOUT = _env_float("TRADEVIEW_HTTP_TIMEOUT", 10.0)

SEARCH_DEBOUNCE_MS = _env_int("TRADEVIEW_SEARCH_DEBOUNCE_MS", 300)
QUICK_LOT_SIZE = _env_positive_float("TRADEVIEW_QUICK_LOT_SIZE", 0.01)
QUOTE_REFRESH_MS = _env_int("TRADEVIEW_QUOTE_REFRESH_MS", 2000)

PANEL_MODE = os.getenv("TRADEVIEW_PANEL_MODE", "inline").strip().lower()
if PANEL_MODE not in ("inline", "overlay"):
    logger.warning("Unknown TRADEVIEW_PANEL_MODE %r, using inline", PANEL_MODE)
    PANEL_MODE = "inline"

THEME = os.getenv("TRADEVIEW_THEME", "cosmo")

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
LOG_DIR = os.path.abspath(os.environ.get("LOG_DIR", os.path.join(os.getcwd(), "logs")))
