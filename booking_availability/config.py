import logging
import os

logger = logging.getLogger(__name__)

# --- File Paths ---
DATA_DIR = os.environ.get("BOOKING_DATA_DIR", "data")
PERIODS_FILE = os.path.join(DATA_DIR, "periods.json")
ACTIVITIES_FILE = os.path.join(DATA_DIR, "activities.json")
REPORT_FILE = os.path.join(DATA_DIR, "report.json")

# --- Remote store ---
# When set, periods and activities are read from and written to this REST API
# instead of the local JSON files.
API_BASE_URL = os.environ.get("BOOKING_API_BASE_URL")
HTTP_TIMEOUT = float(os.environ.get("BOOKING_HTTP_TIMEOUT", "10"))

# --- Slots ---
SLOT_INTERVAL_MINUTES = int(os.environ.get("SLOT_INTERVAL_MINUTES", "30"))

HTTP_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}

if API_BASE_URL:
    logger.debug(f"Using remote store at {API_BASE_URL}")
