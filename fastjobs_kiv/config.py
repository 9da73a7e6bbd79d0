"""
Runtime configuration for the FastJobs employer automation.

Everything here is a module-level constant read from the environment (with a
`.env` file loaded first, if present). Override any value by exporting the
variable before running, e.g. `HEADLESS=0 fastjobs-kiv list`.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)).strip() or str(default))


# =============================================================================
# Portal
# =============================================================================

BASE_URL = os.getenv("FASTJOBS_BASE_URL", "https://employer.fastjobs.sg").strip().rstrip("/")
COMPANY_ID = os.getenv("FASTJOBS_COMPANY_ID", "235927").strip()

LOGIN_URL = f"{BASE_URL}/site/login/"
DASHBOARD_URL = f"{BASE_URL}/p/my-activity/dashboard/"
JOBS_URL = f"{BASE_URL}/p/my-activity/jobs/"


def active_jobs_url(company_id: str = COMPANY_ID) -> str:
    """Jobs dashboard filtered to active (status=1) postings."""
    return f"{JOBS_URL}?status=1&coyid={company_id}"


def job_applications_url(job_id: str, company_id: str = COMPANY_ID) -> str:
    """Applications view of one job, opened on the 'New' bucket."""
    return f"{BASE_URL}/p/jobs/viewdetails/?jid={job_id}&coyid={company_id}&sts=1&lblid="


# Credentials. The short names are what older .env files used.
EMAIL = (os.getenv("FASTJOBS_EMAIL") or os.getenv("EMAIL") or "").strip()
PASSWORD = (os.getenv("FASTJOBS_PASSWORD") or os.getenv("PASS") or "").strip()

SESSION_FILE = Path(os.getenv("FASTJOBS_SESSION_FILE", "session.json").strip() or "session.json")

# =============================================================================
# Browser
# =============================================================================

HEADLESS = os.getenv("HEADLESS", "1").strip() != "0"

BROWSER_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--no-sandbox",
    "--disable-setuid-sandbox",
]

# Fresh logins and reused sessions present as different desktop browsers.
LOGIN_CONTEXT_OPTIONS = {
    "user_agent": (
        "Mozilla/5.0 (Windows; U; Windows NT 6.0; en-US) AppleWebKit/530.19.2 "
        "(KHTML, like Gecko) Version/4.0.2 Safari/530.19.1"
    ),
    "viewport": {"width": 1440, "height": 1080},
    "device_scale_factor": 1,
}
REUSE_CONTEXT_OPTIONS = {
    "user_agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    ),
    "viewport": {"width": 1280, "height": 720},
    "device_scale_factor": 1,
}

# =============================================================================
# Timeouts (ms) and stabilization pauses (ms)
# =============================================================================

LOGIN_TIMEOUT_MS = _env_int("LOGIN_TIMEOUT_MS", 15000)
SELECTOR_TIMEOUT_MS = _env_int("SELECTOR_TIMEOUT_MS", 10000)
MENU_TIMEOUT_MS = _env_int("MENU_TIMEOUT_MS", 5000)

# The selection checkbox re-renders the action bar; "Move to" is visible
# before it is wired to the new selection.
CHECKBOX_SETTLE_MS = _env_int("CHECKBOX_SETTLE_MS", 2000)
RELOAD_SETTLE_MS = _env_int("RELOAD_SETTLE_MS", 2000)
MODAL_SETTLE_MS = _env_int("MODAL_SETTLE_MS", 500)

# =============================================================================
# Batching
# =============================================================================

BATCH_SIZE = 20
MAX_LOGIN_ATTEMPTS = 2

# =============================================================================
# Operating window (HHMM, local time)
# =============================================================================

START_TIME = os.getenv("START_TIME", "0900").strip() or "0900"
END_TIME = os.getenv("END_TIME", "2100").strip() or "2100"

# =============================================================================
# Logging
# =============================================================================

LOG_DIR = Path(os.getenv("LOG_DIR", "logs").strip() or "logs")
LOG_RETENTION_DAYS = _env_int("LOG_RETENTION_DAYS", 3)

# =============================================================================
# Failure email (optional)
# =============================================================================

SMTP_HOST = os.getenv("SMTP_HOST", "").strip()
SMTP_PORT = _env_int("SMTP_PORT", 587)
SMTP_USER = os.getenv("SMTP_USER", "").strip()
SMTP_PASS = os.getenv("SMTP_PASS", "").strip()
SMTP_FROM = os.getenv("SMTP_FROM", SMTP_USER).strip()
SMTP_TO = os.getenv("SMTP_TO", "").strip()

# EMAIL_ENABLED=0 disables; anything else sends when SMTP config is complete.
EMAIL_ENABLED = os.getenv("EMAIL_ENABLED", "").strip()
EMAIL_SUBJECT_PREFIX = os.getenv("EMAIL_SUBJECT_PREFIX", "[FastJobs KIV]").strip()
