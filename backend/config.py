"""
Runtime settings, read once from TRUENORTH_* environment variables.
"""
import os
from pathlib import Path

DATA_DIR = Path(os.environ.get("TRUENORTH_DATA_DIR", Path(__file__).parent.parent / "data"))
DB_PATH = Path(os.environ.get("TRUENORTH_DB_PATH", DATA_DIR / "truenorth.db"))
DB_BUSY_TIMEOUT_MS = int(os.environ.get("TRUENORTH_DB_BUSY_TIMEOUT_MS", "5000"))

SESSION_DAYS = int(os.environ.get("TRUENORTH_SESSION_DAYS", "30"))
PASSWORD_ITERATIONS = int(os.environ.get("TRUENORTH_PASSWORD_ITERATIONS", "310000"))

ADMIN_EMAILS = {
    e.strip().lower()
    for e in os.environ.get("TRUENORTH_ADMIN_EMAILS", "").split(",")
    if e.strip()
}

LOG_LEVEL = os.environ.get("TRUENORTH_LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [
    o.strip() for o in os.environ.get("TRUENORTH_CORS_ORIGINS", "*").split(",") if o.strip()
]

FRONTEND_DIST = Path(os.environ.get("TRUENORTH_FRONTEND_DIST", Path(__file__).parent.parent / "frontend" / "dist"))
