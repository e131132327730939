import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./delivery_scheduler.db")

# Operating timezone - all "today"/"tomorrow" decisions are made in this zone
OPERATING_TIMEZONE = os.getenv("OPERATING_TIMEZONE", "Asia/Kolkata")

# Evening cutoff (24h clock): after this hour tomorrow's delivery is committed
PAUSE_CUTOFF_HOUR = int(os.getenv("PAUSE_CUTOFF_HOUR", "18"))

# Weekday with no deliveries (Monday=0 ... Sunday=6)
NON_DELIVERY_WEEKDAY = int(os.getenv("NON_DELIVERY_WEEKDAY", "6"))

# Self-paused subscriptions must be reactivated within this many months
REACTIVATION_WINDOW_MONTHS = int(os.getenv("REACTIVATION_WINDOW_MONTHS", "3"))

# Bulk pause / reactivation worker pool size (bounds load on the database)
BULK_MAX_WORKERS = int(os.getenv("BULK_MAX_WORKERS", "8"))

# Operator preview and audit listing bounds
PREVIEW_MAX_WINDOW = int(os.getenv("PREVIEW_MAX_WINDOW", "180"))
AUDIT_LIST_MAX_LIMIT = int(os.getenv("AUDIT_LIST_MAX_LIMIT", "500"))

# Admin action log (pause/reactivate/maintenance breakdowns)
ADMIN_ACTION_LOG_ENABLED = os.getenv("ADMIN_ACTION_LOG_ENABLED", "true").lower() == "true"

# Bulk endpoint throttling - requests per window per actor
BULK_RATE_LIMIT = int(os.getenv("BULK_RATE_LIMIT", "10"))
BULK_RATE_WINDOW_SECONDS = int(os.getenv("BULK_RATE_WINDOW_SECONDS", "60"))
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"

# Actor recorded for jobs run by the worker
SYSTEM_ACTOR_ID = os.getenv("SYSTEM_ACTOR_ID", "system")
