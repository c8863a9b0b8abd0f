import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./marketplace.db")

# Firebase Configuration
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")

# Wallet service (earnings are credited there when a session completes)
WALLET_SERVICE_URL = os.getenv("WALLET_SERVICE_URL")
WALLET_SERVICE_TOKEN = os.getenv("WALLET_SERVICE_TOKEN")
WALLET_TIMEOUT_SECONDS = float(os.getenv("WALLET_TIMEOUT_SECONDS", "10"))

# Session workflow
# true: requests go through admin assignment (pending_assignment -> assigned/confirmed)
# false: legacy flow, provider fixed at creation and sessions start as "pending"
REQUIRE_ADMIN_ASSIGNMENT = _env_flag("REQUIRE_ADMIN_ASSIGNMENT", "true")
# Admin assignment lands directly in "confirmed" instead of "assigned"
AUTO_CONFIRM_ASSIGNMENT = _env_flag("AUTO_CONFIRM_ASSIGNMENT", "true")
# A provider declining an assignment sends the request back to the admin queue
REASSIGN_ON_PROVIDER_DECLINE = _env_flag("REASSIGN_ON_PROVIDER_DECLINE", "true")

DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "FCFA")
MIN_SESSION_DURATION_HOURS = float(os.getenv("MIN_SESSION_DURATION_HOURS", "0.5"))
MAX_SESSION_DURATION_HOURS = float(os.getenv("MAX_SESSION_DURATION_HOURS", "12"))

# Location tracking
ARRIVAL_RADIUS_METERS = float(os.getenv("ARRIVAL_RADIUS_METERS", "100"))

# Provider calendar locking: "redis" or "memory"
_redis_configured = bool(os.getenv("REDIS_URL") or os.getenv("REDIS_HOST"))
SCHEDULE_LOCK_BACKEND = os.getenv(
    "SCHEDULE_LOCK_BACKEND", "redis" if _redis_configured else "memory"
).lower()
SCHEDULE_LOCK_TIMEOUT = int(os.getenv("SCHEDULE_LOCK_TIMEOUT", "10"))

# CORS
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:5173,http://localhost:3000",
).split(",")
