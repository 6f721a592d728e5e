import os
from dotenv import load_dotenv
from pydantic import BaseModel

# Загрузка переменных из .env
load_dotenv()


class Settings(BaseModel):
    database_url: str = "sqlite+aiosqlite:///./chata.db"

    # Proposed bookings (holds)
    hold_ttl_minutes: int = 15
    hold_reap_interval_seconds: int = 30
    enable_hold_reaper: bool = True

    # Booking window: no reservations further ahead than this
    booking_horizon_days: int = 730

    # Admin endpoints (blocked dates) are gated by a shared key
    admin_api_key: str = ""

    # Messages
    default_language: str = "cs"

    # Rate limiting settings
    rate_limit_enabled: bool = True  # Killswitch for quick disable
    rate_limit_booking: str = "10/minute"  # Booking submissions per IP

    # Logging settings
    log_format: str = "console"  # Options: "console", "json"
    log_slow_request_threshold_ms: int = 500  # Log timing only if duration > threshold


# Resolve database URL with preference for Docker volume path
env_db_url = os.environ.get("DATABASE_URL")
if not env_db_url:
    if os.path.exists("/app/data/chata.db"):
        final_db_url = "sqlite+aiosqlite:////app/data/chata.db"
    else:
        final_db_url = "sqlite+aiosqlite:///./chata.db"
else:
    final_db_url = env_db_url

settings = Settings(
    database_url=final_db_url,
    hold_ttl_minutes=int(os.environ.get("HOLD_TTL_MINUTES", "15")),
    hold_reap_interval_seconds=int(os.environ.get("HOLD_REAP_INTERVAL_SECONDS", "30")),
    enable_hold_reaper=os.environ.get("ENABLE_HOLD_REAPER", "true").lower() == "true",
    booking_horizon_days=int(os.environ.get("BOOKING_HORIZON_DAYS", "730")),
    admin_api_key=os.environ.get("ADMIN_API_KEY", ""),
    default_language=os.environ.get("DEFAULT_LANGUAGE", "cs"),
    rate_limit_enabled=os.environ.get("RATE_LIMIT_ENABLED", "true").lower() == "true",
    rate_limit_booking=os.environ.get("RATE_LIMIT_BOOKING", "10/minute"),
    log_format=os.environ.get("LOG_FORMAT", "console"),
    log_slow_request_threshold_ms=int(
        os.environ.get("LOG_SLOW_REQUEST_THRESHOLD_MS", "500")
    ),
)
