"""Environment-driven configuration for the booking engine."""

import os
from dataclasses import dataclass
from typing import Optional

GOOGLE_CALENDAR_API_BASE_URL = "https://www.googleapis.com/calendar/v3"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class EngineConfig:
    """Tunables for provider access and booking behaviour."""
    base_url: str = GOOGLE_CALENDAR_API_BASE_URL
    calendar_id: str = "primary"
    freebusy_timeout: float = 10.0
    create_timeout: float = 15.0
    revalidate_before_booking: bool = False
    default_timezone: str = "America/New_York"

    @classmethod
    def from_env(cls, env_prefix: Optional[str] = None) -> "EngineConfig":
        """
        Build a config from environment variables.

        Reads GOOGLE_CALENDAR_BASE_URL, GOOGLE_CALENDAR_ID,
        BOOKING_FREEBUSY_TIMEOUT, BOOKING_CREATE_TIMEOUT, BOOKING_REVALIDATE
        and BOOKING_DEFAULT_TIMEZONE. Call ``load_dotenv()`` first to pick up
        a .env file.
        """
        prefix = env_prefix or ""
        return cls(
            base_url=os.getenv(f"{prefix}GOOGLE_CALENDAR_BASE_URL", GOOGLE_CALENDAR_API_BASE_URL).rstrip("/"),
            calendar_id=os.getenv(f"{prefix}GOOGLE_CALENDAR_ID", "primary"),
            freebusy_timeout=_env_float(f"{prefix}BOOKING_FREEBUSY_TIMEOUT", 10.0),
            create_timeout=_env_float(f"{prefix}BOOKING_CREATE_TIMEOUT", 15.0),
            revalidate_before_booking=_env_bool(f"{prefix}BOOKING_REVALIDATE", False),
            default_timezone=os.getenv(f"{prefix}BOOKING_DEFAULT_TIMEZONE", "America/New_York"),
        )
