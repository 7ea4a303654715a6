# booking-backend/config.py

import os
from dataclasses import dataclass
from typing import FrozenSet, List, Optional

import pytz
from dotenv import load_dotenv

load_dotenv()


def normalize_email(value: str) -> str:
    return value.strip().lower()


def parse_admin_emails(raw: Optional[str]) -> FrozenSet[str]:
    """Turn a comma separated ADMIN_EMAILS value into a set of normalized addresses."""
    if not raw:
        return frozenset()
    return frozenset(normalize_email(e) for e in raw.split(",") if e.strip())


def _split_csv(raw: str) -> List[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


@dataclass(frozen=True)
class BusinessHours:
    """Opening hours of the showroom, expressed in one fixed civil timezone."""

    time_zone: str = "America/Los_Angeles"
    slot_minutes: int = 30
    start_hour: int = 9
    end_hour: int = 17

    def __post_init__(self):
        try:
            pytz.timezone(self.time_zone)
        except pytz.UnknownTimeZoneError:
            raise ValueError(f"Unknown time zone: {self.time_zone!r}")
        if self.slot_minutes <= 0 or (60 % self.slot_minutes and self.slot_minutes % 60):
            raise ValueError("slot_minutes must divide 60 or be a multiple of 60")
        if not 0 <= self.start_hour < self.end_hour <= 24:
            raise ValueError("Business hours must satisfy 0 <= start_hour < end_hour <= 24")

    @property
    def tz(self):
        return pytz.timezone(self.time_zone)

    @property
    def start_minutes(self) -> int:
        return self.start_hour * 60

    @property
    def end_minutes(self) -> int:
        return self.end_hour * 60


# --- Configuration ---
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./sql_app.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS = _split_csv(os.getenv("CORS_ORIGINS", "http://localhost:3000"))
ADMIN_EMAILS = parse_admin_emails(os.getenv("ADMIN_EMAILS"))

BUSINESS_HOURS = BusinessHours(
    time_zone=os.getenv("BUSINESS_TIME_ZONE", "America/Los_Angeles"),
    slot_minutes=int(os.getenv("SLOT_MINUTES", "30")),
    start_hour=int(os.getenv("BUSINESS_START_HOUR", "9")),
    end_hour=int(os.getenv("BUSINESS_END_HOUR", "17")),
)
