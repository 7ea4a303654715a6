# booking-backend/booking_validator.py
"""
Server-side legality checks for requested slots.

Nothing the client computed is trusted: every interval is re-derived and
checked against the business hours before the store is touched. Collisions
with existing reservations are not checked here, only at commit time in
reservation_store.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

from civil_time import civil_to_instant, ensure_utc, instant_to_civil_parts
from config import BusinessHours
from errors import InputError, PolicyViolation


@dataclass(frozen=True)
class Interval:
    start: datetime
    end: datetime


@dataclass(frozen=True)
class Contact:
    name: str
    email: str
    phone: Optional[str] = None


def clean_contact(name: Optional[str], email: Optional[str], phone: Optional[str] = None) -> Contact:
    name = (name or "").strip()
    email = (email or "").strip()
    if not name or not email:
        raise InputError("Name and email are required")
    phone = (phone or "").strip() or None
    return Contact(name=name, email=email, phone=phone)


def resolve_interval(requested, hours: BusinessHours) -> Interval:
    """
    Turn one requested slot into absolute instants.

    ``requested`` carries either ``start_time``/``end_time`` instants or a civil
    ``day`` plus ``start_minutes`` from local midnight.
    """
    if requested.day is not None:
        if requested.start_minutes is None:
            raise InputError("startMinutes is required together with date")
        start = civil_to_instant(requested.day, requested.start_minutes, hours.tz)
        end = civil_to_instant(requested.day, requested.start_minutes + hours.slot_minutes, hours.tz)
        return Interval(start, end)

    if requested.start_time is None or requested.end_time is None:
        raise InputError("Each slot needs startTime and endTime, or date and startMinutes")
    return Interval(ensure_utc(requested.start_time), ensure_utc(requested.end_time))


def validate_interval(interval: Interval, now: datetime, hours: BusinessHours) -> Interval:
    """Raise PolicyViolation unless ``interval`` is one bookable slot."""
    start, end = interval.start, interval.end

    if end - start != timedelta(minutes=hours.slot_minutes):
        raise PolicyViolation(f"Each slot must be exactly {hours.slot_minutes} minutes")

    if start <= now:
        raise PolicyViolation("No booking in the past")

    tz = hours.tz
    start_parts = instant_to_civil_parts(start, tz)
    end_parts = instant_to_civil_parts(end, tz)
    start_day = date(start_parts.year, start_parts.month, start_parts.day)
    end_day = date(end_parts.year, end_parts.month, end_parts.day)

    start_minutes = start_parts.hour * 60 + start_parts.minute
    end_minutes = end_parts.hour * 60 + end_parts.minute
    # A slot closing exactly at midnight still belongs to the day it started.
    if end_day == start_day + timedelta(days=1) and end_minutes == 0:
        end_day, end_minutes = start_day, 24 * 60

    if (start_minutes - hours.start_minutes) % hours.slot_minutes:
        raise PolicyViolation("Slot must start on a slot boundary")

    if start_minutes < hours.start_minutes or end_minutes > hours.end_minutes:
        raise PolicyViolation(
            f"Slot must be within business hours "
            f"({hours.start_hour:02d}:00-{hours.end_hour:02d}:00 {hours.time_zone})"
        )

    if start_day != end_day:
        raise PolicyViolation("Slot must start and end on the same day")

    return interval


def validate_booking(requested: Iterable, now: datetime, hours: BusinessHours) -> List[Interval]:
    """Resolve and check every requested slot; returns them ordered by start."""
    intervals = [resolve_interval(r, hours) for r in requested]
    if not intervals:
        raise InputError("Select at least one time slot")

    seen = set()
    for interval in intervals:
        validate_interval(interval, now, hours)
        if interval.start in seen:
            raise PolicyViolation("Duplicate slot in request")
        seen.add(interval.start)

    return sorted(intervals, key=lambda i: i.start)
