# booking-backend/civil_time.py
"""
Conversions between civil (wall-clock) time in the showroom's time zone
and absolute UTC instants.

All instants handled by the service are timezone-aware datetimes in UTC.
Civil dates are plain ``datetime.date`` values and civil times are given as
minutes from local midnight, so a slot never depends on a fixed UTC offset.

Wall-clock times that fall on a DST transition resolve deterministically:
  - ambiguous times (fall back) take the earlier of the two instants
  - non-existent times (spring forward) move forward by the size of the gap

Dates too close to ``date.min`` / ``date.max`` for the conversion to stay
inside the datetime range are reported as InputError.
"""

from collections import namedtuple
from datetime import date, datetime, time, timedelta
from typing import Tuple

import pytz

from errors import InputError

CivilParts = namedtuple("CivilParts", ["year", "month", "day", "hour", "minute"])

# Passes of the offset correction; a second pass only matters next to a DST change.
CORRECTION_PASSES = 2

OUT_OF_RANGE = "Date is outside the supported range"


def ensure_utc(instant: datetime) -> datetime:
    """Naive datetimes are taken to already be UTC."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=pytz.utc)
    try:
        return instant.astimezone(pytz.utc)
    except OverflowError:
        raise InputError(OUT_OF_RANGE)


def _wall_clock(instant: datetime, tz) -> datetime:
    return instant.astimezone(tz).replace(tzinfo=None)


def _utc_offset(instant: datetime, tz) -> timedelta:
    return instant.astimezone(tz).utcoffset()


def _resolve_wall_clock(wall: datetime, tz) -> datetime:
    naive_utc = wall.replace(tzinfo=pytz.utc)

    # Start as if the zone were UTC, then shift by whatever the zone shows instead.
    approx = naive_utc
    for _ in range(CORRECTION_PASSES):
        delta = wall - _wall_clock(approx, tz)
        if not delta:
            break
        approx += delta

    # The offsets in force around the approximation bound every valid answer.
    offsets = {
        _utc_offset(approx - timedelta(days=1), tz),
        _utc_offset(approx, tz),
        _utc_offset(approx + timedelta(days=1), tz),
    }
    matches = sorted(
        candidate
        for candidate in (naive_utc - offset for offset in offsets)
        if _wall_clock(candidate, tz) == wall
    )
    if matches:
        return matches[0]

    # Inside a spring-forward gap: keep the pre-transition offset.
    return naive_utc - _utc_offset(approx - timedelta(days=1), tz)


def civil_to_instant(day: date, minutes: int, tz) -> datetime:
    """
    Return the UTC instant at which the clocks in ``tz`` read ``day`` plus
    ``minutes`` from midnight. ``minutes`` may reach 1440 (next midnight).
    """
    try:
        wall = datetime.combine(day, time.min) + timedelta(minutes=minutes)
        return _resolve_wall_clock(wall, tz)
    except OverflowError:
        raise InputError(OUT_OF_RANGE)


def instant_to_civil_parts(instant: datetime, tz) -> CivilParts:
    try:
        local = ensure_utc(instant).astimezone(tz)
    except OverflowError:
        raise InputError(OUT_OF_RANGE)
    return CivilParts(local.year, local.month, local.day, local.hour, local.minute)


def civil_date_of(instant: datetime, tz) -> date:
    parts = instant_to_civil_parts(instant, tz)
    return date(parts.year, parts.month, parts.day)


def day_bounds(day: date, tz) -> Tuple[datetime, datetime]:
    """[start, end) of a civil day as UTC instants; 23 or 25 hours long on DST days."""
    return civil_to_instant(day, 0, tz), civil_to_instant(day, 24 * 60, tz)


def format_clock(instant: datetime, tz) -> str:
    """``9:00 AM`` style rendering in the showroom's zone."""
    local = ensure_utc(instant).astimezone(tz)
    hour12 = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return f"{hour12}:{local.minute:02d} {meridiem}"


def format_label(start: datetime, end: datetime, tz) -> str:
    return f"{format_clock(start, tz)} – {format_clock(end, tz)}"
