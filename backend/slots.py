# booking-backend/slots.py
"""
Slot generation and availability.

Slots are never stored: they are rebuilt for every query from the civil date
and the business hours, then labelled against the reservations that touch
that day.
"""

import enum
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

import reservation_store
from civil_time import civil_date_of, civil_to_instant, day_bounds, format_label
from config import BusinessHours
from models import ReservationStatus


class SlotStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PAST = "PAST"


@dataclass(frozen=True)
class Slot:
    start: datetime
    end: datetime
    label: str
    status: Optional[SlotStatus] = None


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open interval intersection."""
    return a_start < b_end and b_start < a_end


def generate_slots(day: date, hours: BusinessHours) -> List[Slot]:
    """Candidate slots of one civil day, ascending by start."""
    tz = hours.tz
    slots = []
    minute = hours.start_minutes
    while minute + hours.slot_minutes <= hours.end_minutes:
        start = civil_to_instant(day, minute, tz)
        end = civil_to_instant(day, minute + hours.slot_minutes, tz)
        slots.append(Slot(start=start, end=end, label=format_label(start, end, tz)))
        minute += hours.slot_minutes
    return slots


def classify_slots(
    day: date,
    slots: Iterable[Slot],
    reservations: Iterable,
    now: datetime,
    hours: BusinessHours,
) -> List[Slot]:
    """
    Give every slot its status. Priority: PAST (whole day elapsed, or today and
    already ended), then CONFIRMED/PENDING from the first overlapping
    reservation, otherwise AVAILABLE.
    """
    today = civil_date_of(now, hours.tz)
    active = [
        r for r in reservations
        if r.status in (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)
    ]

    classified = []
    for slot in slots:
        if day < today or (day == today and slot.end <= now):
            classified.append(replace(slot, status=SlotStatus.PAST))
            continue

        clash = next(
            (r for r in active if overlaps(slot.start, slot.end, r.start_time, r.end_time)),
            None,
        )
        if clash is None:
            status = SlotStatus.AVAILABLE
        elif clash.status == ReservationStatus.CONFIRMED:
            status = SlotStatus.CONFIRMED
        else:
            status = SlotStatus.PENDING
        classified.append(replace(slot, status=status))
    return classified


def query_slots(db: Session, day: date, now: datetime, hours: BusinessHours) -> List[Slot]:
    """Slots of ``day`` with their current status. Read-only."""
    day_start, day_end = day_bounds(day, hours.tz)
    existing = reservation_store.reservations_intersecting(db, day_start, day_end)
    return classify_slots(day, generate_slots(day, hours), existing, now, hours)
