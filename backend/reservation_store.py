# booking-backend/reservation_store.py
"""
All reads and writes of the reservations table.

create_reservations() is the only place where the no-overlap rule is
enforced against concurrent writers: the overlap check and the inserts run in
one serialized transaction and either all slots are booked or none.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from booking_validator import Contact, Interval
from database import begin_serialized
from errors import InputError, ReservationConflict, ReservationNotFound
from models import Reservation, ReservationStatus

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)


def _overlapping(db: Session, start: datetime, end: datetime):
    return db.query(Reservation).filter(
        Reservation.start_time < end,
        Reservation.end_time > start,
    )


def reservations_intersecting(db: Session, start: datetime, end: datetime) -> List[Reservation]:
    """Active reservations touching [start, end). No lock; may be slightly stale."""
    return (
        _overlapping(db, start, end)
        .filter(Reservation.status.in_(ACTIVE_STATUSES))
        .order_by(Reservation.start_time)
        .all()
    )


def reservations_starting_between(db: Session, start: datetime, end: datetime) -> List[Reservation]:
    return (
        db.query(Reservation)
        .filter(Reservation.start_time >= start, Reservation.start_time < end)
        .order_by(Reservation.start_time)
        .all()
    )


def _insert_checked(
    db: Session,
    contact: Contact,
    intervals: Iterable[Interval],
    user_id: Optional[str],
) -> List[Reservation]:
    try:
        begin_serialized(db)
        rows = []
        for interval in intervals:
            clash = _overlapping(db, interval.start, interval.end).first()
            if clash is not None:
                logger.warning(
                    "Booking conflict at %s with reservation %s",
                    interval.start.isoformat(), clash.id,
                )
                raise ReservationConflict(
                    "One or more selected times are no longer available"
                )
            rows.append(
                Reservation(
                    user_id=user_id,
                    name=contact.name,
                    email=contact.email,
                    phone=contact.phone,
                    start_time=interval.start,
                    end_time=interval.end,
                    status=ReservationStatus.PENDING,
                )
            )
        db.add_all(rows)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return rows


def create_reservations(
    db: Session,
    contact: Contact,
    intervals: List[Interval],
    user_id: Optional[str] = None,
) -> List[Reservation]:
    """Book every interval as PENDING, or none of them if any one collides."""
    rows = _insert_checked(db, contact, intervals, user_id)
    logger.info("Created %d pending reservation(s): %s", len(rows), [r.id for r in rows])
    return rows


def create_admin_reservation(db: Session, contact: Contact, interval: Interval) -> Reservation:
    """
    Privileged direct insert: skips the slot policy (duration, alignment,
    business hours) but still refuses to overlap an existing reservation.
    """
    if not interval.start < interval.end:
        raise InputError("End time must be after start time")
    (row,) = _insert_checked(db, contact, [interval], user_id=None)
    logger.info("Admin created reservation %s", row.id)
    return row


def _transition_failed(db: Session, reservation_id: str, reason: str):
    exists = db.query(Reservation.id).filter(Reservation.id == reservation_id).first()
    if exists is None:
        raise ReservationNotFound("Not found")
    logger.warning("Reservation %s is not pending: %s", reservation_id, reason)
    raise ReservationConflict(reason)


def confirm_reservation(db: Session, reservation_id: str) -> Reservation:
    """PENDING -> CONFIRMED, guarded so a concurrent change is reported, not overwritten."""
    updated = (
        db.query(Reservation)
        .filter(
            Reservation.id == reservation_id,
            Reservation.status == ReservationStatus.PENDING,
        )
        .update(
            {Reservation.status: ReservationStatus.CONFIRMED},
            synchronize_session=False,
        )
    )
    db.commit()
    if not updated:
        _transition_failed(db, reservation_id, "Only pending appointments can be confirmed")

    reservation = db.get(Reservation, reservation_id, populate_existing=True)
    logger.info("Confirmed reservation %s", reservation_id)
    return reservation


def decline_reservation(db: Session, reservation_id: str) -> None:
    """Remove a PENDING reservation for good."""
    deleted = (
        db.query(Reservation)
        .filter(
            Reservation.id == reservation_id,
            Reservation.status == ReservationStatus.PENDING,
        )
        .delete(synchronize_session=False)
    )
    db.commit()
    if not deleted:
        _transition_failed(db, reservation_id, "Only pending appointments can be declined")
    logger.info("Declined reservation %s", reservation_id)
