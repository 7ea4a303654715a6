import threading
from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

import reservation_store
from booking_validator import Contact, Interval
from errors import InputError, ReservationConflict, ReservationNotFound
from models import Reservation, ReservationStatus

from conftest import la

JANE = Contact(name="Jane Doe", email="jane@example.com", phone="555-0100")
JOHN = Contact(name="John Roe", email="john@example.com")

TEN = Interval(la(2025, 6, 10, 10), la(2025, 6, 10, 10, 30))
TEN_THIRTY = Interval(la(2025, 6, 10, 10, 30), la(2025, 6, 10, 11))
ELEVEN = Interval(la(2025, 6, 10, 11), la(2025, 6, 10, 11, 30))


def _all(db):
    db.expire_all()
    return db.query(Reservation).order_by(Reservation.start_time).all()


def test_create_reservations_are_pending(db):
    created = reservation_store.create_reservations(db, JANE, [TEN, TEN_THIRTY], user_id="user_1")

    assert [r.status for r in created] == [ReservationStatus.PENDING] * 2
    assert len({r.id for r in created}) == 2
    assert created[0].start_time == TEN.start
    assert created[0].user_id == "user_1"
    assert created[0].phone == "555-0100"


def test_conflict_with_confirmed_reservation_leaves_store_unchanged(db):
    (existing,) = reservation_store.create_reservations(db, JANE, [TEN])
    reservation_store.confirm_reservation(db, existing.id)

    with pytest.raises(ReservationConflict):
        reservation_store.create_reservations(db, JOHN, [TEN])

    rows = _all(db)
    assert [(r.id, r.status) for r in rows] == [(existing.id, ReservationStatus.CONFIRMED)]


def test_one_conflicting_slot_aborts_the_whole_request(db):
    reservation_store.create_reservations(db, JANE, [ELEVEN])

    with pytest.raises(ReservationConflict):
        reservation_store.create_reservations(db, JOHN, [TEN, TEN_THIRTY, ELEVEN])

    assert [r.email for r in _all(db)] == ["jane@example.com"]


def test_adjacent_slots_do_not_conflict(db):
    reservation_store.create_reservations(db, JANE, [TEN])
    reservation_store.create_reservations(db, JOHN, [TEN_THIRTY])
    assert len(_all(db)) == 2


def test_confirm_pending(db):
    (pending,) = reservation_store.create_reservations(db, JANE, [TEN])

    confirmed = reservation_store.confirm_reservation(db, pending.id)

    assert confirmed.id == pending.id
    assert confirmed.status == ReservationStatus.CONFIRMED


def test_confirm_twice_is_a_conflict(db):
    (pending,) = reservation_store.create_reservations(db, JANE, [TEN])
    reservation_store.confirm_reservation(db, pending.id)

    with pytest.raises(ReservationConflict, match="Only pending appointments can be confirmed"):
        reservation_store.confirm_reservation(db, pending.id)
    assert _all(db)[0].status == ReservationStatus.CONFIRMED


def test_confirm_unknown_id(db):
    with pytest.raises(ReservationNotFound):
        reservation_store.confirm_reservation(db, "missing")


def test_decline_removes_pending(db):
    (pending,) = reservation_store.create_reservations(db, JANE, [TEN])
    reservation_id = pending.id

    reservation_store.decline_reservation(db, reservation_id)

    assert _all(db) == []
    with pytest.raises(ReservationNotFound):
        reservation_store.decline_reservation(db, reservation_id)


def test_decline_confirmed_is_a_conflict(db):
    (pending,) = reservation_store.create_reservations(db, JANE, [TEN])
    reservation_store.confirm_reservation(db, pending.id)

    with pytest.raises(ReservationConflict, match="declined"):
        reservation_store.decline_reservation(db, pending.id)
    assert len(_all(db)) == 1


def test_admin_reservation_ignores_slot_policy_but_not_overlap(db):
    long_block = Interval(la(2025, 6, 10, 7, 10), la(2025, 6, 10, 8, 55))
    created = reservation_store.create_admin_reservation(db, JOHN, long_block)
    assert created.user_id is None
    assert created.end_time - created.start_time == timedelta(minutes=105)

    reservation_store.create_reservations(db, JANE, [TEN])
    with pytest.raises(ReservationConflict):
        reservation_store.create_admin_reservation(
            db, JOHN, Interval(la(2025, 6, 10, 9, 45), la(2025, 6, 10, 10, 15))
        )


def test_admin_reservation_needs_positive_length(db):
    with pytest.raises(InputError):
        reservation_store.create_admin_reservation(db, JOHN, Interval(TEN.end, TEN.start))


def test_failed_lock_rolls_back_the_session(db, monkeypatch):
    reservation_store.create_reservations(db, JANE, [TEN])
    _all(db)
    assert db.in_transaction()

    def locked(session):
        raise OperationalError("BEGIN IMMEDIATE", {}, Exception("database is locked"))

    monkeypatch.setattr(reservation_store, "begin_serialized", locked)

    with pytest.raises(OperationalError):
        reservation_store.create_reservations(db, JOHN, [ELEVEN])

    assert not db.in_transaction()
    assert [r.start_time for r in _all(db)] == [TEN.start]


def test_day_listing_uses_start_instant(db):
    reservation_store.create_reservations(db, JANE, [ELEVEN, TEN])
    reservation_store.create_reservations(db, JOHN, [Interval(la(2025, 6, 11, 9), la(2025, 6, 11, 9, 30))])

    rows = reservation_store.reservations_starting_between(db, la(2025, 6, 10), la(2025, 6, 11))

    assert [r.start_time for r in rows] == [TEN.start, ELEVEN.start]


def test_concurrent_bookings_of_the_same_slot(session_factory):
    workers = 6
    barrier = threading.Barrier(workers)
    outcomes = []
    lock = threading.Lock()

    def book(n):
        session = session_factory()
        try:
            barrier.wait()
            contact = Contact(name=f"Caller {n}", email=f"caller{n}@example.com")
            reservation_store.create_reservations(session, contact, [TEN])
            result = "booked"
        except ReservationConflict:
            result = "conflict"
        finally:
            session.close()
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=book, args=(n,)) for n in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(outcomes) == ["booked"] + ["conflict"] * (workers - 1)
    check = session_factory()
    try:
        assert check.query(Reservation).count() == 1
    finally:
        check.close()
