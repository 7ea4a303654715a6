# booking-backend/main.py

import logging
from datetime import date, datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, Path, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

# Import database utilities and models
import models
import reservation_store
from auth import AdminAuthorizer, Caller, get_authorizer, get_caller, require_admin, require_user
from booking_validator import Interval, clean_contact, validate_booking
from civil_time import day_bounds, ensure_utc
from config import BUSINESS_HOURS, CORS_ORIGINS, LOG_LEVEL, BusinessHours
from database import get_db
from errors import BookingError, InputError
from logging_config import setup_logging
from schemas import (
    AdminCheckResponse,
    AdminReservationRequest,
    BookingRequest,
    ReservationEnvelope,
    ReservationListResponse,
    ReservationResponse,
    SlotResponse,
    SlotsResponse,
    StatusUpdate,
)
from slots import query_slots

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Showroom Appointment API",
    description="API for booking showroom appointment slots with admin approval.",
    version="0.2.0",
)

# --- CORS Configuration ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Dependencies ---
def get_business_hours() -> BusinessHours:
    return BUSINESS_HOURS


def get_now() -> datetime:
    return datetime.now(timezone.utc)


def _required_day(day: Optional[date]) -> date:
    if day is None:
        raise InputError("Missing date=YYYY-MM-DD")
    return day


# --- Error handling ---
@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.reason, "kind": exc.kind},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        reason = f"{field}: {first.get('msg')}" if field else first.get("msg")
    else:
        reason = "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": reason, "kind": InputError.kind},
    )


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Reservation store failure on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Server error", "kind": "internal_error"},
    )


# --- API Endpoints ---
@app.on_event("startup")
async def startup_event():
    setup_logging(LOG_LEVEL)
    # Create database tables if they don't exist
    models.create_db_tables()
    logger.info(
        "Serving %02d:00-%02d:00 %s in %d minute slots",
        BUSINESS_HOURS.start_hour,
        BUSINESS_HOURS.end_hour,
        BUSINESS_HOURS.time_zone,
        BUSINESS_HOURS.slot_minutes,
    )


@app.get("/")
async def read_root():
    return {"message": "Welcome to the Showroom Appointment API!"}


@app.get("/api/slots", response_model=SlotsResponse)
def get_slots(
    day: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db),
    hours: BusinessHours = Depends(get_business_hours),
    now: datetime = Depends(get_now),
):
    """Every slot of the requested day with its current status."""
    day = _required_day(day)
    slots = query_slots(db, day, now, hours)
    return SlotsResponse(date=day.isoformat(), slots=[SlotResponse.from_slot(s) for s in slots])


@app.post(
    "/api/appointments",
    response_model=ReservationListResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_appointments(
    booking: BookingRequest,
    caller: Caller = Depends(require_user),
    db: Session = Depends(get_db),
    hours: BusinessHours = Depends(get_business_hours),
    now: datetime = Depends(get_now),
):
    """
    Book one or more slots for a requester. All slots are created PENDING,
    or none are if any of them is taken.
    """
    contact = clean_contact(booking.name, booking.email, booking.phone)
    intervals = validate_booking(booking.slots, now, hours)

    created = reservation_store.create_reservations(db, contact, intervals, user_id=caller.user_id)
    return ReservationListResponse(
        appointments=[ReservationResponse.from_reservation(r) for r in created]
    )


@app.get("/api/is-admin", response_model=AdminCheckResponse, response_model_exclude_none=True)
def is_admin(
    caller: Caller = Depends(get_caller),
    authorizer: AdminAuthorizer = Depends(get_authorizer),
):
    if not caller.signed_in:
        return AdminCheckResponse(isAdmin=False, reason="SIGNED_OUT")
    if not authorizer.admin_emails:
        return AdminCheckResponse(isAdmin=False, reason="ADMIN_EMAILS_EMPTY")
    return AdminCheckResponse(isAdmin=authorizer.is_admin(caller))


# --- Admin Endpoints ---
@app.get("/api/admin/appointments", response_model=ReservationListResponse)
def list_appointments(
    day: Optional[date] = Query(None, alias="date"),
    _: Caller = Depends(require_admin),
    db: Session = Depends(get_db),
    hours: BusinessHours = Depends(get_business_hours),
):
    """All reservations starting on the given day, earliest first."""
    day = _required_day(day)
    day_start, day_end = day_bounds(day, hours.tz)
    rows = reservation_store.reservations_starting_between(db, day_start, day_end)
    return ReservationListResponse(appointments=[ReservationResponse.from_reservation(r) for r in rows])


@app.post(
    "/api/admin/appointments",
    response_model=ReservationEnvelope,
    status_code=status.HTTP_201_CREATED,
)
def create_admin_appointment(
    body: AdminReservationRequest,
    _: Caller = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Direct insert by an admin: any length or hour, but never overlapping."""
    contact = clean_contact(body.name, body.email, body.phone)
    interval = Interval(ensure_utc(body.start_time), ensure_utc(body.end_time))
    created = reservation_store.create_admin_reservation(db, contact, interval)
    return ReservationEnvelope(appointment=ReservationResponse.from_reservation(created))


@app.patch("/api/admin/appointments/{reservation_id}", response_model=ReservationEnvelope)
def update_appointment(
    body: StatusUpdate,
    reservation_id: str = Path(..., description="The ID of the reservation to confirm"),
    _: Caller = Depends(require_admin),
    db: Session = Depends(get_db),
):
    if body.status != "CONFIRMED":
        raise InputError('Only status "CONFIRMED" is supported here')
    confirmed = reservation_store.confirm_reservation(db, reservation_id)
    return ReservationEnvelope(appointment=ReservationResponse.from_reservation(confirmed))


@app.delete("/api/admin/appointments/{reservation_id}")
def decline_appointment(
    reservation_id: str = Path(..., description="The ID of the reservation to decline"),
    _: Caller = Depends(require_admin),
    db: Session = Depends(get_db),
):
    reservation_store.decline_reservation(db, reservation_id)
    return {"ok": True}
