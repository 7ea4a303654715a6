# booking-backend/schemas.py

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from models import Reservation, ReservationStatus
from slots import Slot, SlotStatus


# --- Requests ---
class RequestedSlot(BaseModel):
    """Either an instant pair, or a civil date plus minutes from local midnight."""

    start_time: Optional[datetime] = Field(None, alias="startTime")
    end_time: Optional[datetime] = Field(None, alias="endTime")
    day: Optional[date] = Field(None, alias="date")
    start_minutes: Optional[int] = Field(None, alias="startMinutes", ge=0, lt=24 * 60)

    model_config = {"populate_by_name": True}


class BookingRequest(BaseModel):
    name: str
    email: EmailStr
    phone: Optional[str] = None
    slots: List[RequestedSlot]


class AdminReservationRequest(BaseModel):
    name: str
    email: EmailStr
    phone: Optional[str] = None
    start_time: datetime = Field(..., alias="startTime")
    end_time: datetime = Field(..., alias="endTime")

    model_config = {"populate_by_name": True}


class StatusUpdate(BaseModel):
    status: Optional[str] = None


# --- Responses ---
class SlotResponse(BaseModel):
    start: datetime
    end: datetime
    label: str
    status: SlotStatus

    @classmethod
    def from_slot(cls, slot: Slot) -> "SlotResponse":
        return cls(start=slot.start, end=slot.end, label=slot.label, status=slot.status)


class SlotsResponse(BaseModel):
    date: str
    slots: List[SlotResponse]


class ReservationResponse(BaseModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    status: ReservationStatus
    start: datetime
    end: datetime

    @classmethod
    def from_reservation(cls, r: Reservation) -> "ReservationResponse":
        return cls(
            id=r.id,
            name=r.name,
            email=r.email,
            phone=r.phone,
            status=r.status,
            start=r.start_time,
            end=r.end_time,
        )


class ReservationListResponse(BaseModel):
    appointments: List[ReservationResponse]


class ReservationEnvelope(BaseModel):
    appointment: ReservationResponse


class AdminCheckResponse(BaseModel):
    isAdmin: bool
    reason: Optional[str] = None
