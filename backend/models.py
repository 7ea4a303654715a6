# booking-backend/models.py

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, Index, String
from sqlalchemy.types import TypeDecorator

# Import Base from your database.py
from database import Base, engine


def _utcnow():
    return datetime.now(timezone.utc)


def _new_id():
    return uuid.uuid4().hex


class ReservationStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"


class UTCDateTime(TypeDecorator):
    """Stores naive UTC, always hands back an aware UTC datetime."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is not None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(String, primary_key=True, default=_new_id)
    user_id = Column(String, nullable=True, index=True)  # None for admin inserts
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    start_time = Column(UTCDateTime, nullable=False)
    end_time = Column(UTCDateTime, nullable=False)
    status = Column(
        Enum(ReservationStatus, name="reservation_status", native_enum=False),
        nullable=False,
        default=ReservationStatus.PENDING,
    )
    created_at = Column(UTCDateTime, nullable=False, default=_utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (Index("ix_reservations_start_end", "start_time", "end_time"),)

    def __repr__(self):
        return f"<Reservation {self.id} {self.status} {self.start_time}>"


# This function creates the database tables if they don't exist
def create_db_tables(bind=None):
    Base.metadata.create_all(bind=bind or engine)
