import os
from datetime import datetime

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
import pytz
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

import models
from auth import AdminAuthorizer, get_authorizer
from config import BusinessHours
from database import build_engine, get_db
from main import app, get_business_hours, get_now

LA = pytz.timezone("America/Los_Angeles")
HOURS = BusinessHours(time_zone="America/Los_Angeles", slot_minutes=30, start_hour=9, end_hour=17)

USER_HEADERS = {"X-User-Id": "user_1", "X-User-Emails": "jane@example.com"}
ADMIN_HEADERS = {"X-User-Id": "admin_1", "X-User-Emails": "Other@Example.com, ADMIN@showroom.test "}


def la(year, month, day, hour=0, minute=0):
    """UTC instant of a Los Angeles wall-clock time."""
    return LA.localize(datetime(year, month, day, hour, minute)).astimezone(pytz.utc)


class FrozenClock:
    def __init__(self, now):
        self.now = now


@pytest.fixture
def hours():
    return HOURS


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'reservations.db'}")
    models.create_db_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    # Monday 2025-06-02, 08:00 in Los Angeles
    return FrozenClock(la(2025, 6, 2, 8, 0))


@pytest.fixture
def authorizer():
    return AdminAuthorizer([" Admin@Showroom.test"])


@pytest.fixture
def client(session_factory, clock, authorizer):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_business_hours] = lambda: HOURS
    app.dependency_overrides[get_now] = lambda: clock.now
    app.dependency_overrides[get_authorizer] = lambda: authorizer
    yield TestClient(app)
    app.dependency_overrides.clear()
