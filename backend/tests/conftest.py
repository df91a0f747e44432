# backend/tests/conftest.py
"""
Pytest configuration for the salon booking engine.

Every test gets its own file-backed SQLite database under ``tmp_path`` so
committed writes, side-effect sessions and worker threads all see the same
data without leaking between tests.
"""

import os

# Set testing mode BEFORE any salon_booking imports
os.environ["IS_TESTING"] = "true"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("REDIS_URL", None)

from concurrent.futures import Executor, Future
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Optional

import pytest
from sqlalchemy.orm import Session, sessionmaker

from salon_booking.core.config import settings
from salon_booking.core.ulid_helper import generate_ulid
from salon_booking.database import build_engine, init_db
from salon_booking.models.booking import Booking
from salon_booking.models.client import Client
from salon_booking.models.service import Service, StaffService
from salon_booking.models.staff import Staff
from salon_booking.services import booking_log_service
from salon_booking.services.booking_log_service import BookingLogService, DatabaseBookingLogSink
from salon_booking.services.booking_service import BookingService
from salon_booking.services.recurrence_service import RecurrenceService

settings.is_testing = True
settings.redis_url = None

# Monday 3 March 2025, 10:00 salon time
NOW = datetime(2025, 3, 3, 10, 0)

STANDARD_HOURS: Dict[str, Any] = {
    "monday": {"start": "09:00", "end": "17:00"},
    "tuesday": {"start": "09:00", "end": "17:00"},
    "wednesday": {"start": "09:00", "end": "17:00"},
    "thursday": {"start": "09:00", "end": "20:00"},
    "friday": {"start": "09:00", "end": "17:00"},
    "saturday": {"start": "09:00", "end": "14:00"},
    "sunday": {"off": True},
}


class InlineExecutor(Executor):
    """Runs submitted work on the calling thread so log rows are visible at once."""

    def submit(self, fn, /, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:
            future.set_exception(exc)
        return future


@pytest.fixture(autouse=True)
def inline_side_effects(monkeypatch):
    monkeypatch.setattr(booking_log_service, "SIDE_EFFECT_EXECUTOR", InlineExecutor())


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def test_engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'salon_test.db'}")
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return sessionmaker(bind=test_engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory) -> Session:
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def log_service(db, session_factory) -> BookingLogService:
    return BookingLogService(db, sink=DatabaseBookingLogSink(session_factory))


@pytest.fixture
def booking_service(db, log_service) -> BookingService:
    return BookingService(db, log_service=log_service)


@pytest.fixture
def recurrence_service(db, log_service) -> RecurrenceService:
    return RecurrenceService(db, log_service=log_service)


@pytest.fixture
def make_staff(db) -> Callable[..., Staff]:
    def _make(title: str = "Sam", weekly_hours: Optional[Dict[str, Any]] = None) -> Staff:
        staff = Staff(
            title=title,
            email=f"{title.lower()}@salon.test",
            weekly_hours=STANDARD_HOURS if weekly_hours is None else weekly_hours,
        )
        db.add(staff)
        db.commit()
        return staff

    return _make


@pytest.fixture
def make_service(db) -> Callable[..., Service]:
    def _make(
        name: str,
        duration: int,
        price: Optional[str] = "40.00",
        category: Optional[str] = "Cutting",
        is_chemical: Optional[bool] = None,
    ) -> Service:
        service = Service(
            name=name,
            category=category,
            base_duration=duration,
            base_price=Decimal(price) if price is not None else None,
            is_chemical=is_chemical,
        )
        db.add(service)
        db.commit()
        return service

    return _make


@pytest.fixture
def make_override(db) -> Callable[..., StaffService]:
    def _make(
        staff: Staff,
        service: Service,
        price: Optional[str] = None,
        duration: Optional[int] = None,
    ) -> StaffService:
        override = StaffService(
            staff_id=staff.id,
            service_id=service.id,
            price=Decimal(price) if price is not None else None,
            duration=duration,
        )
        db.add(override)
        db.commit()
        return override

    return _make


@pytest.fixture
def make_client(db) -> Callable[..., Client]:
    def _make(
        first_name: str = "Jo",
        last_name: str = "Bloggs",
        email: Optional[str] = None,
        mobile: Optional[str] = None,
    ) -> Client:
        client = Client(first_name=first_name, last_name=last_name, email=email, mobile=mobile)
        db.add(client)
        db.commit()
        return client

    return _make


@pytest.fixture
def make_booking(db) -> Callable[..., Booking]:
    """Insert a single-segment booking group directly."""

    def _make(
        staff: Staff,
        start: datetime,
        end: datetime,
        title: str = "Existing booking",
        group_id: Optional[str] = None,
        is_locked: bool = False,
    ) -> Booking:
        row = Booking(
            booking_id=group_id or generate_ulid(),
            resource_id=staff.id,
            start=start,
            end=end,
            title=title,
            duration=int((end - start).total_seconds() // 60),
            is_locked=is_locked,
        )
        db.add(row)
        db.commit()
        return row

    return _make
