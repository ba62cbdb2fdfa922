"""Async test fixtures for booking tests using SQLite and an in-memory store."""

from __future__ import annotations

import asyncio
import dataclasses
import uuid
from datetime import date, datetime, time, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from bookings.database import engine_options, get_db, get_session_factory
from bookings.models.base import Base
from bookings.models.booking import Booking, BookingService
from bookings.services import hours_svc
from bookings.services.store import (
    AppointmentDetail,
    DayScheduleOverride,
    DefaultWeekdaySchedule,
    StoreError,
)


class FakeCalendarStore:
    """In-memory ``CalendarStore`` with switches for failures and latency."""

    def __init__(self):
        self.overrides: dict[date, DayScheduleOverride] = {}
        self.defaults: dict[int, DefaultWeekdaySchedule] = {}
        self.bookings: dict[uuid.UUID, AppointmentDetail] = {}
        self.failing_days: set[date] = set()
        self.fail_defaults = False
        self.fail_appointments = False
        self.fail_updates = False
        self.delay = 0.0
        self.appointment_delay = 0.0
        self.in_flight = 0
        self.max_in_flight = 0
        self.status_writes: list[tuple[uuid.UUID, str]] = []
        self.appointment_fetches = 0

    async def _io(self, delay: float | None = None) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay if delay is None else delay)
        finally:
            self.in_flight -= 1

    # -- setup helpers ----------------------------------------------------

    def set_weekday(self, weekday: int, start="09:00:00", end="17:00:00", active=True):
        self.defaults[weekday] = DefaultWeekdaySchedule(weekday, active, start, end)

    def set_standard_week(self):
        """Mon-Fri 09-17, weekend inactive."""
        for weekday in range(1, 8):
            self.set_weekday(weekday, active=weekday <= 5)

    def set_override(self, day: date, start=None, end=None, holiday=False):
        self.overrides[day] = DayScheduleOverride(day, holiday, start, end)

    def add_booking(self, detail: AppointmentDetail) -> AppointmentDetail:
        self.bookings[detail.id] = detail
        return detail

    # -- CalendarStore ----------------------------------------------------

    async def get_override(self, day):
        await self._io()
        if day in self.failing_days:
            raise StoreError(f"override lookup for {day} failed")
        return self.overrides.get(day)

    async def get_default(self, weekday):
        await self._io()
        if self.fail_defaults:
            raise StoreError(f"default lookup for {weekday} failed")
        return self.defaults.get(weekday)

    async def list_appointments(self, start, end, service_id=None):
        self.appointment_fetches += 1
        await self._io(self.appointment_delay)
        if self.fail_appointments:
            raise StoreError("appointment fetch failed")
        rows = [b for b in self.bookings.values() if start <= b.date <= end]
        return sorted(rows, key=lambda b: (b.date, b.start_time))

    async def get_appointment(self, booking_id):
        await self._io()
        return self.bookings.get(booking_id)

    async def update_status(self, booking_id, status, cancelled_at):
        await self._io()
        if self.fail_updates:
            raise StoreError("status update failed")
        current = self.bookings.get(booking_id)
        if current is None:
            return False
        self.bookings[booking_id] = dataclasses.replace(
            current, status=status, cancelled_at=cancelled_at
        )
        self.status_writes.append((booking_id, status))
        return True


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def fake_store() -> FakeCalendarStore:
    return FakeCalendarStore()


@pytest.fixture
def make_appointment():
    counter = iter(range(1, 10_000))

    def _make(day: date, start: time, status: str = "confirmed", **kwargs) -> AppointmentDetail:
        n = next(counter)
        fields = {
            "id": uuid.uuid4(),
            "reference": f"YCA-2025-{n:04d}",
            "name_en": f"Client {n}",
            "name_ar": f"عميل {n}",
            "email": f"client{n}@example.com",
            "phone": None,
            "date": day,
            "start_time": start,
            "end_time": None,
            "status": status,
            "notes": None,
            "service_name_en": "Wakala",
            "service_name_ar": "وكالة",
            "created_at": datetime(2025, 1, 1, tzinfo=timezone.utc),
            "admin_notes": None,
            "assigned_admin_id": None,
            "fee_amount": None,
            "cancelled_at": None,
            "updated_at": None,
        }
        fields.update(kwargs)
        return AppointmentDetail(**fields)

    return _make


@pytest_asyncio.fixture
async def engine(tmp_path):
    # File-backed so the store's per-read sessions get their own connections
    url = f"sqlite+aiosqlite:///{tmp_path / 'bookings.db'}"
    eng = create_async_engine(url, echo=False, **engine_options(url))
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seeded_defaults(db: AsyncSession):
    await hours_svc.seed_defaults(db)
    return await hours_svc.list_defaults(db)


@pytest_asyncio.fixture
async def service(db: AsyncSession):
    svc = BookingService(slug="wakala", name_en="Wakala", name_ar="وكالة")
    db.add(svc)
    await db.commit()
    await db.refresh(svc)
    return svc


@pytest_asyncio.fixture
async def make_booking(db: AsyncSession, service: BookingService):
    counter = iter(range(1, 10_000))

    async def _make(day: date | None, start: time | None, **kwargs) -> Booking:
        n = next(counter)
        data = {
            "booking_reference": f"YCA-2025-{n:04d}",
            "service_id": service.id,
            "full_name_en": f"Client {n}",
            "full_name_ar": f"عميل {n}",
            "email": f"client{n}@example.com",
            "booking_date": day,
            "start_time": start,
            "status": "submitted",
        }
        data.update(kwargs)
        booking = Booking(**data)
        db.add(booking)
        await db.commit()
        await db.refresh(booking)
        return booking

    return _make


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTPX async test client against the booking app."""
    from bookings.app import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
