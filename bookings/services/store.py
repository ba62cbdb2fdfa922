"""Data-access interface for the booking calendar and its SQL adapter.

Calendar logic only talks to a ``CalendarStore``. ``SqlCalendarStore`` is the
one implementation that reaches the database; it opens a fresh session per
call so several reads can be in flight at once.
"""

from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import AsyncIterator, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from ..models.booking import Booking
from ..models.schedule import DaySpecificHours, WorkingHoursDefault


class StoreError(Exception):
    """Raised when the backing store cannot be read or written."""


@dataclass(frozen=True)
class DayScheduleOverride:
    date: date
    is_holiday: bool
    start_time: str | None
    end_time: str | None


@dataclass(frozen=True)
class DefaultWeekdaySchedule:
    weekday: int  # 1=Mon .. 7=Sun
    is_active: bool
    start_time: str
    end_time: str


@dataclass(frozen=True)
class AppointmentSummary:
    id: uuid.UUID
    reference: str
    name_en: str
    name_ar: str
    email: str
    phone: str | None
    date: date
    start_time: time
    end_time: time | None
    status: str
    notes: str | None
    service_name_en: str | None
    service_name_ar: str | None
    created_at: datetime | None

    def name(self, language: str = "en") -> str:
        return self.name_ar if language == "ar" else self.name_en

    def service_name(self, language: str = "en") -> str | None:
        return self.service_name_ar if language == "ar" else self.service_name_en


@dataclass(frozen=True)
class AppointmentDetail(AppointmentSummary):
    admin_notes: str | None
    assigned_admin_id: uuid.UUID | None
    fee_amount: Decimal | None
    cancelled_at: datetime | None
    updated_at: datetime | None


class CalendarStore(Protocol):
    async def get_override(self, day: date) -> DayScheduleOverride | None: ...

    async def get_default(self, weekday: int) -> DefaultWeekdaySchedule | None: ...

    async def list_appointments(
        self, start: date, end: date, service_id: uuid.UUID | None = None
    ) -> list[AppointmentSummary]: ...

    async def get_appointment(self, booking_id: uuid.UUID) -> AppointmentDetail | None: ...

    async def update_status(
        self, booking_id: uuid.UUID, status: str, cancelled_at: datetime | None
    ) -> bool: ...


def _summary_fields(b: Booking) -> dict:
    service = b.service
    return {
        "id": b.id,
        "reference": b.booking_reference,
        "name_en": b.full_name_en,
        "name_ar": b.display_name_ar,
        "email": b.email,
        "phone": b.phone,
        "date": b.booking_date,
        "start_time": b.start_time,
        "end_time": b.end_time,
        "status": b.status,
        "notes": b.notes,
        "service_name_en": service.name_en if service else None,
        "service_name_ar": service.name_ar if service else None,
        "created_at": b.created_at,
    }


def to_summary(b: Booking) -> AppointmentSummary:
    return AppointmentSummary(**_summary_fields(b))


def to_detail(b: Booking) -> AppointmentDetail:
    return AppointmentDetail(
        **_summary_fields(b),
        admin_notes=b.admin_notes,
        assigned_admin_id=b.assigned_admin_id,
        fee_amount=b.fee_amount,
        cancelled_at=b.cancelled_at,
        updated_at=b.updated_at,
    )


class SqlCalendarStore:
    """``CalendarStore`` backed by SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self, what: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                yield session
        except SQLAlchemyError as exc:
            raise StoreError(f"{what} failed") from exc

    async def get_override(self, day: date) -> DayScheduleOverride | None:
        async with self._session(f"override lookup for {day}") as db:
            stmt = select(DaySpecificHours).where(DaySpecificHours.date == day)
            row = (await db.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return DayScheduleOverride(
            date=row.date,
            is_holiday=row.is_holiday,
            start_time=row.start_time,
            end_time=row.end_time,
        )

    async def get_default(self, weekday: int) -> DefaultWeekdaySchedule | None:
        async with self._session(f"default schedule lookup for weekday {weekday}") as db:
            stmt = select(WorkingHoursDefault).where(WorkingHoursDefault.day_of_week == weekday)
            row = (await db.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return DefaultWeekdaySchedule(
            weekday=row.day_of_week,
            is_active=row.is_active,
            start_time=row.start_time,
            end_time=row.end_time,
        )

    async def list_appointments(
        self, start: date, end: date, service_id: uuid.UUID | None = None
    ) -> list[AppointmentSummary]:
        stmt = (
            select(Booking)
            .where(
                Booking.booking_date.is_not(None),
                Booking.start_time.is_not(None),
                Booking.booking_date >= start,
                Booking.booking_date <= end,
            )
            .options(selectinload(Booking.service))
            .order_by(Booking.booking_date, Booking.start_time)
        )
        if service_id is not None:
            stmt = stmt.where(Booking.service_id == service_id)
        async with self._session(f"appointment fetch {start}..{end}") as db:
            rows = (await db.execute(stmt)).scalars().all()
            return [to_summary(b) for b in rows]

    async def get_appointment(self, booking_id: uuid.UUID) -> AppointmentDetail | None:
        stmt = (
            select(Booking)
            .where(Booking.id == booking_id)
            .options(selectinload(Booking.service))
        )
        async with self._session(f"appointment lookup {booking_id}") as db:
            row = (await db.execute(stmt)).scalar_one_or_none()
            return to_detail(row) if row else None

    async def update_status(
        self, booking_id: uuid.UUID, status: str, cancelled_at: datetime | None
    ) -> bool:
        async with self._session(f"status update {booking_id}") as db:
            row = (
                await db.execute(select(Booking).where(Booking.id == booking_id))
            ).scalar_one_or_none()
            if row is None:
                return False
            row.status = status
            row.cancelled_at = cancelled_at
            await db.commit()
        return True
