"""Booking service - detail, status changes, staff edits, tracker, export."""

from __future__ import annotations

import asyncio
import csv
import io
import logging
import uuid
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models.admin import Admin
from ..models.booking import BOOKING_STATUSES, Booking
from .store import AppointmentDetail, CalendarStore, StoreError
from .week_svc import week_start

logger = logging.getLogger(__name__)

CSV_HEADERS = [
    "Reference", "Name (EN)", "Name (AR)", "Email", "Phone", "Service",
    "Date", "Start", "End", "Status", "Notes", "Created",
]


class BookingNotFound(LookupError):
    pass


class StatusUpdateError(Exception):
    """A status change was rejected or could not be written."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def load_detail(store: CalendarStore, booking_id: uuid.UUID) -> AppointmentDetail:
    detail = await store.get_appointment(booking_id)
    if detail is None:
        raise BookingNotFound(str(booking_id))
    return detail


async def set_status(
    store: CalendarStore,
    booking_id: uuid.UUID,
    status: str,
    *,
    now: datetime | None = None,
) -> AppointmentDetail:
    """Write a new status. Any known status may follow any other."""
    if status not in BOOKING_STATUSES:
        raise StatusUpdateError(f"Unknown status: {status!r}")

    try:
        current = await load_detail(store, booking_id)
        if status == "cancelled":
            cancelled_at = current.cancelled_at if current.status == "cancelled" else (now or _utcnow())
        else:
            cancelled_at = None

        if not await store.update_status(booking_id, status, cancelled_at):
            raise BookingNotFound(str(booking_id))
        return await load_detail(store, booking_id)
    except (StoreError, asyncio.TimeoutError) as exc:
        logger.warning("Status update for booking %s failed", booking_id, exc_info=True)
        raise StatusUpdateError("Could not update the booking status. Please try again.") from exc


# ---------------------------------------------------------------------------
# Staff edits (session based)
# ---------------------------------------------------------------------------


async def get_booking(db: AsyncSession, booking_id: uuid.UUID) -> Booking | None:
    stmt = (
        select(Booking)
        .where(Booking.id == booking_id)
        .options(selectinload(Booking.service), selectinload(Booking.assigned_admin))
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def save_admin_notes(db: AsyncSession, booking_id: uuid.UUID, notes: str) -> Booking:
    booking = await get_booking(db, booking_id)
    if not booking:
        raise BookingNotFound(str(booking_id))
    booking.admin_notes = notes.strip() or None
    await db.commit()
    await db.refresh(booking)
    return booking


async def assign_admin(
    db: AsyncSession, booking_id: uuid.UUID, admin_id: uuid.UUID | None
) -> Booking:
    booking = await get_booking(db, booking_id)
    if not booking:
        raise BookingNotFound(str(booking_id))
    if admin_id is not None:
        admin = await db.get(Admin, admin_id)
        if admin is None or not admin.is_active:
            raise ValueError("Assignee must be an active admin")
    booking.assigned_admin_id = admin_id
    await db.commit()
    await db.refresh(booking, attribute_names=["assigned_admin"])
    return booking


# ---------------------------------------------------------------------------
# Public tracker
# ---------------------------------------------------------------------------


async def search_bookings(
    db: AsyncSession,
    *,
    reference: str | None = None,
    email: str | None = None,
    limit: int = 20,
) -> list[Booking]:
    """Find bookings by reference (exact, upper-cased) or else by email."""
    reference = (reference or "").strip().upper()
    email = (email or "").strip().lower()
    if not reference and not email:
        raise ValueError("Enter a booking reference or an email address")

    stmt = select(Booking).options(selectinload(Booking.service))
    if reference:
        stmt = stmt.where(Booking.booking_reference == reference)
    else:
        stmt = stmt.where(func.lower(Booking.email) == email)
    stmt = stmt.order_by(Booking.created_at.desc()).limit(limit)
    return list((await db.execute(stmt)).scalars().all())


# ---------------------------------------------------------------------------
# Dashboard figures and export
# ---------------------------------------------------------------------------


async def _count_between(db: AsyncSession, start: date, end: date) -> int:
    stmt = select(func.count(Booking.id)).where(
        Booking.booking_date >= start, Booking.booking_date <= end
    )
    return (await db.execute(stmt)).scalar_one()


async def booking_stats(db: AsyncSession, today: date) -> dict:
    monday = week_start(today)
    month_start = today.replace(day=1)
    next_month = (month_start + timedelta(days=32)).replace(day=1)

    by_status_rows = await db.execute(
        select(Booking.status, func.count(Booking.id)).group_by(Booking.status)
    )
    by_status = {status: count for status, count in by_status_rows.all()}
    return {
        "today": await _count_between(db, today, today),
        "this_week": await _count_between(db, monday, monday + timedelta(days=6)),
        "this_month": await _count_between(db, month_start, next_month - timedelta(days=1)),
        "total": sum(by_status.values()),
        "by_status": by_status,
    }


async def upcoming_bookings(db: AsyncSession, today: date, limit: int = 5) -> list[Booking]:
    stmt = (
        select(Booking)
        .where(
            Booking.booking_date >= today,
            Booking.status != "cancelled",
        )
        .options(selectinload(Booking.service))
        .order_by(Booking.booking_date, Booking.start_time)
        .limit(limit)
    )
    return list((await db.execute(stmt)).scalars().all())


def _fmt_time(value) -> str:
    return value.strftime("%H:%M") if value else ""


async def export_csv(
    db: AsyncSession,
    start: date | None = None,
    end: date | None = None,
    *,
    status: str | None = None,
    search: str | None = None,
) -> str:
    stmt = select(Booking).options(selectinload(Booking.service))
    if start:
        stmt = stmt.where(Booking.booking_date >= start)
    if end:
        stmt = stmt.where(Booking.booking_date <= end)
    if status:
        stmt = stmt.where(Booking.status == status)
    if search and search.strip():
        pattern = f"%{search.strip().lower()}%"
        stmt = stmt.where(or_(
            func.lower(Booking.booking_reference).like(pattern),
            func.lower(Booking.full_name_en).like(pattern),
            func.lower(Booking.full_name_ar).like(pattern),
            func.lower(Booking.email).like(pattern),
        ))
    stmt = stmt.order_by(Booking.booking_date, Booking.start_time)
    rows = (await db.execute(stmt)).scalars().all()

    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(CSV_HEADERS)
    for b in rows:
        writer.writerow([
            b.booking_reference,
            b.full_name_en,
            b.full_name_ar or "",
            b.email,
            b.phone or "",
            b.service.name_en if b.service else "",
            b.booking_date.isoformat() if b.booking_date else "",
            _fmt_time(b.start_time),
            _fmt_time(b.end_time),
            b.status,
            b.notes or "",
            b.created_at.strftime("%Y-%m-%d %H:%M") if b.created_at else "",
        ])
    return buf.getvalue()
