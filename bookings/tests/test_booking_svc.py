"""Test booking detail, status changes, staff edits, tracker and export."""

from __future__ import annotations

import csv
import io
import uuid
from datetime import date, datetime, time, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from bookings.models.admin import Admin
from bookings.services import booking_svc
from bookings.services.booking_svc import BookingNotFound, StatusUpdateError
from bookings.services.store import SqlCalendarStore

DAY = date(2025, 6, 4)
NOW = datetime(2025, 6, 4, 12, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_load_detail(fake_store, make_appointment):
    booked = fake_store.add_booking(make_appointment(DAY, time(9, 30), admin_notes="VIP"))
    detail = await booking_svc.load_detail(fake_store, booked.id)
    assert detail.admin_notes == "VIP"

    with pytest.raises(BookingNotFound):
        await booking_svc.load_detail(fake_store, uuid.uuid4())


@pytest.mark.asyncio
async def test_cancel_stamps_and_reopen_clears(fake_store, make_appointment):
    booked = fake_store.add_booking(make_appointment(DAY, time(9, 30)))

    cancelled = await booking_svc.set_status(fake_store, booked.id, "cancelled", now=NOW)
    assert cancelled.status == "cancelled"
    assert cancelled.cancelled_at == NOW

    again = await booking_svc.set_status(fake_store, booked.id, "cancelled")
    assert again.cancelled_at == NOW

    reopened = await booking_svc.set_status(fake_store, booked.id, "submitted")
    assert reopened.status == "submitted"
    assert reopened.cancelled_at is None


@pytest.mark.asyncio
async def test_any_known_status_may_follow_any_other(fake_store, make_appointment):
    booked = fake_store.add_booking(make_appointment(DAY, time(9, 30), status="completed"))
    detail = await booking_svc.set_status(fake_store, booked.id, "submitted")
    assert detail.status == "submitted"


@pytest.mark.asyncio
async def test_unknown_status_rejected(fake_store, make_appointment):
    booked = fake_store.add_booking(make_appointment(DAY, time(9, 30)))
    with pytest.raises(StatusUpdateError):
        await booking_svc.set_status(fake_store, booked.id, "archived")
    assert fake_store.status_writes == []


@pytest.mark.asyncio
async def test_store_failure_surfaces_without_retry(fake_store, make_appointment):
    booked = fake_store.add_booking(make_appointment(DAY, time(9, 30)))
    fake_store.fail_updates = True
    with pytest.raises(StatusUpdateError):
        await booking_svc.set_status(fake_store, booked.id, "confirmed")
    assert fake_store.bookings[booked.id].status == "confirmed"


@pytest.mark.asyncio
async def test_set_status_through_sql_store(session_factory, make_booking):
    booking = await make_booking(DAY, time(10, 0))
    store = SqlCalendarStore(session_factory)

    detail = await booking_svc.set_status(store, booking.id, "cancelled", now=NOW)

    assert detail.status == "cancelled"
    assert detail.cancelled_at is not None
    assert detail.service_name_en == "Wakala"


@pytest.mark.asyncio
async def test_sql_store_lists_window_in_order(session_factory, make_booking):
    late = await make_booking(DAY, time(15, 0))
    early = await make_booking(DAY, time(9, 0))
    first_day = await make_booking(date(2025, 6, 2), time(16, 0))
    await make_booking(date(2025, 6, 9), time(9, 0))
    await make_booking(None, None)

    store = SqlCalendarStore(session_factory)
    rows = await store.list_appointments(date(2025, 6, 2), date(2025, 6, 8))

    assert [r.reference for r in rows] == [
        first_day.booking_reference, early.booking_reference, late.booking_reference,
    ]


@pytest.mark.asyncio
async def test_save_admin_notes(db: AsyncSession, make_booking):
    booking = await make_booking(DAY, time(10, 0))
    updated = await booking_svc.save_admin_notes(db, booking.id, "  Called back  ")
    assert updated.admin_notes == "Called back"

    with pytest.raises(BookingNotFound):
        await booking_svc.save_admin_notes(db, uuid.uuid4(), "x")


@pytest.mark.asyncio
async def test_assign_admin(db: AsyncSession, make_booking):
    booking = await make_booking(DAY, time(10, 0))
    admin = Admin(email="staff@example.com", full_name="Staff")
    retired = Admin(email="old@example.com", is_active=False)
    db.add_all([admin, retired])
    await db.commit()

    assigned = await booking_svc.assign_admin(db, booking.id, admin.id)
    assert assigned.assigned_admin_id == admin.id

    with pytest.raises(ValueError):
        await booking_svc.assign_admin(db, booking.id, retired.id)

    cleared = await booking_svc.assign_admin(db, booking.id, None)
    assert cleared.assigned_admin_id is None


@pytest.mark.asyncio
async def test_search_by_reference_or_email(db: AsyncSession, make_booking):
    booking = await make_booking(DAY, time(10, 0), email="Amal@Example.com")
    await make_booking(DAY, time(11, 0), email="amal@example.com")

    by_ref = await booking_svc.search_bookings(db, reference=booking.booking_reference.lower())
    assert [b.id for b in by_ref] == [booking.id]

    by_email = await booking_svc.search_bookings(db, email="  AMAL@example.com ")
    assert len(by_email) == 2

    with pytest.raises(ValueError):
        await booking_svc.search_bookings(db, reference=" ", email="")


@pytest.mark.asyncio
async def test_booking_stats(db: AsyncSession, make_booking):
    await make_booking(DAY, time(10, 0), status="confirmed")
    await make_booking(date(2025, 6, 2), time(10, 0))
    await make_booking(date(2025, 6, 20), time(10, 0))
    await make_booking(date(2025, 7, 1), time(10, 0), status="cancelled")

    stats = await booking_svc.booking_stats(db, DAY)

    assert stats["today"] == 1
    assert stats["this_week"] == 2
    assert stats["this_month"] == 3
    assert stats["total"] == 4
    assert stats["by_status"]["submitted"] == 2


@pytest.mark.asyncio
async def test_upcoming_skips_cancelled_and_past(db: AsyncSession, make_booking):
    await make_booking(date(2025, 6, 1), time(10, 0))
    soon = await make_booking(DAY, time(10, 0))
    await make_booking(date(2025, 6, 5), time(9, 0), status="cancelled")
    later = await make_booking(date(2025, 6, 6), time(9, 0))

    upcoming = await booking_svc.upcoming_bookings(db, DAY)
    assert [b.id for b in upcoming] == [soon.id, later.id]


@pytest.mark.asyncio
async def test_export_csv(db: AsyncSession, make_booking):
    await make_booking(DAY, time(10, 0), full_name_en="Amal Hassan", phone="+44 7700 900000")
    await make_booking(date(2025, 6, 5), time(9, 0), status="cancelled")
    await make_booking(date(2025, 7, 1), time(9, 0))

    body = await booking_svc.export_csv(db, date(2025, 6, 1), date(2025, 6, 30))
    rows = list(csv.reader(io.StringIO(body)))
    assert rows[0] == booking_svc.CSV_HEADERS
    assert len(rows) == 3
    assert rows[1][1] == "Amal Hassan"
    assert rows[1][5] == "Wakala"
    assert rows[1][7] == "10:00"

    only_cancelled = await booking_svc.export_csv(db, status="cancelled")
    assert len(list(csv.reader(io.StringIO(only_cancelled)))) == 2

    searched = await booking_svc.export_csv(db, search="amal")
    assert len(list(csv.reader(io.StringIO(searched)))) == 2
