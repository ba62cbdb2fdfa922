"""Booking routes - detail panel, status, notes, assignment, export."""

from __future__ import annotations

import html
import uuid
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..database import get_db
from ..deps import get_store, require_admin
from ..models.booking import BOOKING_STATUSES
from ..services import auth_svc, booking_svc
from ..services.store import CalendarStore

router = APIRouter(tags=["bookings"], dependencies=[Depends(require_admin)])
templates = Jinja2Templates(directory=str(settings.templates_dir))


def _parse_date(value: str) -> date | None:
    value = value.strip()
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Invalid date: {value}")


def _calendar_url(day: date | None, lang: str = "en") -> str:
    anchor = f"anchor={day.isoformat()}&" if day else ""
    return f"/admin/calendar?{anchor}lang={lang}"


@router.get("/admin/bookings/export.csv")
async def export_bookings(
    start: str = "",
    end: str = "",
    status: str = "",
    q: str = "",
    db: AsyncSession = Depends(get_db),
):
    body = await booking_svc.export_csv(
        db, _parse_date(start), _parse_date(end), status=status or None, search=q or None
    )
    filename = f"bookings_{date.today().isoformat()}.csv"
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/admin/bookings/stats")
async def bookings_stats(db: AsyncSession = Depends(get_db)):
    today = date.today()
    stats = await booking_svc.booking_stats(db, today)
    upcoming = await booking_svc.upcoming_bookings(db, today)
    stats["upcoming"] = [
        {
            "id": str(b.id),
            "reference": b.booking_reference,
            "name": b.full_name_en,
            "date": b.booking_date.isoformat() if b.booking_date else None,
            "start_time": b.start_time.strftime("%H:%M") if b.start_time else None,
            "status": b.status,
        }
        for b in upcoming
    ]
    return stats


@router.get("/admin/bookings/{booking_id}")
async def booking_detail(
    request: Request,
    booking_id: uuid.UUID,
    lang: str = "en",
    db: AsyncSession = Depends(get_db),
    store: CalendarStore = Depends(get_store),
):
    try:
        detail = await booking_svc.load_detail(store, booking_id)
    except booking_svc.BookingNotFound:
        return HTMLResponse("<h1>Booking not found</h1>", status_code=404)
    return templates.TemplateResponse(request, "bookings/_detail.html", {
        "booking": detail,
        "lang": "ar" if lang == "ar" else "en",
        "statuses": BOOKING_STATUSES,
        "admins": await auth_svc.list_admins(db),
    })


@router.post("/admin/bookings/{booking_id}/status")
async def booking_set_status(
    request: Request,
    booking_id: uuid.UUID,
    store: CalendarStore = Depends(get_store),
):
    form = await request.form()
    new_status = form.get("status", "").strip()
    lang = form.get("lang", "en")
    try:
        detail = await booking_svc.set_status(store, booking_id, new_status)
    except booking_svc.BookingNotFound:
        return HTMLResponse("<h1>Booking not found</h1>", status_code=404)
    except booking_svc.StatusUpdateError as e:
        return HTMLResponse(
            f'<div class="text-red-600 text-sm">{html.escape(str(e))}</div>', status_code=422
        )
    return RedirectResponse(_calendar_url(detail.date, lang), status_code=303)


@router.post("/admin/bookings/{booking_id}/notes")
async def booking_save_notes(
    request: Request,
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    form = await request.form()
    try:
        await booking_svc.save_admin_notes(db, booking_id, form.get("admin_notes", ""))
    except booking_svc.BookingNotFound:
        return HTMLResponse("<h1>Booking not found</h1>", status_code=404)
    return HTMLResponse('<div class="text-green-600 text-sm font-medium">Notes saved.</div>')


@router.post("/admin/bookings/{booking_id}/assign")
async def booking_assign(
    request: Request,
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    form = await request.form()
    admin_id_str = form.get("admin_id", "").strip()
    try:
        admin_id = uuid.UUID(admin_id_str) if admin_id_str else None
    except ValueError:
        return HTMLResponse(
            '<div class="text-red-600 text-sm">Invalid staff member.</div>', status_code=422
        )

    try:
        await booking_svc.assign_admin(db, booking_id, admin_id)
    except booking_svc.BookingNotFound:
        return HTMLResponse("<h1>Booking not found</h1>", status_code=404)
    except ValueError as e:
        return HTMLResponse(
            f'<div class="text-red-600 text-sm">{html.escape(str(e))}</div>', status_code=422
        )
    return HTMLResponse('<div class="text-green-600 text-sm font-medium">Assignment saved.</div>')
