"""Admin calendar - week and day views, navigation, picker, and the booking grid."""

from __future__ import annotations

from datetime import date
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.templating import Jinja2Templates
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..database import get_db
from ..deps import get_store, require_admin
from ..models.booking import BOOKING_STATUSES, BookingService
from ..services.navigation import CalendarController, CalendarNavigator
from ..services.store import CalendarStore
from ..services.week_svc import WindowLoadError

router = APIRouter(tags=["calendar"], dependencies=[Depends(require_admin)])
templates = Jinja2Templates(directory=str(settings.templates_dir))

DAY_LABELS = {
    "en": ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"],
    "ar": ["الاثنين", "الثلاثاء", "الأربعاء", "الخميس", "الجمعة", "السبت", "الأحد"],
}

# Date-picker column headers
PICKER_LABELS = {
    "en": ["Mo", "Tu", "We", "Th", "Fr", "Sa", "Su"],
    "ar": ["ن", "ث", "ر", "خ", "ج", "س", "ح"],
}


async def _find_service(db: AsyncSession, slug: str) -> BookingService | None:
    stmt = select(BookingService).where(BookingService.slug == slug)
    return (await db.execute(stmt)).scalar_one_or_none()


def _navigation_links(nav: CalendarNavigator, extra: dict[str, str]) -> dict:
    def href(params: dict[str, str]) -> str:
        return "/admin/calendar?" + urlencode({**params, **extra})

    picker_weeks = [
        [
            {"day": d, "href": href(nav.link(lambda p, d=d: p.select_day(d)))} if d else None
            for d in week
        ]
        for week in nav.month_grid()
    ] if nav.picker_open else []

    return {
        "current": href(nav.to_query()),
        "today": href(nav.link(CalendarNavigator.today)),
        "previous": href(nav.link(CalendarNavigator.previous)),
        "next": href(nav.link(CalendarNavigator.next)),
        "week_view": href(nav.link(lambda p: p.set_view("week"))),
        "day_view": href(nav.link(lambda p: p.set_view("day"))),
        "open_picker": href(nav.link(CalendarNavigator.open_picker)),
        "close_picker": href(nav.link(CalendarNavigator.close_picker)),
        "picker_previous": href(nav.link(lambda p: p.change_picker_month(-1))),
        "picker_next": href(nav.link(lambda p: p.change_picker_month(1))),
        "picker_weeks": picker_weeks,
    }


@router.get("/admin/calendar")
async def calendar_page(
    request: Request,
    service: str = "",
    lang: str = "en",
    db: AsyncSession = Depends(get_db),
    store: CalendarStore = Depends(get_store),
):
    lang = "ar" if lang == "ar" else "en"
    slug = service.strip() or settings.default_service_slug
    booking_service = await _find_service(db, slug)
    if service.strip() and booking_service is None:
        raise HTTPException(status_code=404, detail=f"Service '{slug}' not found")

    nav = CalendarNavigator.from_query(request.query_params)
    extra = {"lang": lang}
    if service.strip():
        extra["service"] = slug

    context = {
        "nav": nav,
        "links": _navigation_links(nav, extra),
        "lang": lang,
        "day_labels": DAY_LABELS[lang],
        "picker_labels": PICKER_LABELS[lang],
        "service": booking_service,
        "statuses": BOOKING_STATUSES,
        "today": date.today(),
        "view": None,
        "error": None,
    }

    controller = CalendarController(
        store,
        nav,
        service_id=booking_service.id if booking_service else None,
        timeout=settings.store_timeout_seconds,
        auto_refresh=False,
    )
    try:
        context["view"] = await controller.refresh()
    except WindowLoadError as e:
        context["error"] = str(e)
        return templates.TemplateResponse(request, "calendar/week.html", context, status_code=503)
    finally:
        controller.close()

    return templates.TemplateResponse(request, "calendar/week.html", context)
