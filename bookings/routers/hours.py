"""Working-hours admin routes - weekday defaults and per-date overrides."""

from __future__ import annotations

import json
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..deps import require_admin
from ..schemas.hours import DayHoursConfig, DefaultHoursResponse, DefaultHoursUpdate
from ..services import hours_svc

router = APIRouter(tags=["hours"], dependencies=[Depends(require_admin)])


def _validation_detail(exc: ValidationError) -> list[str]:
    return [err["msg"] for err in exc.errors()]


def _required_date(value: str | None, field: str) -> date:
    try:
        return date.fromisoformat((value or "").strip())
    except ValueError:
        raise HTTPException(status_code=422, detail=f"{field} must be a YYYY-MM-DD date")


@router.get("/admin/hours")
async def hours_overview(
    day: str = "",
    db: AsyncSession = Depends(get_db),
):
    selected = _required_date(day, "day") if day else date.today()
    defaults = await hours_svc.list_defaults(db)
    config = await hours_svc.get_day_config(db, selected)
    return {
        "defaults": [DefaultHoursResponse.model_validate(d).model_dump() for d in defaults],
        "date": selected.isoformat(),
        "config": config.model_dump(),
    }


@router.post("/admin/hours/defaults")
async def hours_update_defaults(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    form = await request.form()
    try:
        weekdays = {int(w) for w in form.getlist("weekday")}
    except ValueError:
        raise HTTPException(status_code=422, detail="weekday must be 1-7")

    try:
        update = DefaultHoursUpdate(
            start_time=form.get("start_time", ""),
            end_time=form.get("end_time", ""),
            last_appointment_time=form.get("last_appointment_time", ""),
            slot_interval_minutes=form.get("slot_interval_minutes", "30"),
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=_validation_detail(e))

    try:
        updated = await hours_svc.update_defaults(db, weekdays, update)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"updated": updated}


@router.post("/admin/hours/defaults/{weekday}/active")
async def hours_toggle_default(
    request: Request,
    weekday: int,
    db: AsyncSession = Depends(get_db),
):
    form = await request.form()
    is_active = form.get("is_active") in ("on", "true", "1")
    if not await hours_svc.set_default_active(db, weekday, is_active):
        raise HTTPException(status_code=404, detail=f"No default hours for weekday {weekday}")
    return {"weekday": weekday, "is_active": is_active}


@router.post("/admin/hours/overrides")
async def hours_save_overrides(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    form = await request.form()
    start = _required_date(form.get("start_date"), "start_date")
    end = _required_date(form.get("end_date") or form.get("start_date"), "end_date")

    try:
        breaks = json.loads(form.get("break_times") or "[]")
    except json.JSONDecodeError:
        raise HTTPException(status_code=422, detail="break_times must be a JSON list")

    data = {
        "start_time": form.get("start_time") or "10:00",
        "end_time": form.get("end_time") or "14:30",
        "last_appointment_time": form.get("last_appointment_time") or "14:00",
        "slot_interval_minutes": form.get("slot_interval_minutes") or "30",
        "break_times": breaks,
        "is_holiday": form.get("is_holiday") in ("on", "true", "1"),
        "holiday_reason_en": form.get("holiday_reason_en", "").strip(),
        "holiday_reason_ar": form.get("holiday_reason_ar", "").strip(),
    }
    try:
        config = DayHoursConfig.model_validate(data)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=_validation_detail(e))

    try:
        saved = await hours_svc.save_overrides(db, start, end, config)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"saved": saved}


@router.post("/admin/hours/overrides/reset")
async def hours_reset_overrides(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    form = await request.form()
    start = _required_date(form.get("start_date"), "start_date")
    end = _required_date(form.get("end_date") or form.get("start_date"), "end_date")
    try:
        removed = await hours_svc.reset_overrides(db, start, end)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"removed": removed}
