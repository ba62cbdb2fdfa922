"""Liveness and readiness for the booking service.

Readiness also reports how many weekdays have default working hours. Days
without a row render as closed, so fewer than seven is reported as
``degraded`` while the endpoint still answers 200.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models.schedule import WorkingHoursDefault

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    await db.execute(text("SELECT 1"))
    return {"status": "healthy", "service": "bookings"}


@router.get("/ready")
async def readiness_check(db: AsyncSession = Depends(get_db)):
    defaults = (await db.execute(select(func.count(WorkingHoursDefault.id)))).scalar_one()
    return {
        "status": "ready" if defaults == 7 else "degraded",
        "service": "bookings",
        "weekday_defaults": defaults,
    }
