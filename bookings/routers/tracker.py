"""Public booking tracker - look up a booking by reference or email."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..database import get_db
from ..services import booking_svc

router = APIRouter(tags=["tracker"])


@router.get("/track")
async def track_booking(
    reference: str = "",
    email: str = "",
    db: AsyncSession = Depends(get_db),
):
    try:
        found = await booking_svc.search_bookings(
            db, reference=reference, email=email, limit=settings.tracker_result_limit
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "results": [
            {
                "reference": b.booking_reference,
                "name_en": b.full_name_en,
                "name_ar": b.display_name_ar,
                "service_en": b.service.name_en if b.service else None,
                "service_ar": b.service.name_ar if b.service else None,
                "date": b.booking_date.isoformat() if b.booking_date else None,
                "start_time": b.start_time.strftime("%H:%M") if b.start_time else None,
                "end_time": b.end_time.strftime("%H:%M") if b.end_time else None,
                "status": b.status,
                "created_at": b.created_at.isoformat() if b.created_at else None,
            }
            for b in found
        ]
    }
