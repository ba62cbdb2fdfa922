"""FastAPI dependencies for the booking back-office."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .config import settings
from .database import get_db, get_session_factory
from .models.admin import Admin
from .services import auth_svc
from .services.store import CalendarStore, SqlCalendarStore


def get_store(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> CalendarStore:
    return SqlCalendarStore(session_factory)


async def require_admin(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Admin | None:
    """Allow the request only for an active admin when admin auth is enabled."""
    if not settings.admin_auth_required:
        return None

    provided_token = request.headers.get(settings.admin_token_header, "").strip()
    if not provided_token:
        raise HTTPException(status_code=401, detail="Admin access token required")

    email = auth_svc.email_for_token(provided_token, settings.admin_access_tokens_map)
    if not email:
        raise HTTPException(status_code=403, detail="Invalid admin access token")

    admin = await auth_svc.get_active_admin(db, email)
    if not admin:
        raise HTTPException(status_code=403, detail="Not an active admin")
    return admin
