"""FastAPI application for the booking back-office."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .config import settings

_logging_configured = False


def setup_logging() -> None:
    global _logging_configured
    if _logging_configured:
        return
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not settings.echo_sql:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
        logging.getLogger("httpx").setLevel(logging.WARNING)
    _logging_configured = True


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    settings.validate_runtime()
    # Auto-create tables for SQLite (local dev); PostgreSQL uses Alembic migrations
    if "sqlite" in settings.database_url:
        from .database import engine
        from .models import Base
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    yield


app = FastAPI(title=settings.app_title, lifespan=lifespan)

from .routers import bookings, calendar, health, hours, tracker  # noqa: E402

app.include_router(calendar.router)
app.include_router(bookings.router)
app.include_router(hours.router)
app.include_router(tracker.router)
app.include_router(health.router)
