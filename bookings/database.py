"""Booking database engine and session factories.

The calendar opens one session per concurrent read, so route handlers get
either a request-scoped session (:func:`get_db`) or the factory itself
(:func:`get_session_factory`).
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from .config import settings


def engine_options(url: str) -> dict:
    """Driver-specific engine options.

    SQLite waits on a locked file instead of failing the week's parallel
    reads; server databases drop dead pooled connections before use.
    """
    if url.startswith("sqlite"):
        return {"connect_args": {"timeout": 30}}
    return {"pool_pre_ping": True}


engine = create_async_engine(
    settings.database_url, echo=settings.echo_sql, **engine_options(settings.database_url)
)
async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db():
    async with async_session_factory() as session:
        yield session


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return async_session_factory
