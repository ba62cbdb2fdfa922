"""Admin membership checks for back-office requests."""

from __future__ import annotations

import hmac

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.admin import Admin


def email_for_token(provided: str, tokens: dict[str, str]) -> str | None:
    """Return the email registered for ``provided``, comparing in constant time."""
    if not provided:
        return None
    match = None
    for token, email in tokens.items():
        if hmac.compare_digest(provided.encode(), token.encode()):
            match = email
    return match


async def get_active_admin(db: AsyncSession, email: str) -> Admin | None:
    stmt = select(Admin).where(
        func.lower(Admin.email) == email.strip().lower(),
        Admin.is_active.is_(True),
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def list_admins(db: AsyncSession, *, active_only: bool = True) -> list[Admin]:
    stmt = select(Admin).order_by(Admin.email)
    if active_only:
        stmt = stmt.where(Admin.is_active.is_(True))
    return list((await db.execute(stmt)).scalars().all())
