"""BookingService and Booking models."""

from __future__ import annotations

import uuid
from datetime import date, datetime, time
from decimal import Decimal

from sqlalchemy import (
    Boolean, Date, DateTime, ForeignKey, Index, Numeric, String, Text, Time, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, UUIDMixin, TimestampMixin

BOOKING_STATUSES = (
    "submitted",
    "pending",
    "pending_payment",
    "confirmed",
    "in_progress",
    "completed",
    "cancelled",
    "approved",
    "rejected",
)


class BookingService(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "booking_service"

    slug: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    name_en: Mapped[str] = mapped_column(String(200))
    name_ar: Mapped[str] = mapped_column(String(200))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    bookings: Mapped[list["Booking"]] = relationship(back_populates="service")


class Booking(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "booking"
    __table_args__ = (
        Index("ix_booking_service_date", "service_id", "booking_date", "start_time"),
    )

    booking_reference: Mapped[str] = mapped_column(String(30), unique=True, index=True)
    service_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("booking_service.id", ondelete="CASCADE"), index=True
    )
    full_name_en: Mapped[str] = mapped_column(String(200))
    full_name_ar: Mapped[str | None] = mapped_column(String(200), default=None)
    email: Mapped[str] = mapped_column(String(255), index=True)
    phone: Mapped[str | None] = mapped_column(String(50), default=None)

    booking_date: Mapped[date | None] = mapped_column(Date, default=None)
    start_time: Mapped[time | None] = mapped_column(Time, default=None)
    end_time: Mapped[time | None] = mapped_column(Time, default=None)

    status: Mapped[str] = mapped_column(String(30), default="submitted")
    notes: Mapped[str | None] = mapped_column(Text, default=None)
    admin_notes: Mapped[str | None] = mapped_column(Text, default=None)
    assigned_admin_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("admin.id", ondelete="SET NULL"), default=None
    )
    fee_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), default=None)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)

    service: Mapped["BookingService"] = relationship(back_populates="bookings")
    assigned_admin: Mapped["Admin | None"] = relationship()  # noqa: F821

    @property
    def display_name_ar(self) -> str:
        return self.full_name_ar or self.full_name_en

    def __repr__(self) -> str:
        return f"<Booking {self.booking_reference!r} {self.status}>"
