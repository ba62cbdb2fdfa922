"""Weekday default hours and per-date overrides."""

from __future__ import annotations

from datetime import date as date_type

from sqlalchemy import JSON, Boolean, Date, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, UUIDMixin, TimestampMixin


class WorkingHoursDefault(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "working_hours_config"

    day_of_week: Mapped[int] = mapped_column(Integer, unique=True, index=True)  # 1=Mon, 7=Sun
    day_name_en: Mapped[str] = mapped_column(String(20))
    day_name_ar: Mapped[str] = mapped_column(String(20))
    # HH:MM[:SS] text, as entered by staff
    start_time: Mapped[str] = mapped_column(String(8), default="09:00:00")
    end_time: Mapped[str] = mapped_column(String(8), default="17:00:00")
    last_appointment_time: Mapped[str] = mapped_column(String(8), default="16:30:00")
    slot_interval_minutes: Mapped[int] = mapped_column(Integer, default=30)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    def __repr__(self) -> str:
        return f"<WorkingHoursDefault day={self.day_of_week} active={self.is_active}>"


class DaySpecificHours(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "day_specific_hours"

    date: Mapped[date_type] = mapped_column(Date, unique=True, index=True)
    start_time: Mapped[str | None] = mapped_column(String(8), default=None)
    end_time: Mapped[str | None] = mapped_column(String(8), default=None)
    last_appointment_time: Mapped[str | None] = mapped_column(String(8), default=None)
    slot_interval_minutes: Mapped[int] = mapped_column(Integer, default=30)
    break_times: Mapped[list] = mapped_column(JSON, default=list)  # [{"start": "12:00", "end": "13:00"}]
    is_holiday: Mapped[bool] = mapped_column(Boolean, default=False)
    holiday_reason_en: Mapped[str | None] = mapped_column(String(200), default=None)
    holiday_reason_ar: Mapped[str | None] = mapped_column(String(200), default=None)

    def __repr__(self) -> str:
        return f"<DaySpecificHours {self.date} holiday={self.is_holiday}>"
