"""Working-hours service - per-date resolution, defaults, and overrides."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time, timedelta

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.schedule import DaySpecificHours, WorkingHoursDefault
from ..schemas.hours import DayHoursConfig, DefaultHoursUpdate
from .store import CalendarStore

DAY_NAMES = {
    1: ("Monday", "الاثنين"),
    2: ("Tuesday", "الثلاثاء"),
    3: ("Wednesday", "الأربعاء"),
    4: ("Thursday", "الخميس"),
    5: ("Friday", "الجمعة"),
    6: ("Saturday", "السبت"),
    7: ("Sunday", "الأحد"),
}


class MalformedScheduleError(ValueError):
    """A schedule row is missing its hours or they cannot be parsed."""


def to_monday_first(native_weekday: int) -> int:
    """Map a Sunday=0..Saturday=6 weekday onto Monday=1..Sunday=7."""
    if not 0 <= native_weekday <= 6:
        raise ValueError(f"weekday out of range: {native_weekday}")
    return 7 if native_weekday == 0 else native_weekday


def iso_weekday(day: date) -> int:
    return to_monday_first((day.weekday() + 1) % 7)


@dataclass(frozen=True)
class ResolvedDayHours:
    date: date
    open_hour: int
    close_hour: int
    is_holiday: bool = False
    is_inactive: bool = False
    is_fallback: bool = False

    @property
    def is_closed(self) -> bool:
        return self.is_holiday or self.is_inactive

    def is_open_at(self, hour: int) -> bool:
        return not self.is_closed and self.open_hour <= hour < self.close_hour

    @classmethod
    def holiday(cls, day: date) -> "ResolvedDayHours":
        return cls(day, 0, 0, is_holiday=True)

    @classmethod
    def inactive(cls, day: date) -> "ResolvedDayHours":
        return cls(day, 0, 0, is_inactive=True)

    @classmethod
    def fallback(cls, day: date) -> "ResolvedDayHours":
        """Fully open day used when the schedule could not be read."""
        return cls(day, 0, 24, is_fallback=True)


def parse_hours(start: str | None, end: str | None) -> tuple[int, int]:
    """Return (open_hour, close_hour); a closing time past the hour rounds up."""
    if not start or not end:
        raise MalformedScheduleError("schedule row has no start/end time")
    try:
        opens = time.fromisoformat(start.strip())
        closes = time.fromisoformat(end.strip())
    except ValueError as exc:
        raise MalformedScheduleError(f"unparsable schedule time {start!r}-{end!r}") from exc
    close_hour = closes.hour + (1 if (closes.minute or closes.second) else 0)
    return opens.hour, close_hour


async def resolve_day(store: CalendarStore, day: date) -> ResolvedDayHours:
    """Working hours for one date: override first, then the weekday default."""
    override = await store.get_override(day)
    if override is not None:
        if override.is_holiday:
            return ResolvedDayHours.holiday(day)
        open_hour, close_hour = parse_hours(override.start_time, override.end_time)
        return ResolvedDayHours(day, open_hour, close_hour)

    default = await store.get_default(iso_weekday(day))
    if default is not None and default.is_active:
        open_hour, close_hour = parse_hours(default.start_time, default.end_time)
        return ResolvedDayHours(day, open_hour, close_hour)

    return ResolvedDayHours.inactive(day)


# ---------------------------------------------------------------------------
# Weekday defaults
# ---------------------------------------------------------------------------


async def list_defaults(db: AsyncSession) -> list[WorkingHoursDefault]:
    stmt = select(WorkingHoursDefault).order_by(WorkingHoursDefault.day_of_week)
    return list((await db.execute(stmt)).scalars().all())


async def get_default(db: AsyncSession, weekday: int) -> WorkingHoursDefault | None:
    stmt = select(WorkingHoursDefault).where(WorkingHoursDefault.day_of_week == weekday)
    return (await db.execute(stmt)).scalar_one_or_none()


async def seed_defaults(db: AsyncSession) -> int:
    """Create missing weekday rows: Mon-Fri 09:00-17:00, weekend closed."""
    existing = {d.day_of_week for d in await list_defaults(db)}
    created = 0
    for weekday, (name_en, name_ar) in DAY_NAMES.items():
        if weekday in existing:
            continue
        db.add(WorkingHoursDefault(
            day_of_week=weekday,
            day_name_en=name_en,
            day_name_ar=name_ar,
            start_time="09:00:00",
            end_time="17:00:00",
            last_appointment_time="16:30:00",
            slot_interval_minutes=30,
            is_active=weekday <= 5,
        ))
        created += 1
    if created:
        await db.commit()
    return created


async def update_defaults(
    db: AsyncSession, weekdays: set[int], update: DefaultHoursUpdate
) -> int:
    """Apply the same hours to every listed weekday. Returns rows changed."""
    if not weekdays:
        raise ValueError("Select at least one day")
    bad = [w for w in weekdays if w not in DAY_NAMES]
    if bad:
        raise ValueError(f"Unknown weekday(s): {sorted(bad)}")

    stmt = select(WorkingHoursDefault).where(WorkingHoursDefault.day_of_week.in_(weekdays))
    rows = list((await db.execute(stmt)).scalars().all())
    for row in rows:
        row.start_time = update.start_time
        row.end_time = update.end_time
        row.last_appointment_time = update.last_appointment_time
        row.slot_interval_minutes = update.slot_interval_minutes
    await db.commit()
    return len(rows)


async def set_default_active(db: AsyncSession, weekday: int, is_active: bool) -> bool:
    row = await get_default(db, weekday)
    if not row:
        return False
    row.is_active = is_active
    await db.commit()
    return True


# ---------------------------------------------------------------------------
# Per-date overrides
# ---------------------------------------------------------------------------


def _dates_in_range(start: date, end: date) -> list[date]:
    if end < start:
        raise ValueError("End date must not be before start date")
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


async def get_override(db: AsyncSession, day: date) -> DaySpecificHours | None:
    stmt = select(DaySpecificHours).where(DaySpecificHours.date == day)
    return (await db.execute(stmt)).scalar_one_or_none()


async def get_day_config(db: AsyncSession, day: date) -> DayHoursConfig:
    """Config an admin would edit for ``day``: its override, else the default."""
    override = await get_override(db, day)
    if override:
        return DayHoursConfig.model_validate({
            "start_time": override.start_time or "10:00:00",
            "end_time": override.end_time or "14:30:00",
            "last_appointment_time": override.last_appointment_time or override.end_time or "14:00:00",
            "slot_interval_minutes": override.slot_interval_minutes,
            "break_times": override.break_times or [],
            "is_holiday": override.is_holiday,
            "holiday_reason_en": override.holiday_reason_en or "",
            "holiday_reason_ar": override.holiday_reason_ar or "",
        })

    default = await get_default(db, iso_weekday(day))
    if default:
        return DayHoursConfig.model_validate({
            "start_time": default.start_time,
            "end_time": default.end_time,
            "last_appointment_time": default.last_appointment_time,
            "slot_interval_minutes": default.slot_interval_minutes,
            "is_holiday": not default.is_active,
        })
    return DayHoursConfig(is_holiday=True)


async def save_overrides(
    db: AsyncSession, start: date, end: date, config: DayHoursConfig
) -> int:
    """Upsert one override per date in [start, end]."""
    days = _dates_in_range(start, end)
    stmt = select(DaySpecificHours).where(
        DaySpecificHours.date >= start, DaySpecificHours.date <= end
    )
    existing = {o.date: o for o in (await db.execute(stmt)).scalars().all()}

    values = {
        "start_time": config.start_time,
        "end_time": config.end_time,
        "last_appointment_time": config.last_appointment_time,
        "slot_interval_minutes": config.slot_interval_minutes,
        "break_times": [bt.model_dump() for bt in config.break_times],
        "is_holiday": config.is_holiday,
        "holiday_reason_en": config.holiday_reason_en or None,
        "holiday_reason_ar": config.holiday_reason_ar or None,
    }
    for day in days:
        row = existing.get(day)
        if row is None:
            db.add(DaySpecificHours(date=day, **values))
        else:
            for k, v in values.items():
                setattr(row, k, v)
    await db.commit()
    return len(days)


async def reset_overrides(db: AsyncSession, start: date, end: date) -> int:
    """Drop overrides in [start, end] so those dates follow the defaults again."""
    _dates_in_range(start, end)
    stmt = delete(DaySpecificHours).where(
        DaySpecificHours.date >= start, DaySpecificHours.date <= end
    )
    result = await db.execute(stmt)
    await db.commit()
    return result.rowcount or 0
