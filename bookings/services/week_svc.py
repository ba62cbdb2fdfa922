"""Week range builder - Monday-start window plus the hours it should show."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from .hours_svc import MalformedScheduleError, ResolvedDayHours, iso_weekday, resolve_day
from .store import CalendarStore, StoreError

logger = logging.getLogger(__name__)

# Failures that degrade a day to "open all day" instead of breaking the view.
RESOLVE_ERRORS = (StoreError, MalformedScheduleError, asyncio.TimeoutError, OSError)


class WindowLoadError(Exception):
    """The appointments for a window could not be fetched."""


def week_start(anchor: date | datetime) -> date:
    """Monday of the week containing ``anchor``; any time part is dropped."""
    if isinstance(anchor, datetime):
        anchor = anchor.date()
    return anchor - timedelta(days=iso_weekday(anchor) - 1)


@dataclass(frozen=True)
class CalendarWindow:
    start_date: date
    days: tuple[date, ...]

    @classmethod
    def for_anchor(cls, anchor: date | datetime) -> "CalendarWindow":
        start = week_start(anchor)
        return cls(start, tuple(start + timedelta(days=i) for i in range(7)))

    @classmethod
    def for_day(cls, day: date | datetime) -> "CalendarWindow":
        if isinstance(day, datetime):
            day = day.date()
        return cls(day, (day,))

    @property
    def end_date(self) -> date:
        return self.days[-1]

    def index_of(self, day: date) -> int | None:
        offset = (day - self.start_date).days
        return offset if 0 <= offset < len(self.days) else None

    def __contains__(self, day: object) -> bool:
        return isinstance(day, date) and self.index_of(day) is not None


@dataclass(frozen=True)
class VisibleHourRange:
    min_hour: int
    max_hour: int

    @property
    def hours(self) -> range:
        return range(self.min_hour, self.max_hour)


@dataclass(frozen=True)
class WeekHours:
    window: CalendarWindow
    hours: tuple[ResolvedDayHours, ...]
    visible_range: VisibleHourRange | None

    @property
    def has_fallback(self) -> bool:
        return any(h.is_fallback for h in self.hours)


def visible_range(hours: tuple[ResolvedDayHours, ...] | list[ResolvedDayHours]) -> VisibleHourRange | None:
    open_days = [h for h in hours if not h.is_closed]
    if not open_days:
        return None
    return VisibleHourRange(
        min(h.open_hour for h in open_days),
        max(h.close_hour for h in open_days),
    )


async def _resolve_or_fallback(
    store: CalendarStore, day: date, timeout: float | None
) -> ResolvedDayHours:
    try:
        return await asyncio.wait_for(resolve_day(store, day), timeout)
    except RESOLVE_ERRORS:
        logger.warning("Working hours for %s unavailable; showing the day as open", day, exc_info=True)
        return ResolvedDayHours.fallback(day)


async def resolve_window(
    store: CalendarStore, window: CalendarWindow, timeout: float | None = None
) -> WeekHours:
    hours = await asyncio.gather(
        *(_resolve_or_fallback(store, day, timeout) for day in window.days)
    )
    hours = tuple(hours)
    return WeekHours(window=window, hours=hours, visible_range=visible_range(hours))


async def build_window(
    store: CalendarStore, anchor: date | datetime, timeout: float | None = None
) -> WeekHours:
    """Resolve all seven days of the anchor's week concurrently."""
    return await resolve_window(store, CalendarWindow.for_anchor(anchor), timeout)


async def build_day(
    store: CalendarStore, day: date | datetime, timeout: float | None = None
) -> WeekHours:
    """Single-day window for the day view, with the same fallback rules."""
    return await resolve_window(store, CalendarWindow.for_day(day), timeout)
