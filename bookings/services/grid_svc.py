"""Booking grid mapper - buckets appointments into (hour, day) cells."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .hours_svc import ResolvedDayHours
from .store import AppointmentSummary
from .week_svc import CalendarWindow, VisibleHourRange

logger = logging.getLogger(__name__)


def start_hour(appointment: AppointmentSummary) -> int:
    """Hour row of an appointment; 09:00 and 09:59 both land on 9."""
    return appointment.start_time.hour


@dataclass
class BookingGrid:
    window: CalendarWindow
    hours: tuple[ResolvedDayHours, ...]
    visible_range: VisibleHourRange | None
    cells: dict[tuple[int, int], list[AppointmentSummary]] = field(default_factory=dict)
    placed: list[AppointmentSummary] = field(default_factory=list)

    def cell(self, hour: int, day_index: int) -> list[AppointmentSummary]:
        return self.cells.get((hour, day_index), [])

    def is_open(self, hour: int, day_index: int) -> bool:
        """Whether the cell is inside working hours. Display only."""
        return self.hours[day_index].is_open_at(hour)

    def has_bookings(self, day_index: int) -> bool:
        return any(d == day_index for (_, d) in self.cells)

    @property
    def is_empty(self) -> bool:
        return self.visible_range is None

    @property
    def rows(self) -> list[int]:
        """Contiguous hour rows covering working hours and every placed booking."""
        booked = [h for (h, _) in self.cells]
        if self.visible_range is None:
            return list(range(min(booked), max(booked) + 1)) if booked else []
        low = min([self.visible_range.min_hour, *booked])
        high = max([self.visible_range.max_hour, *(h + 1 for h in booked)])
        return list(range(low, high))


def map_to_grid(
    appointments: list[AppointmentSummary],
    window: CalendarWindow,
    hours: tuple[ResolvedDayHours, ...],
    visible_range: VisibleHourRange | None = None,
) -> BookingGrid:
    grid = BookingGrid(window=window, hours=tuple(hours), visible_range=visible_range)
    for appt in appointments:
        day_index = window.index_of(appt.date)
        if day_index is None:
            logger.debug("Dropping %s dated %s outside window %s", appt.reference, appt.date, window.start_date)
            continue
        grid.cells.setdefault((start_hour(appt), day_index), []).append(appt)
        grid.placed.append(appt)
    return grid
