"""Calendar navigation, date-picker state, and the calendar view controller."""

from __future__ import annotations

import asyncio
import calendar
import logging
import uuid
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Mapping

from . import booking_svc
from .grid_svc import BookingGrid, map_to_grid
from .store import AppointmentDetail, AppointmentSummary, CalendarStore, StoreError
from .week_svc import CalendarWindow, WeekHours, WindowLoadError, resolve_window

logger = logging.getLogger(__name__)

AnchorListener = Callable[[date], None]

VIEW_MODES = ("week", "day")
_STEP_DAYS = {"week": 7, "day": 1}


def _parse_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def _parse_month(value: str | None) -> date | None:
    if not value:
        return None
    try:
        year, month = value.strip()[:7].split("-")
        return date(int(year), int(month), 1)
    except ValueError:
        return None


class CalendarNavigator:
    """Anchor date, view mode and date-picker state for the calendar.

    Listeners registered with :meth:`subscribe` are called with the anchor
    whenever the anchor or the view mode changes.
    """

    def __init__(
        self,
        anchor: date | None = None,
        *,
        view: str = "week",
        clock: Callable[[], date] = date.today,
    ):
        if view not in VIEW_MODES:
            raise ValueError(f"Unknown calendar view: {view!r}")
        self._clock = clock
        self.anchor: date = anchor or clock()
        self.view = view
        self.picker_open = False
        self.picker_month: date = self.anchor.replace(day=1)
        self._listeners: list[AnchorListener] = []

    def subscribe(self, listener: AnchorListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.anchor)

    def _set_anchor(self, anchor: date) -> None:
        if anchor == self.anchor:
            return
        self.anchor = anchor
        self._notify()

    # -- transitions ------------------------------------------------------

    def today(self) -> None:
        self._set_anchor(self._clock())

    def previous_week(self) -> None:
        self._set_anchor(self.anchor - timedelta(days=7))

    def next_week(self) -> None:
        self._set_anchor(self.anchor + timedelta(days=7))

    def previous(self) -> None:
        """Step back one period of the current view."""
        self._set_anchor(self.anchor - timedelta(days=_STEP_DAYS[self.view]))

    def next(self) -> None:
        self._set_anchor(self.anchor + timedelta(days=_STEP_DAYS[self.view]))

    def set_view(self, view: str) -> None:
        if view not in VIEW_MODES:
            raise ValueError(f"Unknown calendar view: {view!r}")
        if view == self.view:
            return
        self.view = view
        self._notify()

    def open_picker(self) -> None:
        self.picker_month = self.anchor.replace(day=1)
        self.picker_open = True

    def close_picker(self) -> None:
        self.picker_open = False

    def select_day(self, day: int) -> None:
        picked = date(self.picker_month.year, self.picker_month.month, day)
        self.picker_open = False
        self._set_anchor(picked)

    def change_picker_month(self, delta: int) -> None:
        month_index = self.picker_month.year * 12 + (self.picker_month.month - 1) + delta
        self.picker_month = date(month_index // 12, month_index % 12 + 1, 1)

    # -- rendering helpers ------------------------------------------------

    def window(self) -> CalendarWindow:
        if self.view == "day":
            return CalendarWindow.for_day(self.anchor)
        return CalendarWindow.for_anchor(self.anchor)

    def month_grid(self) -> list[list[int | None]]:
        """Monday-first weeks of the picker month; other-month days are None."""
        cal = calendar.Calendar(firstweekday=calendar.MONDAY)
        weeks = cal.monthdayscalendar(self.picker_month.year, self.picker_month.month)
        return [[d or None for d in week] for week in weeks]

    def to_query(self) -> dict[str, str]:
        params = {"anchor": self.anchor.isoformat()}
        if self.view != "week":
            params["view"] = self.view
        if self.picker_open:
            params["picker"] = "1"
            params["month"] = self.picker_month.strftime("%Y-%m")
        return params

    @classmethod
    def from_query(
        cls, params: Mapping[str, str], *, clock: Callable[[], date] = date.today
    ) -> "CalendarNavigator":
        view = params.get("view")
        nav = cls(
            _parse_date(params.get("anchor")),
            view=view if view in VIEW_MODES else "week",
            clock=clock,
        )
        if params.get("picker") in ("1", "true", "yes"):
            nav.open_picker()
            month = _parse_month(params.get("month"))
            if month:
                nav.picker_month = month
        return nav

    def link(self, action: Callable[["CalendarNavigator"], None]) -> dict[str, str]:
        """Query params for the state ``action`` would produce, without applying it."""
        preview = CalendarNavigator(self.anchor, view=self.view, clock=self._clock)
        preview.picker_open = self.picker_open
        preview.picker_month = self.picker_month
        action(preview)
        return preview.to_query()


class MutationInFlight(RuntimeError):
    """A status change is already outstanding for this calendar."""


@dataclass(frozen=True)
class WeekView:
    """One loaded calendar window; a single day when ``mode`` is ``"day"``."""

    anchor: date
    week: WeekHours
    grid: BookingGrid
    appointments: tuple[AppointmentSummary, ...]
    mode: str = "week"


class CalendarController:
    """Loads calendar views for a navigator and applies status changes.

    Each anchor or view change schedules a refresh. Results from a refresh
    that was overtaken by a newer one, or that finish after :meth:`close`,
    are dropped. Changes made with no running event loop only mark the view
    stale; the next :meth:`refresh` picks them up.
    """

    def __init__(
        self,
        store: CalendarStore,
        navigator: CalendarNavigator,
        *,
        service_id: uuid.UUID | None = None,
        timeout: float | None = None,
        auto_refresh: bool = True,
    ):
        self.store = store
        self.navigator = navigator
        self.service_id = service_id
        self.timeout = timeout
        self.view: WeekView | None = None
        self.error: Exception | None = None
        self.stale = False
        self._generation = 0
        self._closed = False
        self._mutating = False
        self._tasks: set[asyncio.Task] = set()
        self._unsubscribe = navigator.subscribe(self._on_anchor_change) if auto_refresh else None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def mutating(self) -> bool:
        return self._mutating

    @property
    def idle(self) -> bool:
        return not self._tasks

    def _on_anchor_change(self, anchor: date) -> None:
        if self._closed:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running loop; calendar for %s marked stale", anchor)
            self.stale = True
            return
        task = loop.create_task(self._refresh_quietly())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _refresh_quietly(self) -> WeekView | None:
        try:
            return await self.refresh()
        except WindowLoadError:
            return None

    async def wait_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*self._tasks)

    async def _fetch_appointments(self, window: CalendarWindow) -> list[AppointmentSummary]:
        try:
            return await asyncio.wait_for(
                self.store.list_appointments(window.start_date, window.end_date, self.service_id),
                self.timeout,
            )
        except (StoreError, asyncio.TimeoutError, OSError) as exc:
            logger.error(
                "Appointment fetch for %s..%s failed", window.start_date, window.end_date, exc_info=True
            )
            if window.start_date == window.end_date:
                raise WindowLoadError(f"Could not load bookings for {window.start_date}") from exc
            raise WindowLoadError(f"Could not load bookings for the week of {window.start_date}") from exc

    def _is_stale(self, generation: int) -> bool:
        return self._closed or generation != self._generation

    async def refresh(self) -> WeekView | None:
        """Load the current anchor's window. Returns None if the result went stale."""
        self._generation += 1
        generation = self._generation
        anchor = self.navigator.anchor
        mode = self.navigator.view
        window = self.navigator.window()

        try:
            week, appointments = await asyncio.gather(
                resolve_window(self.store, window, self.timeout),
                self._fetch_appointments(window),
            )
        except WindowLoadError as exc:
            if self._is_stale(generation):
                return None
            self.error = exc
            raise

        if self._is_stale(generation):
            return None
        grid = map_to_grid(appointments, week.window, week.hours, week.visible_range)
        self.view = WeekView(
            anchor=anchor, week=week, grid=grid, appointments=tuple(appointments), mode=mode
        )
        self.error = None
        self.stale = False
        return self.view

    def close(self) -> None:
        self._closed = True
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None

    async def load_detail(self, booking_id: uuid.UUID) -> AppointmentDetail:
        return await booking_svc.load_detail(self.store, booking_id)

    async def set_status(self, booking_id: uuid.UUID, status: str) -> AppointmentDetail:
        """Apply one status change, then reload the whole window."""
        if self._mutating:
            raise MutationInFlight("A status change is already in progress")
        self._mutating = True
        try:
            detail = await booking_svc.set_status(self.store, booking_id, status)
        finally:
            self._mutating = False
        await self._refresh_quietly()
        return detail
