"""Test bucketing appointments into the week grid."""

from __future__ import annotations

from datetime import date, time

import pytest

from bookings.services.grid_svc import map_to_grid, start_hour
from bookings.services.week_svc import build_window

MONDAY = date(2025, 6, 2)
WEDNESDAY = date(2025, 6, 4)
SATURDAY = date(2025, 6, 7)


def test_start_hour_floors(make_appointment):
    assert start_hour(make_appointment(MONDAY, time(9, 0))) == 9
    assert start_hour(make_appointment(MONDAY, time(9, 59))) == 9
    assert start_hour(make_appointment(MONDAY, time(10, 0))) == 10


@pytest.mark.asyncio
async def test_hour_boundaries_share_a_row(fake_store, make_appointment):
    fake_store.set_standard_week()
    week = await build_window(fake_store, MONDAY)
    on_the_hour = make_appointment(MONDAY, time(9, 0))
    late = make_appointment(MONDAY, time(9, 59))

    grid = map_to_grid([on_the_hour, late], week.window, week.hours, week.visible_range)

    assert grid.cell(9, 0) == [on_the_hour, late]
    assert grid.cell(8, 0) == []
    assert grid.cell(10, 0) == []


@pytest.mark.asyncio
async def test_rows_follow_visible_range(fake_store):
    fake_store.set_standard_week()
    week = await build_window(fake_store, MONDAY)
    grid = map_to_grid([], week.window, week.hours, week.visible_range)
    assert grid.rows == list(range(9, 17))
    assert not grid.is_empty


@pytest.mark.asyncio
async def test_booking_on_holiday_still_shown(fake_store, make_appointment):
    fake_store.set_standard_week()
    fake_store.set_override(WEDNESDAY, holiday=True)
    week = await build_window(fake_store, WEDNESDAY)
    booked = make_appointment(WEDNESDAY, time(10, 0))

    grid = map_to_grid([booked], week.window, week.hours, week.visible_range)

    assert grid.cell(10, 2) == [booked]
    assert not grid.is_open(10, 2)
    assert grid.is_open(10, 1)
    assert grid.has_bookings(2)
    assert not grid.has_bookings(1)


@pytest.mark.asyncio
async def test_out_of_hours_booking_extends_rows(fake_store, make_appointment):
    fake_store.set_standard_week()
    week = await build_window(fake_store, MONDAY)
    early = make_appointment(SATURDAY, time(7, 15))

    grid = map_to_grid([early], week.window, week.hours, week.visible_range)

    assert grid.rows == list(range(7, 17))
    assert grid.cell(7, 5) == [early]
    assert not grid.is_open(7, 5)


@pytest.mark.asyncio
async def test_late_booking_extends_rows_without_gaps(fake_store, make_appointment):
    fake_store.set_standard_week()
    week = await build_window(fake_store, MONDAY)
    late = make_appointment(SATURDAY, time(19, 45))

    grid = map_to_grid([late], week.window, week.hours, week.visible_range)

    assert grid.rows == list(range(9, 20))
    assert grid.cell(19, 5) == [late]


@pytest.mark.asyncio
async def test_empty_week_rows_span_bookings(fake_store, make_appointment):
    for weekday in range(1, 8):
        fake_store.set_weekday(weekday, active=False)
    week = await build_window(fake_store, MONDAY)
    morning = make_appointment(MONDAY, time(9, 0))
    evening = make_appointment(date(2025, 6, 3), time(12, 30))

    grid = map_to_grid([morning, evening], week.window, week.hours, week.visible_range)

    assert grid.is_empty
    assert grid.rows == [9, 10, 11, 12]


@pytest.mark.asyncio
async def test_out_of_window_bookings_dropped(fake_store, make_appointment):
    fake_store.set_standard_week()
    week = await build_window(fake_store, MONDAY)
    inside = make_appointment(MONDAY, time(11, 0))
    outside = make_appointment(date(2025, 6, 9), time(11, 0))

    grid = map_to_grid([inside, outside], week.window, week.hours, week.visible_range)

    assert grid.placed == [inside]
    assert grid.cell(11, 0) == [inside]


@pytest.mark.asyncio
async def test_empty_week_keeps_bookings(fake_store, make_appointment):
    for weekday in range(1, 8):
        fake_store.set_weekday(weekday, active=False)
    week = await build_window(fake_store, MONDAY)
    booked = make_appointment(MONDAY, time(14, 30))

    grid = map_to_grid([booked], week.window, week.hours, week.visible_range)

    assert grid.is_empty
    assert grid.rows == [14]
    assert grid.placed == [booked]
