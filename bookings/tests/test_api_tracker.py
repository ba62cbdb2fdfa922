"""Test the public booking tracker."""

from __future__ import annotations

from datetime import date, time

import pytest
from httpx import AsyncClient

from bookings.config import settings


@pytest.mark.asyncio
async def test_track_by_reference(client: AsyncClient, make_booking):
    booking = await make_booking(date(2025, 6, 4), time(10, 0), status="confirmed")
    resp = await client.get("/track", params={"reference": booking.booking_reference.lower()})
    assert resp.status_code == 200
    results = resp.json()["results"]
    assert len(results) == 1
    assert results[0]["reference"] == booking.booking_reference
    assert results[0]["status"] == "confirmed"
    assert results[0]["start_time"] == "10:00"
    assert results[0]["service_en"] == "Wakala"


@pytest.mark.asyncio
async def test_track_by_email(client: AsyncClient, make_booking):
    await make_booking(date(2025, 6, 4), time(10, 0), email="amal@example.com")
    await make_booking(date(2025, 6, 5), time(10, 0), email="amal@example.com")
    resp = await client.get("/track", params={"email": "AMAL@example.com"})
    assert len(resp.json()["results"]) == 2


@pytest.mark.asyncio
async def test_track_respects_limit(client: AsyncClient, make_booking, monkeypatch):
    monkeypatch.setattr(settings, "tracker_result_limit", 1)
    await make_booking(date(2025, 6, 4), time(10, 0), email="amal@example.com")
    await make_booking(date(2025, 6, 5), time(10, 0), email="amal@example.com")
    resp = await client.get("/track", params={"email": "amal@example.com"})
    assert len(resp.json()["results"]) == 1


@pytest.mark.asyncio
async def test_track_requires_query(client: AsyncClient):
    resp = await client.get("/track")
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_track_is_public_when_admin_auth_on(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "admin_auth_required", True)
    monkeypatch.setattr(settings, "admin_access_tokens", "staff@example.com:secret")
    resp = await client.get("/track", params={"reference": "YCA-0000"})
    assert resp.status_code == 200
    assert resp.json() == {"results": []}
