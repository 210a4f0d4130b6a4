"""
Tests for direct (unpaid) bookings, including the sold-out rejection.
"""

import pytest
from httpx import AsyncClient

from conftest import BOOKING_HEADER, booking_rows, spots_remaining

COLUMN = {name: index for index, name in enumerate(BOOKING_HEADER)}

DIRECT = {
    "eventId": "NBRH001",
    "eventName": "Paddleboard Taster",
    "customerName": "Alex Moor",
    "customerEmail": "alex@example.com",
    "skillLevel": "Advanced",
    "addons": ["Lunch"],
}


@pytest.mark.asyncio
async def test_direct_booking(client: AsyncClient, backend):
    """Successful direct booking records the row and takes a spot."""
    response = await client.post("/api/create-direct-booking", json=DIRECT)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["bookingId"].startswith("BK")
    assert data["redirectUrl"] == (
        f"https://bookings.example.test/success.html?booking_id={data['bookingId']}"
    )

    rows = booking_rows(backend)
    assert len(rows) == 1
    row = rows[0]
    assert row[COLUMN["booking_id"]] == data["bookingId"]
    assert row[COLUMN["stripe_payment_id"]] == "DIRECT_BOOKING"
    assert row[COLUMN["status"]] == "Confirmed"
    assert row[COLUMN["amount_paid"]] == "0.00"
    assert row[COLUMN["addons_selected"]] == "Lunch"
    assert row[COLUMN["skill_level"]] == "Advanced"
    assert row[COLUMN["event_date"]] == "30/01/2025"
    assert spots_remaining(backend, "NBRH001") == 4


@pytest.mark.asyncio
async def test_direct_booking_ids_are_unique(client: AsyncClient, backend):
    first = await client.post("/api/create-direct-booking", json=DIRECT)
    second = await client.post("/api/create-direct-booking", json=DIRECT)

    assert first.json()["bookingId"] != second.json()["bookingId"]
    assert len(booking_rows(backend)) == 2
    assert spots_remaining(backend, "NBRH001") == 3


@pytest.mark.asyncio
async def test_direct_booking_sold_out(client: AsyncClient, backend):
    """Sold-out session returns 409 and writes nothing."""
    response = await client.post("/api/create-direct-booking", json=dict(DIRECT, eventId="NBRH002"))

    assert response.status_code == 409
    assert response.json() == {"detail": "No spots remaining for this session"}
    assert booking_rows(backend) == []
    assert spots_remaining(backend, "NBRH002") == "0"


@pytest.mark.asyncio
async def test_direct_booking_takes_last_spot(client: AsyncClient, backend):
    for _ in range(5):
        response = await client.post("/api/create-direct-booking", json=DIRECT)
        assert response.status_code == 200

    response = await client.post("/api/create-direct-booking", json=DIRECT)

    assert response.status_code == 409
    assert len(booking_rows(backend)) == 5
    assert spots_remaining(backend, "NBRH001") == 0


@pytest.mark.asyncio
async def test_direct_booking_unknown_event(client: AsyncClient, backend):
    response = await client.post("/api/create-direct-booking", json=dict(DIRECT, eventId="NBRH404"))

    assert response.status_code == 404
    assert response.json() == {"detail": "Event not found with ID: NBRH404"}
    assert booking_rows(backend) == []


@pytest.mark.asyncio
async def test_direct_booking_requires_skill_level(client: AsyncClient, backend):
    payload = {k: v for k, v in DIRECT.items() if k != "skillLevel"}

    response = await client.post("/api/create-direct-booking", json=payload)

    assert response.status_code == 400
    assert booking_rows(backend) == []


@pytest.mark.asyncio
async def test_direct_booking_preflight(client: AsyncClient):
    response = await client.options("/api/create-direct-booking")
    assert response.status_code == 200
