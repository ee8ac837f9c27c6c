"""
Tests for booking endpoints.
"""

import pytest
from httpx import AsyncClient


async def _hold(client: AsyncClient, headers: dict, showtime_id: int, seats: list):
    return await client.post(
        "/api/v1/holds",
        json={"showtime_id": showtime_id, "seats": seats},
        headers=headers,
    )


async def _book(client: AsyncClient, headers: dict, showtime_id: int, seats: list, key: str = None):
    if key:
        headers = {**headers, "X-Idempotency-Key": key}
    return await client.post(
        "/api/v1/bookings",
        json={"showtime_id": showtime_id, "seats": seats},
        headers=headers,
    )


@pytest.mark.asyncio
async def test_book_held_seats(client: AsyncClient, auth_headers, showtime_id):
    await _hold(client, auth_headers, showtime_id, ["A1", "A2"])

    response = await _book(client, auth_headers, showtime_id, ["A1", "A2"])

    assert response.status_code == 201
    data = response.json()
    assert data["ok"] is True
    assert data["booking_id"] is not None
    assert [s["seat"] for s in data["booked"]] == ["1:1", "1:2"]

    availability = (await client.get(f"/api/v1/showtimes/{showtime_id}/availability")).json()
    assert availability["booked"] == 2


@pytest.mark.asyncio
async def test_book_without_hold_returns_409(client: AsyncClient, auth_headers, showtime_id):
    response = await _book(client, auth_headers, showtime_id, ["A3"])

    assert response.status_code == 409
    assert response.json()["failed"] == [{"seat": "1:3", "label": "A3", "reason": "not_locked"}]


@pytest.mark.asyncio
async def test_partial_booking_reports_each_seat(client: AsyncClient, auth_headers, other_headers, showtime_id):
    await _hold(client, auth_headers, showtime_id, ["A1"])
    await _hold(client, other_headers, showtime_id, ["A2"])

    response = await _book(client, auth_headers, showtime_id, ["A1", "A2"])

    assert response.status_code == 201
    data = response.json()
    assert data["ok"] is False
    assert [s["seat"] for s in data["booked"]] == ["1:1"]
    assert data["failed"] == [{"seat": "1:2", "label": "A2", "reason": "locked_by_other"}]


@pytest.mark.asyncio
async def test_booking_replay_with_idempotency_key(client: AsyncClient, auth_headers, showtime_id):
    await _hold(client, auth_headers, showtime_id, ["A1"])

    first = await _book(client, auth_headers, showtime_id, ["A1"], key="payment-42")
    second = await _book(client, auth_headers, showtime_id, ["A1"], key="payment-42")

    assert first.status_code == 201
    assert second.status_code == 201
    assert second.json()["booking_id"] == first.json()["booking_id"]


@pytest.mark.asyncio
async def test_list_and_cancel_bookings(client: AsyncClient, auth_headers, other_headers, showtime_id):
    await _hold(client, auth_headers, showtime_id, ["A1"])
    booking_id = (await _book(client, auth_headers, showtime_id, ["A1"])).json()["booking_id"]

    listed = await client.get("/api/v1/bookings", headers=auth_headers)
    assert listed.status_code == 200
    assert [b["id"] for b in listed.json()] == [booking_id]
    assert listed.json()[0]["seats"] == [{"seat": "1:1", "label": "A1"}]
    assert (await client.get("/api/v1/bookings", headers=other_headers)).json() == []

    not_yours = await client.delete(f"/api/v1/bookings/{booking_id}", headers=other_headers)
    assert not_yours.status_code == 404

    cancelled = await client.delete(f"/api/v1/bookings/{booking_id}", headers=auth_headers)
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "CANCELLED"

    again = await client.delete(f"/api/v1/bookings/{booking_id}", headers=auth_headers)
    assert again.status_code == 400

    availability = (await client.get(f"/api/v1/showtimes/{showtime_id}/availability")).json()
    assert availability["available"] == 3


@pytest.mark.asyncio
async def test_get_booking_by_id(client: AsyncClient, auth_headers, showtime_id):
    await _hold(client, auth_headers, showtime_id, ["A1", "A2"])
    booking_id = (await _book(client, auth_headers, showtime_id, ["A1", "A2"])).json()["booking_id"]

    response = await client.get(f"/api/v1/bookings/{booking_id}", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == booking_id
    assert data["showtime_id"] == showtime_id
    assert data["holder_id"] == "alice"
    assert data["status"] == "CONFIRMED"
    assert [s["seat"] for s in data["seats"]] == ["1:1", "1:2"]


@pytest.mark.asyncio
async def test_get_booking_of_other_holder_is_not_found(
    client: AsyncClient, auth_headers, other_headers, showtime_id
):
    await _hold(client, auth_headers, showtime_id, ["A1"])
    booking_id = (await _book(client, auth_headers, showtime_id, ["A1"])).json()["booking_id"]

    response = await client.get(f"/api/v1/bookings/{booking_id}", headers=other_headers)

    assert response.status_code == 404
    assert response.json()["code"] == "BOOKING_NOT_FOUND"


@pytest.mark.asyncio
async def test_get_booking_unauthenticated(client: AsyncClient):
    response = await client.get("/api/v1/bookings/1")
    assert response.status_code == 401
