"""
Tests for showtime endpoints: creation, seat map, price override, availability.
"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_create_showtime(client: AsyncClient, auth_headers):
    """Creating a showtime lays out its seat map."""
    response = await client.post(
        "/api/v1/showtimes",
        json={
            "movie_title": "Metropolis",
            "rows": 2,
            "seats_per_row": 3,
            "base_price": "9.50",
            "row_types": {"B": "vip"},
            "type_prices": {"vip": "20.00"},
        },
        headers=auth_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["rows"] == 2
    assert data["seats_per_row"] == 3

    seats = await client.get(f"/api/v1/showtimes/{data['id']}/seats")
    assert seats.status_code == 200
    body = seats.json()
    assert [s["seat"] for s in body["seats"]] == ["1:1", "1:2", "1:3", "2:1", "2:2", "2:3"]
    assert body["seats"][3]["label"] == "B1"
    assert body["seats"][3]["seat_type"] == "vip"
    assert float(body["seats"][3]["price"]) == 20.0
    assert float(body["seats"][0]["price"]) == 9.5


@pytest.mark.asyncio
async def test_create_showtime_unauthenticated(client: AsyncClient):
    response = await client.post("/api/v1/showtimes", json={"rows": 1, "seats_per_row": 1})
    assert response.status_code == 401
    assert response.json()["code"] == "MISSING_HOLDER"


@pytest.mark.asyncio
async def test_create_showtime_rejects_empty_layout(client: AsyncClient, auth_headers):
    response = await client.post(
        "/api/v1/showtimes", json={"rows": 0, "seats_per_row": 5}, headers=auth_headers
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_unknown_showtime_returns_404(client: AsyncClient):
    response = await client.get("/api/v1/showtimes/99999/seats")
    assert response.status_code == 404
    assert response.json()["code"] == "SHOWTIME_NOT_FOUND"


@pytest.mark.asyncio
async def test_override_price(client: AsyncClient, auth_headers, showtime_id):
    response = await client.patch(
        f"/api/v1/showtimes/{showtime_id}/seats/A2",
        json={"price": "4.25"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["seat"] == "1:2"

    seats = (await client.get(f"/api/v1/showtimes/{showtime_id}/seats")).json()["seats"]
    assert float(seats[1]["price"]) == 4.25


@pytest.mark.asyncio
async def test_override_price_unknown_seat(client: AsyncClient, auth_headers, showtime_id):
    response = await client.patch(
        f"/api/v1/showtimes/{showtime_id}/seats/9:9",
        json={"price": "1.00"},
        headers=auth_headers,
    )
    assert response.status_code == 404
    assert response.json()["code"] == "SEAT_NOT_FOUND"


@pytest.mark.asyncio
async def test_availability_counts(client: AsyncClient, auth_headers, showtime_id):
    await client.post(
        "/api/v1/holds",
        json={"showtime_id": showtime_id, "seats": ["1:1"]},
        headers=auth_headers,
    )

    response = await client.get(f"/api/v1/showtimes/{showtime_id}/availability")

    assert response.status_code == 200
    data = response.json()
    assert (data["available"], data["held"], data["booked"]) == (2, 1, 0)
    assert data["seats"][0] == {"seat": "1:1", "label": "A1", "status": "HELD"}


@pytest.mark.asyncio
async def test_health_and_metrics(client: AsyncClient):
    health = await client.get("/health")
    assert health.status_code == 200
    assert health.json()["hold_store"] == "sql"
    assert health.json()["cache"] == {"status": "disabled"}

    metrics = await client.get("/metrics")
    assert metrics.status_code == 200
    assert "hold_attempts_total" in metrics.text
