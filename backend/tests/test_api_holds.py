"""
Tests for hold endpoints.
"""

import pytest
from httpx import AsyncClient


async def _hold(client: AsyncClient, headers: dict, showtime_id: int, seats: list, **extra):
    return await client.post(
        "/api/v1/holds",
        json={"showtime_id": showtime_id, "seats": seats, **extra},
        headers=headers,
    )


@pytest.mark.asyncio
async def test_hold_accepts_any_seat_shape(client: AsyncClient, auth_headers, showtime_id):
    response = await _hold(client, auth_headers, showtime_id, ["A1", {"row": 1, "column": 2}, 3])

    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True
    assert [s["seat"] for s in data["held"]] == ["1:1", "1:2", "1:3"]
    assert data["conflicts"] == []
    assert data["expires_at"] is not None


@pytest.mark.asyncio
async def test_hold_conflict_returns_409(client: AsyncClient, auth_headers, other_headers, showtime_id):
    await _hold(client, auth_headers, showtime_id, ["1:1"])

    response = await _hold(client, other_headers, showtime_id, ["1:1", "1:2"])

    assert response.status_code == 409
    data = response.json()
    assert data["ok"] is False
    assert data["held"] == []
    assert data["conflicts"] == [{"seat": "1:1", "label": "A1"}]


@pytest.mark.asyncio
async def test_hold_unauthenticated(client: AsyncClient, showtime_id):
    response = await client.post("/api/v1/holds", json={"showtime_id": showtime_id, "seats": ["A1"]})
    assert response.status_code == 401
    assert response.json()["code"] == "MISSING_HOLDER"


@pytest.mark.asyncio
async def test_hold_with_invalid_token(client: AsyncClient, showtime_id):
    response = await _hold(client, {"Authorization": "Bearer not-a-jwt"}, showtime_id, ["A1"])
    assert response.status_code == 401


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "seats, status_code, code",
    [
        (["??"], 422, "INVALID_SEAT_FORMAT"),
        (["A1", "1:1"], 400, "INVALID_REQUEST"),
        (["9:9"], 404, "SEAT_NOT_FOUND"),
    ],
)
async def test_hold_bad_seats(client: AsyncClient, auth_headers, showtime_id, seats, status_code, code):
    response = await _hold(client, auth_headers, showtime_id, seats)
    assert response.status_code == status_code
    assert response.json()["code"] == code


@pytest.mark.asyncio
async def test_hold_ttl_above_maximum(client: AsyncClient, auth_headers, showtime_id):
    response = await _hold(client, auth_headers, showtime_id, ["A1"], ttl_seconds=100000)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_renew_hold(client: AsyncClient, auth_headers, showtime_id):
    first = await _hold(client, auth_headers, showtime_id, ["A1"], ttl_seconds=60)

    renewed = await client.put(
        "/api/v1/holds",
        json={"showtime_id": showtime_id, "seats": ["A1"], "ttl_seconds": 900},
        headers=auth_headers,
    )

    assert renewed.status_code == 200
    assert renewed.json()["expires_at"] > first.json()["expires_at"]


@pytest.mark.asyncio
async def test_release_hold(client: AsyncClient, auth_headers, other_headers, showtime_id):
    await _hold(client, auth_headers, showtime_id, ["A1", "A2"])

    response = await client.post(
        "/api/v1/holds/release",
        json={"showtime_id": showtime_id, "seats": ["A1"]},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["released"] == [{"seat": "1:1", "label": "A1"}]
    retake = await _hold(client, other_headers, showtime_id, ["A1"])
    assert retake.status_code == 200


@pytest.mark.asyncio
async def test_request_id_is_propagated(client: AsyncClient, showtime_id):
    response = await client.get(
        f"/api/v1/showtimes/{showtime_id}/seats", headers={"X-Request-ID": "trace-abc"}
    )
    assert response.headers["X-Request-ID"] == "trace-abc"
