"""
Tests for resource endpoints: directory and availability views.
"""

from datetime import date, timedelta

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_owner_creates_restaurant(client: AsyncClient, owner_headers):
    response = await client.post(
        "/api/v1/resources/",
        json={
            "kind": "restaurant",
            "name": "Chez Test",
            "capacity": 30,
            "open_time": "11:30",
            "close_time": "22:00",
            "closed_weekdays": ["sunday", "Monday"],
        },
        headers=owner_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["kind"] == "restaurant"
    assert data["owner_id"] == 100
    assert data["open_time"] == "11:30"
    assert data["close_time"] == "22:00"
    assert data["closed_weekdays"] == ["Monday", "Sunday"]


@pytest.mark.asyncio
async def test_customer_cannot_create_resource(client: AsyncClient, customer_headers):
    response = await client.post(
        "/api/v1/resources/",
        json={"kind": "event", "name": "Gig", "capacity": 10, "offered_dates": ["2030-05-01"]},
        headers=customer_headers,
    )
    assert response.status_code == 403
    assert response.json()["error"] == "PermissionDeniedError"


@pytest.mark.asyncio
async def test_missing_actor_headers(client: AsyncClient):
    response = await client.post(
        "/api/v1/resources/",
        json={"kind": "event", "name": "Gig", "capacity": 10, "offered_dates": ["2030-05-01"]},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_overnight_hours_refused(client: AsyncClient, owner_headers):
    response = await client.post(
        "/api/v1/resources/",
        json={"kind": "restaurant", "name": "Late Bar", "capacity": 10, "open_time": "20:00", "close_time": "02:00"},
        headers=owner_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_event_needs_exactly_one_date(client: AsyncClient, owner_headers):
    response = await client.post(
        "/api/v1/resources/",
        json={"kind": "event", "name": "Festival", "capacity": 100, "offered_dates": ["2030-05-01", "2030-05-02"]},
        headers=owner_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_service_capacity_forced_to_one(client: AsyncClient, owner_headers):
    response = await client.post(
        "/api/v1/resources/",
        json={"kind": "service", "name": "Haircut", "capacity": 5, "open_time": "09:00", "close_time": "17:00"},
        headers=owner_headers,
    )
    assert response.status_code == 201
    assert response.json()["capacity"] == 1


@pytest.mark.asyncio
async def test_unknown_weekday_rejected(client: AsyncClient, owner_headers):
    response = await client.post(
        "/api/v1/resources/",
        json={
            "kind": "restaurant",
            "name": "Odd Hours",
            "open_time": "09:00",
            "close_time": "17:00",
            "closed_weekdays": ["Funday"],
        },
        headers=owner_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_resources_filtered_by_kind(client: AsyncClient, restaurant, service, activity):
    response = await client.get("/api/v1/resources/?kind=service")
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["resources"][0]["kind"] == "service"
    assert data["cached"] is False

    everything = await client.get("/api/v1/resources/")
    assert everything.json()["total"] == 3


@pytest.mark.asyncio
async def test_get_unknown_resource(client: AsyncClient):
    response = await client.get("/api/v1/resources/9999")
    assert response.status_code == 404
    assert response.json()["error"] == "NotFoundError"


@pytest.mark.asyncio
async def test_availability_closed_day(client: AsyncClient, restaurant, next_monday):
    response = await client.get(
        f"/api/v1/resources/{restaurant.id}/availability",
        params={"date": next_monday.isoformat(), "time": "19:00"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is False
    assert data["reason"] == "Closed on Monday"
    assert data["error"] == "AvailabilityError"


@pytest.mark.asyncio
async def test_availability_open(client: AsyncClient, restaurant, open_day):
    response = await client.get(
        f"/api/v1/resources/{restaurant.id}/availability",
        params={"date": open_day.isoformat(), "time": "19:00"},
    )
    assert response.json()["ok"] is True


@pytest.mark.asyncio
async def test_service_slots(client: AsyncClient, service, open_day):
    response = await client.get(
        f"/api/v1/resources/{service.id}/slots",
        params={"date": open_day.isoformat(), "duration_hours": 2},
    )
    assert response.status_code == 200
    slots = response.json()["slots"]
    assert slots[0] == "09:00"
    assert slots[-1] == "15:00"
    assert len(slots) == 13


@pytest.mark.asyncio
async def test_slots_on_closed_day_are_empty(client: AsyncClient, service, next_saturday):
    response = await client.get(
        f"/api/v1/resources/{service.id}/slots",
        params={"date": next_saturday.isoformat(), "duration_hours": 1},
    )
    assert response.status_code == 200
    assert response.json()["slots"] == []


@pytest.mark.asyncio
async def test_event_capacity(client: AsyncClient, event):
    response = await client.get(f"/api/v1/resources/{event.id}/capacity")
    assert response.status_code == 200
    data = response.json()
    assert data["capacity"] == 50
    assert data["remaining"] == 50
    assert data["sold_out"] is False


@pytest.mark.asyncio
async def test_resource_bookings_owner_only(client: AsyncClient, restaurant, owner_headers, other_owner_headers):
    restaurant_id = restaurant.id

    response = await client.get(f"/api/v1/resources/{restaurant_id}/bookings", headers=owner_headers)
    assert response.status_code == 200
    assert response.json() == []

    response = await client.get(f"/api/v1/resources/{restaurant_id}/bookings", headers=other_owner_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_availability_with_utc_offset(client: AsyncClient, restaurant, open_day):
    response = await client.get(
        f"/api/v1/resources/{restaurant.id}/availability",
        params={"date": open_day.isoformat(), "time": "19:30:00+02:00"},
    )
    assert response.status_code == 200
    assert response.json()["ok"] is False
    assert response.json()["error"] == "ValidationError"


@pytest.mark.asyncio
async def test_slots_for_past_date(client: AsyncClient, service):
    response = await client.get(
        f"/api/v1/resources/{service.id}/slots",
        params={"date": (date.today() - timedelta(days=1)).isoformat(), "duration_hours": 1},
    )
    assert response.status_code == 200
    assert response.json()["slots"] == []
