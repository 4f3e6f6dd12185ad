"""
Tests for booking endpoints: creation, conflicts and lifecycle over HTTP.
"""

import pytest
from httpx import AsyncClient


async def _book(client: AsyncClient, headers: dict, **payload):
    return await client.post("/api/v1/bookings/", json=payload, headers=headers)


@pytest.mark.asyncio
async def test_book_restaurant(client: AsyncClient, customer_headers, restaurant, open_day):
    response = await _book(
        client, customer_headers,
        resource_id=restaurant.id,
        booking_date=open_day.isoformat(),
        start_time="19:30",
        quantity=4,
        request_text="Window table please",
    )
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["kind"] == "restaurant"
    assert data["start_time"] == "19:30"
    assert data["requester_id"] == 1
    assert data["warnings"] == []


@pytest.mark.asyncio
async def test_book_unauthenticated(client: AsyncClient, restaurant, open_day):
    response = await client.post(
        "/api/v1/bookings/",
        json={"resource_id": restaurant.id, "booking_date": open_day.isoformat(), "start_time": "19:00"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_book_closed_day(client: AsyncClient, customer_headers, restaurant, next_monday):
    response = await _book(
        client, customer_headers,
        resource_id=restaurant.id, booking_date=next_monday.isoformat(), start_time="19:00",
    )
    assert response.status_code == 422
    assert response.json() == {"detail": "Closed on Monday", "error": "AvailabilityError"}


@pytest.mark.asyncio
async def test_large_party_warning(client: AsyncClient, customer_headers, restaurant, open_day):
    response = await _book(
        client, customer_headers,
        resource_id=restaurant.id, booking_date=open_day.isoformat(), start_time="19:00", quantity=15,
    )
    assert response.status_code == 201
    assert len(response.json()["warnings"]) == 1


@pytest.mark.asyncio
async def test_zero_quantity_is_capacity_error(client: AsyncClient, customer_headers, activity, activity_days):
    response = await _book(
        client, customer_headers,
        resource_id=activity.id, booking_date=activity_days[0].isoformat(), quantity=0,
    )
    assert response.status_code == 422
    assert response.json()["error"] == "CapacityError"


@pytest.mark.asyncio
async def test_service_slot_conflict(
    client: AsyncClient, customer_headers, other_customer_headers, service, open_day
):
    service_id = service.id
    payload = {
        "resource_id": service_id,
        "booking_date": open_day.isoformat(),
        "start_time": "10:00",
        "duration_hours": 2,
    }
    first = await _book(client, customer_headers, **payload)
    assert first.status_code == 201

    second = await _book(client, other_customer_headers, **{**payload, "start_time": "11:00", "duration_hours": 1})
    assert second.status_code == 409
    assert second.json()["error"] == "ConflictError"

    slots = await client.get(
        f"/api/v1/resources/{service_id}/slots",
        params={"date": open_day.isoformat(), "duration_hours": 1},
    )
    assert "10:00" not in slots.json()["slots"]
    assert "12:00" in slots.json()["slots"]


@pytest.mark.asyncio
async def test_approve_restaurant_booking(client: AsyncClient, customer_headers, owner_headers, restaurant, open_day):
    created = await _book(
        client, customer_headers,
        resource_id=restaurant.id, booking_date=open_day.isoformat(), start_time="19:00",
    )
    booking_id = created.json()["id"]

    response = await client.post(f"/api/v1/bookings/{booking_id}/approve", headers=owner_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "approved"

    receipt = await client.get(f"/api/v1/bookings/{booking_id}/receipt-eligibility", headers=customer_headers)
    assert receipt.json() == {"booking_id": booking_id, "status": "approved", "eligible": True}


@pytest.mark.asyncio
async def test_customer_cannot_approve(client: AsyncClient, customer_headers, service, open_day):
    created = await _book(
        client, customer_headers,
        resource_id=service.id, booking_date=open_day.isoformat(), start_time="10:00", duration_hours=1,
    )
    booking_id = created.json()["id"]

    response = await client.post(f"/api/v1/bookings/{booking_id}/approve", headers=customer_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_reject_requires_reason(client: AsyncClient, customer_headers, owner_headers, restaurant, open_day):
    created = await _book(
        client, customer_headers,
        resource_id=restaurant.id, booking_date=open_day.isoformat(), start_time="19:00",
    )
    booking_id = created.json()["id"]

    missing = await client.post(f"/api/v1/bookings/{booking_id}/reject", json={}, headers=owner_headers)
    assert missing.status_code == 400
    assert missing.json()["error"] == "ValidationError"

    response = await client.post(
        f"/api/v1/bookings/{booking_id}/reject",
        json={"reason": "Private function that night"},
        headers=owner_headers,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "rejected"
    assert response.json()["rejection_reason"] == "Private function that night"


@pytest.mark.asyncio
async def test_cancel_booking(client: AsyncClient, customer_headers, activity, activity_days):
    activity_id = activity.id
    created = await _book(
        client, customer_headers,
        resource_id=activity_id, booking_date=activity_days[0].isoformat(), quantity=10,
    )
    booking_id = created.json()["id"]

    response = await client.post(f"/api/v1/bookings/{booking_id}/cancel", headers=customer_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"

    capacity = await client.get(
        f"/api/v1/resources/{activity_id}/capacity",
        params={"date": activity_days[0].isoformat()},
    )
    assert capacity.json()["remaining"] == 10


@pytest.mark.asyncio
async def test_cancel_already_cancelled(client: AsyncClient, customer_headers, restaurant, open_day):
    created = await _book(
        client, customer_headers,
        resource_id=restaurant.id, booking_date=open_day.isoformat(), start_time="19:00",
    )
    booking_id = created.json()["id"]

    await client.post(f"/api/v1/bookings/{booking_id}/cancel", headers=customer_headers)
    response = await client.post(f"/api/v1/bookings/{booking_id}/cancel", headers=customer_headers)
    assert response.status_code == 409
    assert response.json()["error"] == "StateTransitionError"


@pytest.mark.asyncio
async def test_event_booking_cannot_be_cancelled(client: AsyncClient, customer_headers, event, event_day):
    created = await _book(
        client, customer_headers,
        resource_id=event.id, booking_date=event_day.isoformat(), quantity=2,
    )
    booking_id = created.json()["id"]

    response = await client.post(f"/api/v1/bookings/{booking_id}/cancel", headers=customer_headers)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_owner_cancel_needs_reason(client: AsyncClient, customer_headers, owner_headers, service, open_day):
    created = await _book(
        client, customer_headers,
        resource_id=service.id, booking_date=open_day.isoformat(), start_time="14:00", duration_hours=1,
    )
    booking_id = created.json()["id"]

    response = await client.post(f"/api/v1/bookings/{booking_id}/cancel", headers=owner_headers)
    assert response.status_code == 400

    response = await client.post(
        f"/api/v1/bookings/{booking_id}/cancel",
        json={"reason": "Staff shortage"},
        headers=owner_headers,
    )
    assert response.status_code == 200
    assert response.json()["cancellation_reason"] == "Staff shortage"


@pytest.mark.asyncio
async def test_list_bookings(
    client: AsyncClient, customer_headers, other_customer_headers, owner_headers, restaurant, service, open_day
):
    restaurant_id, service_id = restaurant.id, service.id
    await _book(
        client, customer_headers,
        resource_id=restaurant_id, booking_date=open_day.isoformat(), start_time="19:00",
    )
    await _book(
        client, other_customer_headers,
        resource_id=service_id, booking_date=open_day.isoformat(), start_time="10:00", duration_hours=1,
    )

    mine = await client.get("/api/v1/bookings/", headers=customer_headers)
    assert [b["resource_id"] for b in mine.json()] == [restaurant_id]

    owned = await client.get("/api/v1/bookings/owner", headers=owner_headers)
    assert owned.status_code == 200
    assert len(owned.json()) == 2

    as_customer = await client.get("/api/v1/bookings/owner", headers=customer_headers)
    assert as_customer.status_code == 403


@pytest.mark.asyncio
async def test_booking_visible_to_requester_and_owner_only(
    client: AsyncClient, customer_headers, other_customer_headers, owner_headers, restaurant, open_day
):
    created = await _book(
        client, customer_headers,
        resource_id=restaurant.id, booking_date=open_day.isoformat(), start_time="19:00",
    )
    booking_id = created.json()["id"]

    assert (await client.get(f"/api/v1/bookings/{booking_id}", headers=customer_headers)).status_code == 200
    assert (await client.get(f"/api/v1/bookings/{booking_id}", headers=owner_headers)).status_code == 200
    assert (await client.get(f"/api/v1/bookings/{booking_id}", headers=other_customer_headers)).status_code == 403


@pytest.mark.asyncio
async def test_get_unknown_booking(client: AsyncClient, customer_headers):
    response = await client.get("/api/v1/bookings/9999", headers=customer_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_book_with_utc_offset_rejected(client: AsyncClient, customer_headers, restaurant, open_day):
    response = await _book(
        client, customer_headers,
        resource_id=restaurant.id, booking_date=open_day.isoformat(), start_time="19:30:00+02:00",
    )
    assert response.status_code == 422
