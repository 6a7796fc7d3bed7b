"""
Catalogue, checkout, tickets and inspection over HTTP
"""
import pytest

from seatmarket.models import UserRole, ApprovalStatus
from tests.factories import create_user, create_event, login, seat_ids, gateway_return


@pytest.mark.asyncio
async def test_public_listing_hides_unapproved(client, db):
    organizer = await create_user(db, UserRole.ORGANIZER)
    approved = await create_event(db, organizer, name="Open Air")
    await create_event(db, organizer, name="Not Yet", status=ApprovalStatus.PENDING)

    response = await client.get("/api/v1/events")
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["events"][0]["id"] == approved.id

    response = await client.get(f"/api/v1/events/{approved.slug}")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_unknown_date_filter_rejected(client):
    response = await client.get("/api/v1/events", params={"date": "yesterday"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_missing_event_uses_error_shape(client):
    response = await client.get("/api/v1/events/no-such-event")
    assert response.status_code == 404
    assert response.json()["error"] == "EVENT_NOT_FOUND"


@pytest.mark.asyncio
async def test_event_seats(client, db):
    organizer = await create_user(db, UserRole.ORGANIZER)
    event = await create_event(db, organizer, rows=2, seats_per_row=3)

    response = await client.get(f"/api/v1/events/{event.id}/seats")
    assert response.status_code == 200
    body = response.json()
    assert len(body["areas"][0]["rows"]) == 2
    assert body["seat_status"] == {"sold_seat_ids": [], "held_seat_ids": []}


@pytest.mark.asyncio
async def test_checkout_flow(client, db):
    organizer = await create_user(db, UserRole.ORGANIZER)
    event = await create_event(db, organizer, price="250000")
    buyer_headers = await login(db, await create_user(db, UserRole.CUSTOMER, name="Buyer"))
    organizer_headers = await login(db, organizer)
    seats = (await seat_ids(db, event.id))[:2]

    response = await client.get(f"/api/v1/checkout/events/{event.id}", headers=buyer_headers)
    assert response.status_code == 200

    response = await client.post(
        "/api/v1/checkout/orders", json={"event_id": event.id, "seat_ids": seats}, headers=buyer_headers
    )
    assert response.status_code == 201
    order = response.json()
    assert order["payment_url"].startswith("http")
    assert float(order["total_amount"]) == 500000

    response = await client.get(
        "/api/v1/checkout/payment-return",
        params=gateway_return(order["order_id"], "500000"),
        headers=buyer_headers,
    )
    assert response.status_code == 200
    result = response.json()
    assert result["success"] is True
    assert result["order_status"] == "paid"
    assert result["ticket_count"] == 2

    response = await client.get("/api/v1/tickets", headers=buyer_headers)
    tickets = response.json()["items"]
    assert len(tickets) == 2
    assert all(t["qr_data"] for t in tickets)

    response = await client.post(
        "/api/v1/inspection/check-in", json={"qr_data": tickets[0]["qr_data"]}, headers=organizer_headers
    )
    assert response.status_code == 200
    assert response.json()["duplicate"] is False
    assert response.json()["ticket"]["status"] == "used"

    response = await client.get("/api/v1/orders", headers=buyer_headers)
    assert response.json()["total"] == 1


@pytest.mark.asyncio
async def test_conflicting_hold_reports_seats(client, db):
    organizer = await create_user(db, UserRole.ORGANIZER)
    event = await create_event(db, organizer)
    first = await login(db, await create_user(db, UserRole.CUSTOMER))
    second = await login(db, await create_user(db, UserRole.CUSTOMER))
    seats = await seat_ids(db, event.id)

    response = await client.post("/api/v1/checkout/orders", json={"event_id": event.id, "seat_ids": seats[:2]}, headers=first)
    assert response.status_code == 201

    response = await client.post("/api/v1/checkout/orders", json={"event_id": event.id, "seat_ids": seats[1:3]}, headers=second)
    assert response.status_code == 409
    assert response.json()["error"] == "SEATS_UNAVAILABLE"
    assert response.json()["unavailable_seat_ids"] == [seats[1]]


@pytest.mark.asyncio
async def test_tampered_return_rejected(client, db):
    organizer = await create_user(db, UserRole.ORGANIZER)
    event = await create_event(db, organizer)
    headers = await login(db, await create_user(db, UserRole.CUSTOMER))
    seats = (await seat_ids(db, event.id))[:1]

    order = (await client.post(
        "/api/v1/checkout/orders", json={"event_id": event.id, "seat_ids": seats}, headers=headers
    )).json()
    params = gateway_return(order["order_id"], "100000")
    params["vnp_Amount"] = "100"

    response = await client.get("/api/v1/checkout/payment-return", params=params, headers=headers)
    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_SIGNATURE"


@pytest.mark.asyncio
async def test_organizers_cannot_buy(client, db):
    organizer = await create_user(db, UserRole.ORGANIZER)
    event = await create_event(db, organizer)
    headers = await login(db, organizer)

    response = await client.post(
        "/api/v1/checkout/orders",
        json={"event_id": event.id, "seat_ids": (await seat_ids(db, event.id))[:1]},
        headers=headers,
    )
    assert response.status_code == 403
