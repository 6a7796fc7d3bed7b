"""
Live seat updates: snapshot on connect, ping, and checkout broadcasts
"""
import json

import pytest
import pytest_asyncio

from seatmarket.api import websocket as websocket_api
from seatmarket.models import UserRole
from seatmarket.services.checkout_service import CheckoutService
from seatmarket.services.websocket_manager import manager
from tests.factories import create_user, create_event, seat_ids, gateway_return, FakeSocket


@pytest_asyncio.fixture
async def event(db):
    organizer = await create_user(db, UserRole.ORGANIZER, name="Organizer")
    return await create_event(db, organizer)


@pytest_asyncio.fixture
async def buyer(db):
    return await create_user(db, UserRole.CUSTOMER, name="Buyer")


@pytest_asyncio.fixture
async def listener(event):
    socket = FakeSocket()
    await manager.connect(socket, event.id)
    yield socket
    manager.disconnect(socket, event.id)


@pytest.mark.asyncio
async def test_snapshot_then_pong(db, session_factory, monkeypatch, event, buyer):
    seats = (await seat_ids(db, event.id))[:2]
    await CheckoutService.create_pending_order(db, buyer, event.id, seats)
    monkeypatch.setattr(websocket_api, "AsyncSessionLocal", session_factory)

    socket = FakeSocket([json.dumps({"type": "ping"}), "not json"])
    await websocket_api.seat_updates(socket, event.id)

    assert socket.accepted
    assert socket.sent[0] == {
        "type": "seat_status",
        "event_id": event.id,
        "sold_seat_ids": [],
        "held_seat_ids": seats,
    }
    assert socket.sent[1]["type"] == "pong"
    assert len(socket.sent) == 2
    assert socket not in manager.active_connections.get(event.id, [])


@pytest.mark.asyncio
async def test_failed_snapshot_still_disconnects(monkeypatch, event):
    async def broken(event_id):
        raise RuntimeError("database down")

    monkeypatch.setattr(websocket_api, "seat_status_snapshot", broken)
    socket = FakeSocket()

    with pytest.raises(RuntimeError):
        await websocket_api.seat_updates(socket, event.id)
    assert socket not in manager.active_connections.get(event.id, [])


@pytest.mark.asyncio
async def test_hold_and_payment_broadcast(db, event, buyer, listener):
    seats = (await seat_ids(db, event.id))[:2]
    order = await CheckoutService.create_pending_order(db, buyer, event.id, seats)
    await CheckoutService.process_payment_return(db, buyer, gateway_return(order["order_id"], order["total_amount"]))

    held, sold = listener.updates()
    assert held["status"] == "held"
    assert held["seat_ids"] == seats
    assert held["order_id"] == order["order_id"]
    assert held["event_id"] == event.id
    assert sold["status"] == "sold"
    assert sold["seat_ids"] == seats


@pytest.mark.asyncio
async def test_cancel_broadcasts_release(db, event, buyer, listener):
    seats = (await seat_ids(db, event.id))[:1]
    order = await CheckoutService.create_pending_order(db, buyer, event.id, seats)

    await CheckoutService.cancel_pending_order(db, buyer, order["order_id"])

    released = listener.updates("released")
    assert [m["seat_ids"] for m in released] == [seats]


@pytest.mark.asyncio
async def test_other_events_are_not_notified(db, event, buyer, listener):
    organizer = await create_user(db, UserRole.ORGANIZER, name="Elsewhere")
    other = await create_event(db, organizer, name="Other Show")

    await CheckoutService.create_pending_order(db, buyer, other.id, (await seat_ids(db, other.id))[:1])

    assert listener.updates() == []
