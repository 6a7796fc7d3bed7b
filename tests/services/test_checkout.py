"""
Hold -> pay -> ticket flow
"""
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy import select, func

from seatmarket.core.errors import PermissionDeniedError
from seatmarket.models import UserRole, ApprovalStatus, Order, OrderStatus, SeatHold, Ticket, TicketStatus
from seatmarket.services.checkout_service import (
    CheckoutService,
    CheckoutError,
    EventNotOnSaleError,
    SeatsUnavailableError,
    InvalidPaymentSignatureError,
    OrderNotPendingError,
    OrderUserMismatchError,
)
from tests.factories import create_user, create_event, seat_ids, gateway_return


@pytest_asyncio.fixture
async def buyer(db):
    return await create_user(db, UserRole.CUSTOMER, name="Buyer")


@pytest_asyncio.fixture
async def event(db):
    organizer = await create_user(db, UserRole.ORGANIZER, name="Organizer")
    return await create_event(db, organizer)


async def ticket_count(db, order_id):
    return (await db.execute(select(func.count(Ticket.id)).where(Ticket.order_id == order_id))).scalar()


@pytest.mark.asyncio
async def test_create_pending_order_holds_seats(db, buyer, event):
    seats = (await seat_ids(db, event.id))[:2]
    result = await CheckoutService.create_pending_order(db, buyer, event.id, seats, "10.0.0.1")

    assert result["total_amount"] == Decimal("200000")
    assert "vnp_SecureHash=" in result["payment_url"]
    assert [s["seat_id"] for s in result["seats"]] == seats

    order = await db.get(Order, result["order_id"])
    assert order.status == OrderStatus.PENDING
    assert order.payment_metadata["txn_ref"] == f"{order.id:010d}"
    holds = (await db.execute(select(SeatHold).where(SeatHold.order_id == order.id))).scalars().all()
    assert sorted(h.seat_id for h in holds) == seats


@pytest.mark.asyncio
async def test_held_seats_cannot_be_held_again(db, buyer, event):
    seats = await seat_ids(db, event.id)
    await CheckoutService.create_pending_order(db, buyer, event.id, seats[:2])
    other = await create_user(db, UserRole.CUSTOMER, name="Other")

    with pytest.raises(SeatsUnavailableError) as exc:
        await CheckoutService.create_pending_order(db, other, event.id, seats[1:3])
    assert exc.value.seat_ids == [seats[1]]


@pytest.mark.asyncio
async def test_only_customers_can_buy(db, event):
    admin = await create_user(db, UserRole.ADMIN)
    with pytest.raises(PermissionDeniedError):
        await CheckoutService.create_pending_order(db, admin, event.id, (await seat_ids(db, event.id))[:1])


@pytest.mark.asyncio
async def test_event_must_be_on_sale(db, buyer):
    organizer = await create_user(db, UserRole.ORGANIZER)
    pending = await create_event(db, organizer, status=ApprovalStatus.PENDING)

    with pytest.raises(EventNotOnSaleError):
        await CheckoutService.create_pending_order(db, buyer, pending.id, (await seat_ids(db, pending.id))[:1])


@pytest.mark.asyncio
async def test_sales_close_when_event_ends_without_sale_window(db, buyer):
    organizer = await create_user(db, UserRole.ORGANIZER)
    finished = await create_event(db, organizer, ended=True)
    finished.ticket_sale_start = finished.ticket_sale_end = None
    await db.commit()

    assert not finished.is_on_sale
    with pytest.raises(EventNotOnSaleError):
        await CheckoutService.create_pending_order(db, buyer, finished.id, (await seat_ids(db, finished.id))[:1])


@pytest.mark.asyncio
async def test_order_size_limit(db, buyer):
    organizer = await create_user(db, UserRole.ORGANIZER)
    event = await create_event(db, organizer, max_tickets_by_order=2)

    with pytest.raises(CheckoutError):
        await CheckoutService.create_pending_order(db, buyer, event.id, (await seat_ids(db, event.id))[:3])


@pytest.mark.asyncio
async def test_seats_from_another_event_rejected(db, buyer, event):
    organizer = await create_user(db, UserRole.ORGANIZER)
    other_event = await create_event(db, organizer, name="Other Show")

    with pytest.raises(CheckoutError) as exc:
        await CheckoutService.create_pending_order(db, buyer, event.id, (await seat_ids(db, other_event.id))[:1])
    assert exc.value.code == "INVALID_SEATS"


@pytest.mark.asyncio
async def test_successful_payment_issues_tickets(db, buyer, event):
    seats = (await seat_ids(db, event.id))[:2]
    order = await CheckoutService.create_pending_order(db, buyer, event.id, seats)

    result = await CheckoutService.process_payment_return(
        db, buyer, gateway_return(order["order_id"], order["total_amount"])
    )

    assert result["success"]
    assert result["order_status"] == OrderStatus.PAID
    assert result["ticket_count"] == 2
    assert sorted(t.seat_id for t in result["tickets"]) == seats
    assert all(t.status == TicketStatus.ACTIVE for t in result["tickets"])


@pytest.mark.asyncio
async def test_repeated_return_is_idempotent(db, buyer, event):
    seats = (await seat_ids(db, event.id))[:2]
    order = await CheckoutService.create_pending_order(db, buyer, event.id, seats)
    query = gateway_return(order["order_id"], order["total_amount"])

    first = await CheckoutService.process_payment_return(db, buyer, query)
    second = await CheckoutService.process_payment_return(db, buyer, query)

    assert second["success"]
    assert [t.id for t in second["tickets"]] == [t.id for t in first["tickets"]]
    assert await ticket_count(db, order["order_id"]) == 2


@pytest.mark.asyncio
async def test_bad_signature_issues_nothing(db, buyer, event):
    order = await CheckoutService.create_pending_order(db, buyer, event.id, (await seat_ids(db, event.id))[:1])
    query = gateway_return(order["order_id"], order["total_amount"])
    query["vnp_SecureHash"] = "0" * 128

    with pytest.raises(InvalidPaymentSignatureError):
        await CheckoutService.process_payment_return(db, buyer, query)

    assert (await db.get(Order, order["order_id"])).status == OrderStatus.PENDING
    assert await ticket_count(db, order["order_id"]) == 0


@pytest.mark.asyncio
async def test_amount_mismatch_fails_order(db, buyer, event):
    seats = (await seat_ids(db, event.id))[:2]
    order = await CheckoutService.create_pending_order(db, buyer, event.id, seats)

    result = await CheckoutService.process_payment_return(db, buyer, gateway_return(order["order_id"], "1000"))

    assert not result["success"]
    assert result["error"]["code"] == "AMOUNT_MISMATCH"
    assert result["order_status"] == OrderStatus.FAILED
    assert await ticket_count(db, order["order_id"]) == 0

    # seats are free again
    other = await create_user(db, UserRole.CUSTOMER, name="Other")
    retry = await CheckoutService.create_pending_order(db, other, event.id, seats)
    assert retry["order_id"] != order["order_id"]


@pytest.mark.asyncio
async def test_declined_payment_fails_order(db, buyer, event):
    order = await CheckoutService.create_pending_order(db, buyer, event.id, (await seat_ids(db, event.id))[:1])

    result = await CheckoutService.process_payment_return(
        db, buyer, gateway_return(order["order_id"], order["total_amount"], response_code="24")
    )

    assert result["error"]["code"] == "PAYMENT_FAILED"
    assert await ticket_count(db, order["order_id"]) == 0
    holds = (await db.execute(select(SeatHold).where(SeatHold.order_id == order["order_id"]))).scalars().all()
    assert holds == []


@pytest.mark.asyncio
async def test_failed_order_cannot_be_paid_later(db, buyer, event):
    order = await CheckoutService.create_pending_order(db, buyer, event.id, (await seat_ids(db, event.id))[:1])
    await CheckoutService.process_payment_return(
        db, buyer, gateway_return(order["order_id"], order["total_amount"], response_code="24")
    )

    with pytest.raises(OrderNotPendingError):
        await CheckoutService.process_payment_return(db, buyer, gateway_return(order["order_id"], order["total_amount"]))


@pytest.mark.asyncio
async def test_expired_hold_is_not_paid(db, buyer, event):
    order = await CheckoutService.create_pending_order(db, buyer, event.id, (await seat_ids(db, event.id))[:1])
    db_order = await db.get(Order, order["order_id"])
    db_order.expires_at = datetime.utcnow() - timedelta(minutes=1)
    await db.commit()

    result = await CheckoutService.process_payment_return(
        db, buyer, gateway_return(order["order_id"], order["total_amount"])
    )

    assert result["error"]["code"] == "ORDER_EXPIRED"
    assert await ticket_count(db, order["order_id"]) == 0


@pytest.mark.asyncio
async def test_other_user_cannot_settle_order(db, buyer, event):
    order = await CheckoutService.create_pending_order(db, buyer, event.id, (await seat_ids(db, event.id))[:1])
    other = await create_user(db, UserRole.CUSTOMER, name="Other")

    with pytest.raises(OrderUserMismatchError):
        await CheckoutService.process_payment_return(db, other, gateway_return(order["order_id"], order["total_amount"]))


@pytest.mark.asyncio
async def test_cancel_pending_order_releases_seats(db, buyer, event):
    seats = (await seat_ids(db, event.id))[:2]
    order = await CheckoutService.create_pending_order(db, buyer, event.id, seats)

    cancelled = await CheckoutService.cancel_pending_order(db, buyer, order["order_id"])

    assert cancelled.status == OrderStatus.CANCELLED
    assert await CheckoutService.unavailable_seat_ids(db, event.id, seats) == []
    with pytest.raises(OrderNotPendingError):
        await CheckoutService.cancel_pending_order(db, buyer, order["order_id"])


@pytest.mark.asyncio
async def test_sold_seats_are_unavailable(db, buyer, event):
    seats = (await seat_ids(db, event.id))[:1]
    order = await CheckoutService.create_pending_order(db, buyer, event.id, seats)
    await CheckoutService.process_payment_return(db, buyer, gateway_return(order["order_id"], order["total_amount"]))

    other = await create_user(db, UserRole.CUSTOMER, name="Other")
    with pytest.raises(SeatsUnavailableError):
        await CheckoutService.create_pending_order(db, other, event.id, seats)
