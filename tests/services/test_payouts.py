"""
Organizer payout requests and their admin review
"""
from decimal import Decimal

import pytest
import pytest_asyncio

from seatmarket.core.errors import ConflictError, PermissionDeniedError
from seatmarket.models import UserRole, PayoutStatus
from seatmarket.services.payout_service import (
    PayoutService,
    EventNotEndedError,
    AmountExceedsRevenueError,
    ActivePayoutExistsError,
    PayoutNotFoundError,
)
from tests.factories import create_user, create_event, purchase, end_event


@pytest_asyncio.fixture
async def organizer(db):
    return await create_user(db, UserRole.ORGANIZER, name="Organizer")


@pytest_asyncio.fixture
async def ended_event(db, organizer):
    event = await create_event(db, organizer, name="Spring Gala")
    buyer = await create_user(db, UserRole.CUSTOMER)
    await purchase(db, buyer, event, count=3)
    return await end_event(db, event)


@pytest.mark.asyncio
async def test_event_revenue(db, ended_event):
    assert await PayoutService.event_revenue(db, ended_event.id) == Decimal("300000")


@pytest.mark.asyncio
async def test_create_request(db, organizer, ended_event):
    payout = await PayoutService.create_payout_request(db, organizer, ended_event.id, "250000")

    assert payout.status == PayoutStatus.PENDING
    assert payout.requested_amount == Decimal("250000")
    assert payout.event.name == "Spring Gala"


@pytest.mark.asyncio
async def test_amount_cannot_exceed_revenue(db, organizer, ended_event):
    with pytest.raises(AmountExceedsRevenueError):
        await PayoutService.create_payout_request(db, organizer, ended_event.id, "300001")


@pytest.mark.asyncio
async def test_event_must_have_ended(db, organizer):
    event = await create_event(db, organizer)
    with pytest.raises(EventNotEndedError):
        await PayoutService.create_payout_request(db, organizer, event.id, "1")


@pytest.mark.asyncio
async def test_only_owner_can_request(db, ended_event):
    stranger = await create_user(db, UserRole.ORGANIZER, name="Stranger")
    with pytest.raises(PermissionDeniedError):
        await PayoutService.create_payout_request(db, stranger, ended_event.id, "1000")


@pytest.mark.asyncio
async def test_one_active_request_per_event(db, organizer, ended_event):
    first = await PayoutService.create_payout_request(db, organizer, ended_event.id, "1000")
    with pytest.raises(ActivePayoutExistsError):
        await PayoutService.create_payout_request(db, organizer, ended_event.id, "1000")

    await PayoutService.cancel_payout_request(db, organizer, first.id)
    second = await PayoutService.create_payout_request(db, organizer, ended_event.id, "2000")
    assert second.id != first.id


@pytest.mark.asyncio
async def test_eligible_events_exclude_active_requests(db, organizer, ended_event):
    eligible = await PayoutService.eligible_events(db, organizer)
    assert [(e["event"].id, e["revenue"]) for e in eligible] == [(ended_event.id, Decimal("300000"))]

    await PayoutService.create_payout_request(db, organizer, ended_event.id, "1000")
    assert await PayoutService.eligible_events(db, organizer) == []


@pytest.mark.asyncio
async def test_organizer_list_filters(db, organizer, ended_event):
    await PayoutService.create_payout_request(db, organizer, ended_event.id, "1000")

    page = await PayoutService.list_organizer_requests(db, organizer, search="gala")
    assert page["total"] == 1
    assert page["pages"] == 1

    page = await PayoutService.list_organizer_requests(db, organizer, status=PayoutStatus.APPROVED)
    assert page["total"] == 0
    assert page["items"] == []


@pytest.mark.asyncio
async def test_other_organizer_cannot_see_request(db, organizer, ended_event):
    payout = await PayoutService.create_payout_request(db, organizer, ended_event.id, "1000")
    stranger = await create_user(db, UserRole.ORGANIZER, name="Stranger")

    with pytest.raises(PayoutNotFoundError):
        await PayoutService.get_organizer_request(db, stranger, payout.id)


@pytest.mark.asyncio
async def test_admin_review(db, organizer, ended_event):
    payout = await PayoutService.create_payout_request(db, organizer, ended_event.id, "300000")

    payout = await PayoutService.update_request(db, payout.id, status=PayoutStatus.IN_DISCUSSION, agreed_amount="280000")
    assert payout.agreed_amount == Decimal("280000")
    assert payout.completion_date is None

    payout = await PayoutService.update_request(
        db, payout.id, status=PayoutStatus.APPROVED, proof_document_url="https://example.com/proof.pdf"
    )
    assert payout.completion_date is not None
    assert payout.proof_document_url == "https://example.com/proof.pdf"

    with pytest.raises(ConflictError):
        await PayoutService.update_request(db, payout.id, agreed_amount="1")


@pytest.mark.asyncio
async def test_agreed_amount_bounded_by_revenue(db, organizer, ended_event):
    payout = await PayoutService.create_payout_request(db, organizer, ended_event.id, "1000")
    with pytest.raises(AmountExceedsRevenueError):
        await PayoutService.update_request(db, payout.id, agreed_amount="999999999")


@pytest.mark.asyncio
async def test_only_pending_requests_can_be_cancelled(db, organizer, ended_event):
    payout = await PayoutService.create_payout_request(db, organizer, ended_event.id, "1000")
    await PayoutService.update_request(db, payout.id, status=PayoutStatus.IN_DISCUSSION)

    with pytest.raises(ConflictError):
        await PayoutService.cancel_payout_request(db, organizer, payout.id)
