"""
Events, seat maps and seat availability
"""
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
import pytest_asyncio

from seatmarket.core.errors import ConflictError, PermissionDeniedError, ValidationFailedError
from seatmarket.models import UserRole, ApprovalStatus, Publicity
from seatmarket.seatmap.grid import generate_grid
from seatmarket.services.checkout_service import CheckoutService
from seatmarket.services.event_service import (
    EventService,
    EventNotFoundError,
    EventHasOrdersError,
    OrganizerInactiveError,
    slugify,
)
from seatmarket.services.seat_map_service import (
    SeatMapService,
    InvalidShapesError,
    NoSeatingAreasFoundError,
    SeatMapNotFoundError,
)
from tests.factories import create_user, create_event, seat_ids, purchase

IMAGE_URL = "https://cdn.example.com/maps/hall.png"


def event_data(name="Summer Festival", **overrides):
    now = datetime.utcnow()
    data = {
        "name": name,
        "description": "Outdoor music",
        "start_time": now + timedelta(days=30),
        "end_time": now + timedelta(days=30, hours=4),
        "location": "Da Nang",
        "type": "festival",
        "ticket_sale_start": now,
        "ticket_sale_end": now + timedelta(days=29),
    }
    data.update(overrides)
    return data


@pytest_asyncio.fixture
async def organizer(db):
    return await create_user(db, UserRole.ORGANIZER, name="Organizer")


def test_slugify():
    assert slugify("Đêm Nhạc Hà Nội 2025!") == "em-nhac-ha-noi-2025"
    assert slugify("***") == "event"


@pytest.mark.asyncio
async def test_create_event_with_simple_areas(db, organizer):
    event = await EventService.create_event(
        db, organizer, event_data(), areas=[{"name": "VIP", "price": 500000, "rows": 2, "seats_per_row": 3}]
    )

    assert event.approval_status == ApprovalStatus.PENDING
    assert event.slug == "summer-festival"
    areas = await EventService.get_seating_structure(db, event.id)
    assert [row.row_name for row in areas[0].rows] == ["A", "B"]
    assert [seat.seat_number for seat in areas[0].rows[0].seats] == ["1", "2", "3"]


@pytest.mark.asyncio
async def test_slugs_are_unique(db, organizer):
    first = await EventService.create_event(db, organizer, event_data())
    second = await EventService.create_event(db, organizer, event_data())
    assert first.slug != second.slug


@pytest.mark.asyncio
async def test_inactive_organizer_cannot_create(db):
    pending = await create_user(db, UserRole.ORGANIZER, active_organizer=False)
    with pytest.raises(OrganizerInactiveError):
        await EventService.create_event(db, pending, event_data())


@pytest.mark.asyncio
async def test_schedule_validation(db, organizer):
    now = datetime.utcnow()
    with pytest.raises(ValidationFailedError):
        await EventService.create_event(db, organizer, event_data(end_time=now))
    with pytest.raises(ValidationFailedError):
        await EventService.create_event(
            db, organizer, event_data(ticket_sale_end=now + timedelta(days=60))
        )


@pytest.mark.asyncio
async def test_only_approved_events_are_public(db, organizer):
    approved = await create_event(db, organizer, name="Approved Show")
    await create_event(db, organizer, name="Pending Show", status=ApprovalStatus.PENDING)
    await create_event(db, organizer, name="Rejected Show", status=ApprovalStatus.REJECTED)

    events, total = await EventService.list_public_events(db)
    assert total == 1
    assert [e.id for e in events] == [approved.id]

    pending = await EventService.list_events_by_status(db, ApprovalStatus.PENDING)
    with pytest.raises(EventNotFoundError):
        await EventService.get_public_event(db, pending[0].slug)


@pytest.mark.asyncio
async def test_public_event_details(db, organizer):
    event = await create_event(db, organizer, name="Jazz Night")

    details = await EventService.get_public_event(db, event.slug)
    assert details["event"].views == 1
    assert details["min_price"] == details["max_price"]
    assert details["rating"] == {"average": 0.0, "count": 0}

    by_id = await EventService.get_public_event(db, str(event.id))
    assert by_id["event"].views == 2


@pytest.mark.asyncio
async def test_public_search_and_date_filters(db, organizer):
    await create_event(db, organizer, name="Rock Concert")
    await create_event(db, organizer, name="Poetry Reading")

    events, total = await EventService.list_public_events(db, q="rock")
    assert total == 1
    assert events[0].name == "Rock Concert"

    _, total = await EventService.list_public_events(db, date="today")
    assert total == 0
    _, total = await EventService.list_public_events(db, date="upcoming")
    assert total == 2


@pytest.mark.asyncio
async def test_moderation(db, organizer):
    event = await EventService.create_event(db, organizer, event_data())

    event = await EventService.reject_event(db, event.id, "Missing poster")
    assert event.approval_status == ApprovalStatus.REJECTED
    assert event.rejection_reason == "Missing poster"

    event = await EventService.approve_event(db, event.id)
    assert event.approval_status == ApprovalStatus.APPROVED
    assert event.rejection_reason is None

    event = await EventService.update_event(db, organizer, event.id, {"description": "Updated"})
    assert event.approval_status == ApprovalStatus.PENDING


@pytest.mark.asyncio
async def test_other_organizer_cannot_edit(db, organizer):
    event = await create_event(db, organizer)
    stranger = await create_user(db, UserRole.ORGANIZER, name="Stranger")
    with pytest.raises(PermissionDeniedError):
        await EventService.update_event(db, stranger, event.id, {"name": "Mine now"})


@pytest.mark.asyncio
async def test_seat_status(db, organizer):
    event = await create_event(db, organizer)
    buyer = await create_user(db, UserRole.CUSTOMER)
    seats = await seat_ids(db, event.id)
    tickets = await purchase(db, buyer, event, count=1)
    await CheckoutService.create_pending_order(db, buyer, event.id, seats[1:3])

    status = await EventService.get_seat_status(db, event.id, use_cache=False)
    assert status["sold_seat_ids"] == [tickets[0].seat_id]
    assert status["held_seat_ids"] == seats[1:3]


@pytest.mark.asyncio
async def test_event_statistics(db, organizer):
    event = await create_event(db, organizer, rows=2, seats_per_row=5, price="100000")
    buyer = await create_user(db, UserRole.CUSTOMER)
    await purchase(db, buyer, event, count=4)

    stats = await EventService.event_statistics(db, event)
    assert stats["capacity"] == 10
    assert stats["tickets_sold"] == 4
    assert stats["sold_percentage"] == 40.0
    assert stats["revenue"] == Decimal("400000")


@pytest.mark.asyncio
async def test_events_with_orders_cannot_be_deleted(db, organizer):
    event = await create_event(db, organizer)
    await purchase(db, await create_user(db, UserRole.CUSTOMER), event)

    with pytest.raises(EventHasOrdersError):
        await EventService.delete_event(db, organizer, event.id)


@pytest.mark.asyncio
async def test_seat_map_lifecycle(db, organizer):
    shapes = [generate_grid(2, 4, grid_name="Stalls", price=120000)]
    seat_map = await SeatMapService.save_seat_map(db, organizer, shapes, "Main Hall", IMAGE_URL)
    assert seat_map.publicity == Publicity.PRIVATE

    page = await SeatMapService.list_public_seat_maps(db)
    assert page["total"] == 0

    await SeatMapService.set_publicity(db, organizer, seat_map.id, Publicity.PUBLIC)
    other = await create_user(db, UserRole.ORGANIZER, name="Other")
    draft = await SeatMapService.create_draft(db, other, seat_map.id)

    assert draft.name == "Main Hall (Draft)"
    assert draft.drafted_from == seat_map.id
    assert draft.original_creator == organizer.id
    page = await SeatMapService.list_public_seat_maps(db)
    assert page["items"][0][1] == 1

    chain = await SeatMapService.get_draft_chain(db, draft.id)
    assert chain["origin"].id == seat_map.id


@pytest.mark.asyncio
async def test_seat_map_rejects_invalid_shapes(db, organizer):
    with pytest.raises(InvalidShapesError) as exc:
        await SeatMapService.save_seat_map(db, organizer, [{"id": "broken", "type": "rectangle"}], "Hall", IMAGE_URL)
    assert exc.value.shape_ids == ["broken"]

    with pytest.raises(ValidationFailedError):
        await SeatMapService.save_seat_map(db, organizer, [], "Hall", "not-a-url")


@pytest.mark.asyncio
async def test_private_seat_map_cannot_be_drafted(db, organizer):
    seat_map = await SeatMapService.save_seat_map(db, organizer, [], "Private Hall", IMAGE_URL)
    with pytest.raises(PermissionDeniedError):
        await SeatMapService.create_draft(db, organizer, seat_map.id)


@pytest.mark.asyncio
async def test_apply_seat_map_to_event(db, organizer):
    shapes = [generate_grid(3, 4, grid_name="Stalls", price=120000)]
    seat_map = await SeatMapService.save_seat_map(db, organizer, shapes, "Main Hall", IMAGE_URL)
    event = await EventService.create_event(db, organizer, event_data(), seat_map_id=seat_map.id)

    areas = await EventService.get_seating_structure(db, event.id)
    assert [a.name for a in areas] == ["Stalls"]
    assert len(areas[0].rows) == 3
    assert len(await seat_ids(db, event.id)) == 12
    assert event.seat_map_id == seat_map.id
    assert seat_map.used_by_event == event.id


@pytest.mark.asyncio
async def test_seat_map_without_seating(db, organizer):
    seat_map = await SeatMapService.save_seat_map(db, organizer, [], "Empty Hall", IMAGE_URL)
    with pytest.raises(NoSeatingAreasFoundError):
        await EventService.create_event(db, organizer, event_data(), seat_map_id=seat_map.id)


async def map_with_grid(db, owner, name="Main Hall"):
    shapes = [generate_grid(2, 3, grid_name="Stalls", price=120000)]
    return await SeatMapService.save_seat_map(db, owner, shapes, name, IMAGE_URL)


@pytest.mark.asyncio
async def test_seat_map_in_use_cannot_be_deleted(db, organizer):
    seat_map = await map_with_grid(db, organizer)
    await EventService.create_event(db, organizer, event_data(), seat_map_id=seat_map.id)

    with pytest.raises(ConflictError) as exc:
        await SeatMapService.delete_seat_map(db, organizer, seat_map.id)
    assert exc.value.code == "SEAT_MAP_IN_USE"


@pytest.mark.asyncio
async def test_only_owner_deletes_seat_map(db, organizer):
    seat_map = await map_with_grid(db, organizer)
    stranger = await create_user(db, UserRole.ORGANIZER, name="Stranger")

    with pytest.raises(PermissionDeniedError):
        await SeatMapService.delete_seat_map(db, stranger, seat_map.id)

    await SeatMapService.delete_seat_map(db, organizer, seat_map.id)
    with pytest.raises(SeatMapNotFoundError):
        await SeatMapService.get_seat_map(db, seat_map.id)


@pytest.mark.asyncio
async def test_deleting_event_frees_its_seat_map(db, organizer):
    seat_map = await map_with_grid(db, organizer)
    event = await EventService.create_event(db, organizer, event_data(), seat_map_id=seat_map.id)

    await EventService.delete_event(db, organizer, event.id)

    assert seat_map.used_by_event is None
    await SeatMapService.delete_seat_map(db, organizer, seat_map.id)
    with pytest.raises(SeatMapNotFoundError):
        await SeatMapService.get_seat_map(db, seat_map.id)


@pytest.mark.asyncio
async def test_replacing_seat_map_frees_previous_one(db, organizer):
    first = await map_with_grid(db, organizer, name="First Hall")
    second = await map_with_grid(db, organizer, name="Second Hall")
    event = await EventService.create_event(db, organizer, event_data(), seat_map_id=first.id)

    await EventService.apply_seat_map(db, organizer, event.id, second.id)

    assert first.used_by_event is None
    assert second.used_by_event == event.id
    await SeatMapService.delete_seat_map(db, organizer, first.id)
    with pytest.raises(ConflictError):
        await SeatMapService.delete_seat_map(db, organizer, second.id)


@pytest.mark.asyncio
async def test_public_template_stays_deletable_for_owner(db, organizer):
    seat_map = await map_with_grid(db, organizer)
    await SeatMapService.set_publicity(db, organizer, seat_map.id, Publicity.PUBLIC)
    other = await create_user(db, UserRole.ORGANIZER, name="Other")

    event = await EventService.create_event(db, other, event_data(), seat_map_id=seat_map.id)

    assert event.seat_map_id == seat_map.id
    assert seat_map.used_by_event is None
    await SeatMapService.delete_seat_map(db, organizer, seat_map.id)


@pytest.mark.asyncio
async def test_stale_event_reference_does_not_block_delete(db, organizer):
    seat_map = await map_with_grid(db, organizer)
    seat_map.used_by_event = 9999
    await db.commit()

    await SeatMapService.delete_seat_map(db, organizer, seat_map.id)
    with pytest.raises(SeatMapNotFoundError):
        await SeatMapService.get_seat_map(db, seat_map.id)
