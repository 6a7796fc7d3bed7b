"""
Seed script to populate database with sample data for local development

Usage:
    python -m seatmarket.scripts.seed_data
"""
import asyncio
from datetime import datetime, timedelta
from decimal import Decimal
from sqlalchemy import select

from seatmarket.core.database import AsyncSessionLocal, init_db
from seatmarket.core.security import hash_password
from seatmarket.models import User, UserRole, Organizer, Event, ApprovalStatus, SeatMap, Publicity
from seatmarket.seatmap import generate_grid
from seatmarket.services.event_service import EventService, slugify
from seatmarket.services.seat_map_service import SeatMapService

SAMPLE_PASSWORD = "password123"


async def get_or_create_user(db, email: str, name: str, role: UserRole) -> User:
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user:
        print(f"User {email} already exists, skipping...")
        return user

    user = User(email=email, name=name, role=role, password_hash=hash_password(SAMPLE_PASSWORD))
    if role == UserRole.ORGANIZER:
        user.organizer = Organizer(name=f"{name} Productions", is_active=True)
    db.add(user)
    await db.commit()
    print(f"Created {role.value}: {email}")
    return user


async def create_sample_seat_map(db, organizer: User) -> SeatMap:
    result = await db.execute(select(SeatMap).where(SeatMap.created_by == organizer.id))
    existing = result.scalars().first()
    if existing:
        return existing

    shapes = [
        generate_grid(5, 12, grid_name="Stalls", price=450000),
        generate_grid(3, 10, start_y=200, grid_name="Balcony", price=250000),
    ]
    seat_map = SeatMap(
        name="Small Theatre",
        shapes=shapes,
        image_url="https://example.com/seat-maps/small-theatre.png",
        created_by=organizer.id,
        publicity=Publicity.PUBLIC,
    )
    db.add(seat_map)
    await db.commit()
    print(f"Created seat map: {seat_map.name}")
    return seat_map


async def create_sample_events(db, organizer: User, seat_map: SeatMap):
    now = datetime.utcnow()
    events_data = [
        {
            "name": "Acoustic Night",
            "description": "An evening of unplugged sets from local songwriters.",
            "location": "Ho Chi Minh City",
            "type": "concert",
            "start_time": now + timedelta(days=14),
            "end_time": now + timedelta(days=14, hours=3),
            "ticket_sale_start": now - timedelta(days=1),
            "ticket_sale_end": now + timedelta(days=14),
            "max_tickets_by_order": 6,
            "areas": [
                {"name": "VIP", "price": Decimal("800000"), "rows": 2, "seats_per_row": 10},
                {"name": "Standard", "price": Decimal("350000"), "rows": 6, "seats_per_row": 14},
            ],
        },
        {
            "name": "Comedy Showcase",
            "description": "Stand-up from five touring comedians.",
            "location": "Ha Noi",
            "type": "comedy",
            "start_time": now + timedelta(days=21),
            "end_time": now + timedelta(days=21, hours=2),
            "ticket_sale_start": now - timedelta(days=1),
            "ticket_sale_end": now + timedelta(days=21),
            "seat_map": True,
        },
    ]

    for data in events_data:
        result = await db.execute(select(Event).where(Event.slug == slugify(data["name"])))
        if result.scalars().first():
            print(f"Event {data['name']} already exists, skipping...")
            continue

        areas = data.pop("areas", None)
        use_seat_map = data.pop("seat_map", False)
        event = await EventService.create_event(
            db, organizer, data, areas=areas, seat_map_id=seat_map.id if use_seat_map else None
        )
        event.approval_status = ApprovalStatus.APPROVED
        await db.commit()
        print(f"Created event: {event.name}")


async def main():
    print("Initializing database...")
    await init_db()

    async with AsyncSessionLocal() as db:
        await get_or_create_user(db, "admin@example.com", "Admin", UserRole.ADMIN)
        organizer = await get_or_create_user(db, "organizer@example.com", "Lan Pham", UserRole.ORGANIZER)
        await get_or_create_user(db, "customer@example.com", "Minh Tran", UserRole.CUSTOMER)

        seat_map = await create_sample_seat_map(db, organizer)
        inventory = SeatMapService.preview_inventory(seat_map)
        print(f"Seat map yields {sum(len(r['seats']) for a in inventory for r in a['rows'])} seats")

        await create_sample_events(db, organizer, seat_map)

    print(f"Done. All sample accounts use the password '{SAMPLE_PASSWORD}'.")


if __name__ == "__main__":
    asyncio.run(main())
