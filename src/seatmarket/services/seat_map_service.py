"""
Seat map document service: save, share, draft and apply to events
"""
import copy
from decimal import Decimal
from typing import Optional, List, Dict, Any
from urllib.parse import urlparse
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from seatmarket.core.errors import (
    ServiceError, NotFoundError, PermissionDeniedError, ConflictError, ValidationFailedError,
)
from seatmarket.models import User, UserRole, SeatMap, Publicity, Event, Area, Row, Seat
from seatmarket.seatmap import invalid_shape_ids, extract_inventory, NoSeatingAreasError
import logging

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 100


class SeatMapError(ServiceError):
    """Base exception for seat map errors"""
    code = "SEAT_MAP_ERROR"


class SeatMapNotFoundError(NotFoundError):
    code = "SEAT_MAP_NOT_FOUND"


class InvalidShapesError(ValidationFailedError):
    code = "INVALID_SHAPES"

    def __init__(self, shape_ids: List[str]):
        super().__init__(
            "Invalid shapes detected: All shapes must be valid canvas items with required properties"
        )
        self.shape_ids = shape_ids


class NoSeatingAreasFoundError(ValidationFailedError):
    code = "NO_SEATING_AREAS"


def _clean_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationFailedError("Seat map name is required")
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationFailedError(f"Seat map name cannot exceed {MAX_NAME_LENGTH} characters")
    return name


def _clean_url(url: Optional[str]) -> str:
    url = (url or "").strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationFailedError("Invalid image URL format")
    return url


def _check_shapes(shapes: Any):
    if not isinstance(shapes, list):
        raise ValidationFailedError("Shapes must be an array")
    invalid = invalid_shape_ids(shapes)
    if invalid:
        logger.warning(f"Rejected seat map with {len(invalid)} invalid shapes")
        raise InvalidShapesError(invalid)


def _require_organizer(user: User):
    if user.role != UserRole.ORGANIZER:
        raise PermissionDeniedError("Only organizers can manage seat maps")


class SeatMapService:
    """Service for seat map documents"""

    @staticmethod
    async def get_seat_map(db: AsyncSession, seat_map_id: int) -> SeatMap:
        seat_map = await db.get(SeatMap, seat_map_id)
        if not seat_map:
            raise SeatMapNotFoundError(f"Seat map {seat_map_id} not found")
        return seat_map

    @staticmethod
    async def get_owned_seat_map(db: AsyncSession, user: User, seat_map_id: int) -> SeatMap:
        seat_map = await SeatMapService.get_seat_map(db, seat_map_id)
        if seat_map.created_by != user.id:
            raise PermissionDeniedError("You don't have permission to modify this seat map")
        return seat_map

    @staticmethod
    async def get_usable_seat_map(db: AsyncSession, user: User, seat_map_id: int) -> SeatMap:
        """Maps the user owns, or public ones"""
        seat_map = await SeatMapService.get_seat_map(db, seat_map_id)
        if seat_map.created_by != user.id and seat_map.publicity != Publicity.PUBLIC:
            raise PermissionDeniedError("This seat map is private")
        return seat_map

    @staticmethod
    async def save_seat_map(
        db: AsyncSession, user: User, shapes: List[Dict[str, Any]], name: str, image_url: str
    ) -> SeatMap:
        _require_organizer(user)
        name = _clean_name(name)
        image_url = _clean_url(image_url)
        _check_shapes(shapes)

        seat_map = SeatMap(
            name=name,
            shapes=shapes,
            image_url=image_url,
            created_by=user.id,
            publicity=Publicity.PRIVATE,
        )
        db.add(seat_map)
        await db.commit()
        logger.info(f"🗺️ Seat map {seat_map.id} saved", extra={'user_id': user.id})
        return seat_map

    @staticmethod
    async def update_seat_map(
        db: AsyncSession,
        user: User,
        seat_map_id: int,
        shapes: List[Dict[str, Any]],
        name: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> SeatMap:
        _require_organizer(user)
        _check_shapes(shapes)
        seat_map = await SeatMapService.get_owned_seat_map(db, user, seat_map_id)

        seat_map.shapes = shapes
        if name and name.strip():
            seat_map.name = _clean_name(name)
        if image_url and image_url.strip():
            seat_map.image_url = _clean_url(image_url)

        await db.commit()
        return seat_map

    @staticmethod
    async def delete_seat_map(db: AsyncSession, user: User, seat_map_id: int):
        _require_organizer(user)
        seat_map = await SeatMapService.get_owned_seat_map(db, user, seat_map_id)
        if seat_map.used_by_event is not None:
            event = await db.get(Event, seat_map.used_by_event)
            if event is not None and event.seat_map_id == seat_map.id:
                raise ConflictError("Seat map is used by an event and cannot be deleted", code="SEAT_MAP_IN_USE")

        await db.delete(seat_map)
        await db.commit()
        logger.info(f"🗑️ Seat map {seat_map_id} deleted", extra={'user_id': user.id})

    @staticmethod
    async def list_user_seat_maps(db: AsyncSession, user: User, q: Optional[str] = None) -> List[SeatMap]:
        _require_organizer(user)
        query = select(SeatMap).where(SeatMap.created_by == user.id)
        if q and q.strip():
            query = query.where(SeatMap.name.ilike(f"%{q.strip()}%"))
        query = query.order_by(SeatMap.updated_at.desc())
        return list((await db.execute(query)).scalars().all())

    @staticmethod
    async def list_public_seat_maps(
        db: AsyncSession, page: int = 1, limit: int = 12, q: Optional[str] = None
    ) -> Dict[str, Any]:
        """Public templates with draft counts and pagination metadata"""
        filters = [SeatMap.publicity == Publicity.PUBLIC]
        if q and q.strip():
            filters.append(SeatMap.name.ilike(f"%{q.strip()}%"))

        total = (await db.execute(select(func.count(SeatMap.id)).where(*filters))).scalar()
        query = (
            select(SeatMap)
            .where(*filters)
            .order_by(SeatMap.updated_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        seat_maps = list((await db.execute(query)).scalars().all())
        draft_counts = await SeatMapService.draft_counts(db, [m.id for m in seat_maps])

        pages = (total + limit - 1) // limit if total else 0
        return {
            "items": [(m, draft_counts.get(m.id, 0)) for m in seat_maps],
            "page": page,
            "limit": limit,
            "total": total,
            "pages": pages,
            "has_next": page < pages,
            "has_prev": page > 1,
        }

    @staticmethod
    async def draft_counts(db: AsyncSession, seat_map_ids: List[int]) -> Dict[int, int]:
        if not seat_map_ids:
            return {}
        result = await db.execute(
            select(SeatMap.drafted_from, func.count(SeatMap.id))
            .where(SeatMap.drafted_from.in_(seat_map_ids))
            .group_by(SeatMap.drafted_from)
        )
        return dict(result.all())

    @staticmethod
    async def create_draft(db: AsyncSession, user: User, original_id: int, name: Optional[str] = None) -> SeatMap:
        """Private copy of a public seat map"""
        _require_organizer(user)
        original = await SeatMapService.get_seat_map(db, original_id)
        if original.publicity != Publicity.PUBLIC:
            raise PermissionDeniedError("Drafts can only be created from public seat maps")

        draft = SeatMap(
            name=_clean_name(name or f"{original.name} (Draft)"[:MAX_NAME_LENGTH]),
            shapes=copy.deepcopy(original.shapes),
            image_url=original.image_url,
            created_by=user.id,
            publicity=Publicity.PRIVATE,
            drafted_from=original.id,
            original_creator=original.original_creator or original.created_by,
        )
        db.add(draft)
        await db.commit()
        logger.info(f"📝 Draft {draft.id} created from seat map {original_id}", extra={'user_id': user.id})
        return draft

    @staticmethod
    async def get_draft_chain(db: AsyncSession, seat_map_id: int) -> Dict[str, Any]:
        seat_map = await SeatMapService.get_seat_map(db, seat_map_id)
        origin = await db.get(SeatMap, seat_map.drafted_from) if seat_map.drafted_from else None
        drafts = (
            await db.execute(
                select(SeatMap).where(SeatMap.drafted_from == seat_map.id).order_by(SeatMap.created_at)
            )
        ).scalars().all()
        return {"seat_map": seat_map, "origin": origin, "drafts": list(drafts)}

    @staticmethod
    async def set_publicity(db: AsyncSession, user: User, seat_map_id: int, publicity: Publicity) -> SeatMap:
        _require_organizer(user)
        seat_map = await SeatMapService.get_owned_seat_map(db, user, seat_map_id)
        seat_map.publicity = publicity
        await db.commit()
        return seat_map

    # ==================== Inventory ====================

    @staticmethod
    def preview_inventory(seat_map: SeatMap) -> List[Dict[str, Any]]:
        try:
            return extract_inventory(seat_map.shapes or [])
        except NoSeatingAreasError as e:
            raise NoSeatingAreasFoundError(str(e))

    @staticmethod
    async def apply_to_event(db: AsyncSession, event: Event, seat_map: SeatMap, commit: bool = True) -> List[Area]:
        """Write areas, rows and seats for the event in one transaction"""
        inventory = SeatMapService.preview_inventory(seat_map)

        areas = []
        for area_data in inventory:
            area = Area(event_id=event.id, name=area_data["name"], price=Decimal(area_data["price"]))
            for row_data in area_data["rows"]:
                row = Row(row_name=row_data["row_name"])
                row.seats = [Seat(seat_number=s["seat_number"]) for s in row_data["seats"]]
                area.rows.append(row)
            db.add(area)
            areas.append(area)

        event.seat_map_id = seat_map.id
        # a public template used by another organizer stays free for its owner
        if seat_map.created_by == event.organizer_id:
            seat_map.used_by_event = event.id

        if commit:
            await db.commit()
        else:
            await db.flush()
        logger.info(
            f"🪑 Applied seat map {seat_map.id} to event {event.id}: {len(areas)} areas",
            extra={'event_id': event.id},
        )
        return areas

    @staticmethod
    async def release_from_event(db: AsyncSession, event: Event):
        """Clear used_by_event on the map the event was built from"""
        if event.seat_map_id is None:
            return
        seat_map = await db.get(SeatMap, event.seat_map_id)
        if seat_map is not None and seat_map.used_by_event == event.id:
            seat_map.used_by_event = None
