"""Seat map editor documents: save, share, draft"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from seatmarket.api.deps import get_current_user, require_organizer
from seatmarket.core.database import get_db
from seatmarket.models import User
from seatmarket.schemas import (
    SeatMapSave, SeatMapUpdate, DraftCreate, PublicityUpdate, SeatMapSummary,
    SeatMapResponse, PublicSeatMapPage, DraftChainResponse, InventoryArea,
)
from seatmarket.services import SeatMapService

router = APIRouter()


@router.get("/seat-maps/public", response_model=PublicSeatMapPage)
async def list_public_seat_maps(
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=50),
    q: Optional[str] = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
):
    """Shared templates any organizer can draft from"""
    result = await SeatMapService.list_public_seat_maps(db, page=page, limit=limit, q=q)
    return PublicSeatMapPage.from_page(result)


@router.get("/seat-maps/{seat_map_id}/drafts", response_model=DraftChainResponse)
async def get_draft_chain(seat_map_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    await SeatMapService.get_usable_seat_map(db, user, seat_map_id)
    chain = await SeatMapService.get_draft_chain(db, seat_map_id)
    return DraftChainResponse(
        seat_map=SeatMapSummary.model_validate(chain["seat_map"]),
        origin=SeatMapSummary.model_validate(chain["origin"]) if chain["origin"] else None,
        drafts=[SeatMapSummary.model_validate(d) for d in chain["drafts"]],
    )


@router.get("/organizer/seat-maps", response_model=list[SeatMapSummary])
async def list_my_seat_maps(
    q: Optional[str] = Query(None, max_length=100),
    user: User = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
):
    seat_maps = await SeatMapService.list_user_seat_maps(db, user, q=q)
    return [SeatMapSummary.model_validate(m) for m in seat_maps]


@router.post("/organizer/seat-maps", response_model=SeatMapResponse, status_code=201)
async def save_seat_map(data: SeatMapSave, user: User = Depends(require_organizer), db: AsyncSession = Depends(get_db)):
    seat_map = await SeatMapService.save_seat_map(db, user, data.shapes, data.name, data.image_url)
    return SeatMapResponse.model_validate(seat_map)


@router.get("/organizer/seat-maps/{seat_map_id}", response_model=SeatMapResponse)
async def get_seat_map(seat_map_id: int, user: User = Depends(require_organizer), db: AsyncSession = Depends(get_db)):
    seat_map = await SeatMapService.get_usable_seat_map(db, user, seat_map_id)
    return SeatMapResponse.model_validate(seat_map)


@router.put("/organizer/seat-maps/{seat_map_id}", response_model=SeatMapResponse)
async def update_seat_map(
    seat_map_id: int,
    data: SeatMapUpdate,
    user: User = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
):
    seat_map = await SeatMapService.update_seat_map(
        db, user, seat_map_id, data.shapes, name=data.name, image_url=data.image_url
    )
    return SeatMapResponse.model_validate(seat_map)


@router.delete("/organizer/seat-maps/{seat_map_id}", status_code=204)
async def delete_seat_map(seat_map_id: int, user: User = Depends(require_organizer), db: AsyncSession = Depends(get_db)):
    await SeatMapService.delete_seat_map(db, user, seat_map_id)


@router.post("/organizer/seat-maps/{seat_map_id}/draft", response_model=SeatMapResponse, status_code=201)
async def create_draft(
    seat_map_id: int,
    data: Optional[DraftCreate] = None,
    user: User = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
):
    draft = await SeatMapService.create_draft(db, user, seat_map_id, name=data.name if data else None)
    return SeatMapResponse.model_validate(draft)


@router.put("/organizer/seat-maps/{seat_map_id}/publicity", response_model=SeatMapSummary)
async def set_publicity(
    seat_map_id: int,
    data: PublicityUpdate,
    user: User = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
):
    seat_map = await SeatMapService.set_publicity(db, user, seat_map_id, data.publicity)
    return SeatMapSummary.model_validate(seat_map)


@router.get("/organizer/seat-maps/{seat_map_id}/inventory", response_model=list[InventoryArea])
async def preview_inventory(seat_map_id: int, user: User = Depends(require_organizer), db: AsyncSession = Depends(get_db)):
    """Areas, rows and seats an event would get from this map"""
    seat_map = await SeatMapService.get_usable_seat_map(db, user, seat_map_id)
    return SeatMapService.preview_inventory(seat_map)
