"""Organizer payout requests"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from seatmarket.api.deps import require_organizer
from seatmarket.core.database import get_db
from seatmarket.models import User, PayoutStatus
from seatmarket.schemas import PayoutCreate, PayoutResponse, PayoutListResponse, EligibleEvent, EventResponse
from seatmarket.services import PayoutService

router = APIRouter()


@router.get("/organizer/payouts", response_model=PayoutListResponse)
async def list_payouts(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    status: Optional[PayoutStatus] = None,
    search: Optional[str] = Query(None, max_length=100),
    user: User = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
):
    result = await PayoutService.list_organizer_requests(db, user, page=page, limit=limit, status=status, search=search)
    return PayoutListResponse.from_page(result)


@router.post("/organizer/payouts", response_model=PayoutResponse, status_code=201)
async def create_payout(data: PayoutCreate, user: User = Depends(require_organizer), db: AsyncSession = Depends(get_db)):
    """Request a payout for an ended event, up to its ticket revenue"""
    payout = await PayoutService.create_payout_request(db, user, data.event_id, data.amount)
    return PayoutResponse.from_payout(payout)


@router.get("/organizer/payouts/eligible-events", response_model=list[EligibleEvent])
async def eligible_events(user: User = Depends(require_organizer), db: AsyncSession = Depends(get_db)):
    items = await PayoutService.eligible_events(db, user)
    return [EligibleEvent(event=EventResponse.model_validate(i["event"]), revenue=i["revenue"]) for i in items]


@router.get("/organizer/payouts/{request_id}", response_model=PayoutResponse)
async def get_payout(request_id: int, user: User = Depends(require_organizer), db: AsyncSession = Depends(get_db)):
    return PayoutResponse.from_payout(await PayoutService.get_organizer_request(db, user, request_id))


@router.post("/organizer/payouts/{request_id}/cancel", response_model=PayoutResponse)
async def cancel_payout(request_id: int, user: User = Depends(require_organizer), db: AsyncSession = Depends(get_db)):
    return PayoutResponse.from_payout(await PayoutService.cancel_payout_request(db, user, request_id))
