"""Admin endpoints: moderation, account locks, payouts and dashboard"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from seatmarket.api.deps import require_admin
from seatmarket.core.database import get_db
from seatmarket.models import UserRole, ApprovalStatus, PayoutStatus
from seatmarket.schemas import (
    UserResponse, UserListResponse, UserLockRequest, OrganizerResponse, OrganizerRejectRequest,
    EventResponse, RejectRequest, PayoutResponse, PayoutListResponse, PayoutUpdate,
    DashboardStats, MonthlyRevenue, MonthlyRevenueResponse,
)
from seatmarket.services import AdminService, EventService, PayoutService

router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


# ==================== Users ====================

@router.get("/users", response_model=UserListResponse)
async def list_users(
    role: Optional[UserRole] = None,
    banned: Optional[bool] = None,
    q: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    users, total = await AdminService.list_users(db, role=role, banned=banned, q=q, page=page, page_size=page_size)
    return UserListResponse(
        users=[UserResponse.model_validate(u) for u in users],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.put("/users/{user_id}/lock", response_model=UserResponse)
async def set_user_lock(user_id: int, data: UserLockRequest, db: AsyncSession = Depends(get_db)):
    """Lock (optionally until `expires`) or unlock an account"""
    user = await AdminService.set_user_lock(db, user_id, data.banned, reason=data.reason, expires=data.expires)
    return UserResponse.model_validate(user)


# ==================== Organizers ====================

@router.get("/organizers/pending", response_model=list[OrganizerResponse])
async def pending_organizers(db: AsyncSession = Depends(get_db)):
    return [OrganizerResponse.model_validate(o) for o in await AdminService.list_pending_organizers(db)]


@router.post("/organizers/{user_id}/approve", response_model=OrganizerResponse)
async def approve_organizer(user_id: int, db: AsyncSession = Depends(get_db)):
    return OrganizerResponse.model_validate(await AdminService.approve_organizer(db, user_id))


@router.post("/organizers/{user_id}/reject", response_model=OrganizerResponse)
async def reject_organizer(user_id: int, data: OrganizerRejectRequest, db: AsyncSession = Depends(get_db)):
    return OrganizerResponse.model_validate(await AdminService.reject_organizer(db, user_id, data.reason))


# ==================== Events ====================

@router.get("/events", response_model=list[EventResponse])
async def list_events(status: Optional[ApprovalStatus] = None, db: AsyncSession = Depends(get_db)):
    return [EventResponse.model_validate(e) for e in await EventService.list_events_by_status(db, status)]


@router.post("/events/{event_id}/approve", response_model=EventResponse)
async def approve_event(event_id: int, db: AsyncSession = Depends(get_db)):
    return EventResponse.model_validate(await EventService.approve_event(db, event_id))


@router.post("/events/{event_id}/reject", response_model=EventResponse)
async def reject_event(event_id: int, data: RejectRequest, db: AsyncSession = Depends(get_db)):
    return EventResponse.model_validate(await EventService.reject_event(db, event_id, data.reason))


# ==================== Payouts ====================

@router.get("/payouts", response_model=PayoutListResponse)
async def list_payouts(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    status: Optional[PayoutStatus] = None,
    search: Optional[str] = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
):
    result = await PayoutService.list_all_requests(db, page=page, limit=limit, status=status, search=search)
    return PayoutListResponse.from_page(result)


@router.get("/payouts/{request_id}", response_model=PayoutResponse)
async def get_payout(request_id: int, db: AsyncSession = Depends(get_db)):
    return PayoutResponse.from_payout(await PayoutService.get_request(db, request_id))


@router.patch("/payouts/{request_id}", response_model=PayoutResponse)
async def update_payout(request_id: int, data: PayoutUpdate, db: AsyncSession = Depends(get_db)):
    payout = await PayoutService.update_request(
        db,
        request_id,
        status=data.status,
        agreed_amount=data.agreed_amount,
        proof_document_url=data.proof_document_url,
    )
    return PayoutResponse.from_payout(payout)


# ==================== Dashboard ====================

@router.get("/stats", response_model=DashboardStats)
async def stats(db: AsyncSession = Depends(get_db)):
    return DashboardStats(**await AdminService.stats(db))


@router.get("/revenue", response_model=MonthlyRevenueResponse)
async def revenue(months: int = Query(6, ge=1, le=24), db: AsyncSession = Depends(get_db)):
    rows = await AdminService.revenue_by_month(db, months=months)
    return MonthlyRevenueResponse(months=[MonthlyRevenue(**r) for r in rows])
