"""Customer orders and tickets"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from seatmarket.api.deps import get_current_user
from seatmarket.core.database import get_db
from seatmarket.models import User
from seatmarket.schemas import (
    OrderListResponse, OrderDetailResponse, TicketResponse, TicketListResponse, EventResponse,
)
from seatmarket.services import OrderService

router = APIRouter()


@router.get("/orders", response_model=OrderListResponse)
async def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return OrderListResponse(**await OrderService.list_orders(db, user, page=page, limit=limit))


@router.get("/orders/{order_id}", response_model=OrderDetailResponse)
async def get_order(order_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    """Order with its tickets; active tickets carry signed QR data"""
    details = await OrderService.get_order_details(db, user, order_id)
    return OrderDetailResponse(**{**details, "event": EventResponse.model_validate(details["event"])})


@router.get("/tickets", response_model=TicketListResponse)
async def list_tickets(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return TicketListResponse(**await OrderService.list_tickets(db, user, page=page, limit=limit))


@router.get("/tickets/{ticket_id}", response_model=TicketResponse)
async def get_ticket(ticket_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return TicketResponse(**await OrderService.get_ticket_details(db, user, ticket_id))
