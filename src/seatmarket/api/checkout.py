"""Checkout API endpoints: seat holds and payment return"""
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from seatmarket.api.deps import require_customer
from seatmarket.core.database import get_db
from seatmarket.middleware.rate_limiter import limiter
from seatmarket.models import User
from seatmarket.schemas import (
    CheckoutCreate, CheckoutResponse, TicketDataResponse, PaymentResultResponse,
    OrderStatusResponse, EventResponse, AreaResponse, SeatStatusResponse,
)
from seatmarket.services import CheckoutService
from seatmarket.services.checkout_service import SeatsUnavailableError

router = APIRouter()


@router.get("/checkout/events/{event_id}", response_model=TicketDataResponse)
async def get_ticket_data(event_id: int, user: User = Depends(require_customer), db: AsyncSession = Depends(get_db)):
    """Event, seating and availability for the seat picker"""
    data = await CheckoutService.get_ticket_data(db, user, event_id)
    return TicketDataResponse(
        event=EventResponse.model_validate(data["event"]),
        areas=[AreaResponse.model_validate(a) for a in data["areas"]],
        seat_status=SeatStatusResponse(**data["seat_status"]),
    )


@router.post("/checkout/orders", response_model=CheckoutResponse, status_code=201)
@limiter.limit("10/minute")
async def create_order(
    request: Request,
    data: CheckoutCreate,
    user: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
):
    """
    Hold seats and open a pending order

    Returns the gateway payment URL. Holds last HOLD_DURATION_MINUTES.
    """
    try:
        result = await CheckoutService.create_pending_order(
            db,
            user,
            event_id=data.event_id,
            seat_ids=data.seat_ids,
            client_ip=request.client.host if request.client else None,
        )
    except SeatsUnavailableError as e:
        return JSONResponse(
            status_code=409,
            content={"error": e.code, "message": e.message, "unavailable_seat_ids": e.seat_ids},
        )
    return CheckoutResponse(**result)


@router.get("/checkout/payment-return", response_model=PaymentResultResponse)
@limiter.limit("30/minute")
async def payment_return(request: Request, user: User = Depends(require_customer), db: AsyncSession = Depends(get_db)):
    """Gateway redirect target; settles the order from the signed query string"""
    query = dict(request.query_params)
    if not query:
        raise HTTPException(status_code=400, detail="Missing payment parameters")
    result = await CheckoutService.process_payment_return(db, user, query)
    return PaymentResultResponse.from_result(result)


@router.post("/checkout/orders/{order_id}/cancel", response_model=OrderStatusResponse)
async def cancel_order(order_id: int, user: User = Depends(require_customer), db: AsyncSession = Depends(get_db)):
    order = await CheckoutService.cancel_pending_order(db, user, order_id)
    return OrderStatusResponse.model_validate(order)
