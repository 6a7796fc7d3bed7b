"""Door inspection endpoints for organizers"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from seatmarket.api.deps import require_organizer
from seatmarket.core.database import get_db
from seatmarket.models import User
from seatmarket.schemas import (
    TicketResponse, CheckInRequest, CheckInResponse, OfflineInspectionBatch,
    OfflineInspectionResult, EventResponse,
)
from seatmarket.services import InspectionService

router = APIRouter()


@router.get("/inspection/events", response_model=list[EventResponse])
async def active_events(user: User = Depends(require_organizer), db: AsyncSession = Depends(get_db)):
    events = await InspectionService.active_events(db, user)
    return [EventResponse.model_validate(e) for e in events]


@router.get("/inspection/tickets/{ticket_id}", response_model=TicketResponse)
async def inspect_ticket(ticket_id: int, user: User = Depends(require_organizer), db: AsyncSession = Depends(get_db)):
    """Look a ticket up without admitting it"""
    return TicketResponse(**await InspectionService.inspect_ticket(db, user, ticket_id))


@router.post("/inspection/check-in", response_model=CheckInResponse)
async def check_in(data: CheckInRequest, user: User = Depends(require_organizer), db: AsyncSession = Depends(get_db)):
    result = await InspectionService.check_in_ticket(db, user, ticket_id=data.ticket_id, qr_data=data.qr_data)
    return CheckInResponse(ticket=TicketResponse(**result["ticket"]), duplicate=result["duplicate"])


@router.post("/inspection/offline", response_model=OfflineInspectionResult)
async def upload_offline_inspections(
    data: OfflineInspectionBatch,
    user: User = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
):
    """Scans recorded while the scanner was offline"""
    inspections = [i.model_dump() for i in data.inspections]
    return OfflineInspectionResult(**await InspectionService.process_offline_inspections(db, user, inspections))
