"""
Game ticket endpoints. Ticket state changes go through the allocation routes;
this router only edits notes.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_manager.api.deps import require_admin
from ticket_manager.core.exceptions import NotFoundError
from ticket_manager.db.session import get_db
from ticket_manager.models.user import User
from ticket_manager.schemas.allocation import StatusResponse
from ticket_manager.schemas.ticket import TicketSummaryRow, TicketUpdate
from ticket_manager.services import inventory_service

router = APIRouter(prefix="/tickets", tags=["Tickets"])


@router.get("/summary", response_model=list[TicketSummaryRow])
async def ticket_summary_endpoint(db: AsyncSession = Depends(get_db)):
    return await inventory_service.ticket_summary(db)


@router.patch("/{ticket_id}", response_model=StatusResponse)
async def update_ticket_endpoint(
    ticket_id: int,
    ticket_data: TicketUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    if not await inventory_service.update_ticket_notes(db, ticket_id, ticket_data.notes):
        raise NotFoundError("Ticket not found")
    return StatusResponse()
