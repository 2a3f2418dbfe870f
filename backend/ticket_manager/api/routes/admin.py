"""
Admin endpoints: allocation dashboard, ticket assignment and schedule import.

Assignment and revocation are conditional updates in the allocation service;
a ticket that changed state under the admin is skipped (batch) or reported
as not found (single revoke) rather than overwritten.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_manager.api.deps import require_admin
from ticket_manager.core.exceptions import NotFoundError
from ticket_manager.core.logging import get_logger
from ticket_manager.db.session import get_db
from ticket_manager.models.user import User
from ticket_manager.schemas.allocation import (
    AllocateBatchRequest,
    AllocateBatchResponse,
    AllocationSummaryResponse,
    GameAllocationDetailResponse,
    StatusResponse,
)
from ticket_manager.schemas.game import GameResponse, ScheduleImportRequest, ScheduleImportResponse
from ticket_manager.schemas.request import TicketRequestResponse
from ticket_manager.schemas.ticket import GameTicketDetail
from ticket_manager.services import allocation_service, inventory_service, request_service
from ticket_manager.services.schedule_importer import import_schedule

logger = get_logger(__name__)
router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


@router.get("/allocation", response_model=list[AllocationSummaryResponse])
async def allocation_summary_endpoint(db: AsyncSession = Depends(get_db)):
    """Seats, assignments and pending demand for every home game."""
    rows = await allocation_service.allocation_summary(db)
    return [AllocationSummaryResponse.model_validate(row) for row in rows]


@router.get("/allocation/by-user/{user_id}", response_model=list[GameTicketDetail])
async def allocation_by_user_endpoint(user_id: int, db: AsyncSession = Depends(get_db)):
    return await inventory_service.list_tickets_for_user(db, user_id)


@router.get("/allocation/{game_pk}", response_model=GameAllocationDetailResponse)
async def allocation_detail_endpoint(game_pk: int, db: AsyncSession = Depends(get_db)):
    detail = await allocation_service.allocation_detail(db, game_pk)
    if detail is None:
        raise NotFoundError("Game not found")
    return GameAllocationDetailResponse(
        game=GameResponse.model_validate(detail.game),
        tickets=detail.tickets,
        requests=detail.requests,
    )


@router.post("/allocate", response_model=AllocateBatchResponse)
async def allocate_endpoint(
    batch: AllocateBatchRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Assign tickets in bulk. Tickets no longer available are skipped; the
    response counts only the assignments that took effect.
    """
    assigned = await allocation_service.batch_assign(db, batch.assignments)
    logger.info(
        "allocation_batch_submitted",
        admin_id=admin.id,
        requested=len(batch.assignments),
        assigned=assigned,
    )
    return AllocateBatchResponse(assigned=assigned)


@router.delete("/allocate/{ticket_id}", response_model=StatusResponse)
async def revoke_endpoint(ticket_id: int, db: AsyncSession = Depends(get_db)):
    if not await allocation_service.revoke_ticket(db, ticket_id):
        raise NotFoundError("Ticket not found or not assigned")
    return StatusResponse()


@router.get("/requests", response_model=list[TicketRequestResponse])
async def pending_requests_endpoint(db: AsyncSession = Depends(get_db)):
    return await request_service.list_pending_requests(db)


@router.post("/scrape-schedule", response_model=ScheduleImportResponse)
async def scrape_schedule_endpoint(
    body: Optional[ScheduleImportRequest] = None,
    db: AsyncSession = Depends(get_db),
):
    """Import the season's schedule and generate tickets for new home games."""
    season = (body.season if body else None) or datetime.now(timezone.utc).year
    result = await import_schedule(db, season)
    return ScheduleImportResponse(
        season=result.season,
        games=result.games,
        promotions=result.promotions,
        tickets=result.tickets,
    )
