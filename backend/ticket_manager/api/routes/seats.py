"""
Seat inventory endpoints. Reads are open; changes require an admin.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_manager.api.deps import require_admin
from ticket_manager.core.exceptions import NotFoundError
from ticket_manager.db.session import get_db
from ticket_manager.models.user import User
from ticket_manager.schemas.allocation import StatusResponse
from ticket_manager.schemas.seat import (
    SeatBatchCreate,
    SeatCreate,
    SeatGroupUpdate,
    SeatResponse,
    SeatUpdate,
)
from ticket_manager.services import inventory_service

router = APIRouter(prefix="/seats", tags=["Seats"])


@router.get("", response_model=list[SeatResponse])
async def list_seats_endpoint(db: AsyncSession = Depends(get_db)):
    return await inventory_service.list_seats(db)


@router.post("", response_model=SeatResponse, status_code=status.HTTP_201_CREATED)
async def add_seat_endpoint(
    seat_data: SeatCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Add a seat and generate its tickets for every home game."""
    seat = await inventory_service.add_seat(
        db, seat_data.section, seat_data.row, seat_data.seat, seat_data.notes
    )
    await inventory_service.generate_tickets_for_seat(db, seat.id)
    return seat


@router.post("/batch", response_model=list[SeatResponse], status_code=status.HTTP_201_CREATED)
async def add_seat_batch_endpoint(
    batch: SeatBatchCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await inventory_service.add_seat_batch(
        db, batch.section, batch.row, batch.seat_start, batch.seat_end, batch.notes
    )


@router.patch("/group", response_model=list[SeatResponse])
async def update_seat_group_endpoint(
    group: SeatGroupUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Set notes on every seat of a section/row and return the full seat list."""
    updated = await inventory_service.update_seat_group_notes(db, group.section, group.row, group.notes)
    if updated == 0:
        raise NotFoundError("No seats found for that section/row")
    return await inventory_service.list_seats(db)


@router.patch("/{seat_id}", response_model=SeatResponse)
async def update_seat_endpoint(
    seat_id: int,
    seat_data: SeatUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    seat = await inventory_service.update_seat_notes(db, seat_id, seat_data.notes)
    if seat is None:
        raise NotFoundError("Seat not found")
    return seat


@router.delete("/{seat_id}", response_model=StatusResponse)
async def delete_seat_endpoint(
    seat_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Delete a seat together with all of its tickets, assigned or not."""
    if not await inventory_service.delete_seat(db, seat_id):
        raise NotFoundError("Seat not found")
    return StatusResponse()
