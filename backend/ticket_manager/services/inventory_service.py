"""
Inventory service: seats and the game tickets generated from them.

TICKET GENERATION
=================

A game ticket exists for every (seat, home game) pair. Generation is an
INSERT ... SELECT over the home games with ON CONFLICT DO NOTHING against the
(seat_id, game_pk) unique constraint, so:

  - re-running it (after a schedule import, or twice concurrently) never
    creates duplicates
  - tickets that already exist, including assigned ones, are left alone
  - the statement's rowcount is the number of tickets newly created

Deleting a seat deletes its tickets first, whatever their state. An assigned
ticket disappears with its seat; the holder is not notified.
"""

from typing import Optional

from sqlalchemy import case, delete, func, literal, select, true, update
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_manager.core.config import get_settings
from ticket_manager.core.exceptions import ValidationError, storage_guard
from ticket_manager.core.logging import get_logger
from ticket_manager.core.metrics import record_tickets_generated
from ticket_manager.db.session import upsert_insert
from ticket_manager.models.game import Game
from ticket_manager.models.game_ticket import GameTicket, TICKET_ASSIGNED, TICKET_AVAILABLE
from ticket_manager.models.seat import Seat
from ticket_manager.schemas.ticket import GameTicketDetail, TicketSummaryRow
from ticket_manager.services.game_service import home_game_filter

logger = get_logger(__name__)
settings = get_settings()

_DETAIL_COLUMNS = (
    GameTicket.id,
    GameTicket.game_pk,
    GameTicket.seat_id,
    Seat.section,
    Seat.row,
    Seat.seat,
    GameTicket.status,
    GameTicket.notes,
    GameTicket.assigned_to,
)


def _require(value: str, field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{field} is required", field=field)
    return value


@storage_guard
async def add_seat(
    db: AsyncSession,
    section: str,
    row: str,
    seat: str,
    notes: Optional[str] = None,
) -> Seat:
    """Register a season-ticket seat. Tickets are generated separately."""
    section = _require(section, "section")
    row = _require(row, "row")
    seat = _require(seat, "seat")

    existing = await db.execute(
        select(Seat.id).where(Seat.section == section, Seat.row == row, Seat.seat == seat)
    )
    if existing.scalar_one_or_none() is not None:
        raise ValidationError(f"Seat {section}-{row}-{seat} already exists", field="seat")

    new_seat = Seat(section=section, row=row, seat=seat, notes=notes)
    db.add(new_seat)
    await db.flush()
    await db.refresh(new_seat)

    logger.info("seat_added", seat_id=new_seat.id, seat=new_seat.label)
    return new_seat


@storage_guard
async def add_seat_batch(
    db: AsyncSession,
    section: str,
    row: str,
    seat_start: int,
    seat_end: int,
    notes: Optional[str] = None,
) -> list[Seat]:
    """
    Add a run of consecutive seat numbers in one section/row and generate
    their tickets. Range bounds are checked before anything is written.
    """
    if seat_start > seat_end:
        raise ValidationError("seat_start must be <= seat_end", field="seat_start")
    if seat_end - seat_start >= settings.MAX_SEAT_BATCH:
        raise ValidationError(
            f"Maximum {settings.MAX_SEAT_BATCH} seats per batch", field="seat_end"
        )

    seats = []
    for number in range(seat_start, seat_end + 1):
        seat = await add_seat(db, section, row, str(number), notes)
        await generate_tickets_for_seat(db, seat.id)
        seats.append(seat)

    logger.info(
        "seat_batch_added",
        count=len(seats),
        section=section,
        row=row,
        seat_start=seat_start,
        seat_end=seat_end,
    )
    return seats


@storage_guard
async def list_seats(db: AsyncSession) -> list[Seat]:
    result = await db.execute(select(Seat).order_by(Seat.section, Seat.row, Seat.seat))
    return list(result.scalars().all())


@storage_guard
async def update_seat_notes(db: AsyncSession, seat_id: int, notes: Optional[str]) -> Optional[Seat]:
    seat = await db.get(Seat, seat_id)
    if seat is None:
        return None
    seat.notes = notes
    await db.flush()
    await db.refresh(seat)
    return seat


@storage_guard
async def update_seat_group_notes(
    db: AsyncSession,
    section: str,
    row: str,
    notes: Optional[str],
) -> int:
    """Set the same notes on every seat of a section/row. Returns rows updated."""
    result = await db.execute(
        update(Seat).where(Seat.section == section, Seat.row == row).values(notes=notes)
    )
    if result.rowcount:
        logger.info("seat_group_notes_updated", section=section, row=row, seats=result.rowcount)
    return result.rowcount


@storage_guard
async def delete_seat(db: AsyncSession, seat_id: int) -> bool:
    """Delete a seat and, first, every game ticket generated from it."""
    seat = await db.get(Seat, seat_id)
    if seat is None:
        return False

    assigned = await db.execute(
        select(func.count())
        .select_from(GameTicket)
        .where(GameTicket.seat_id == seat_id, GameTicket.status == TICKET_ASSIGNED)
    )
    forfeited_assignments = assigned.scalar_one()

    tickets = await db.execute(delete(GameTicket).where(GameTicket.seat_id == seat_id))
    result = await db.execute(delete(Seat).where(Seat.id == seat_id))

    logger.info(
        "seat_deleted",
        seat_id=seat_id,
        tickets_deleted=tickets.rowcount,
        assignments_forfeited=forfeited_assignments,
    )
    return result.rowcount == 1


@storage_guard
async def generate_tickets_for_seat(db: AsyncSession, seat_id: int) -> int:
    """Create an available ticket for this seat at every home game lacking one."""
    if await db.get(Seat, seat_id) is None:
        raise ValidationError(f"Seat {seat_id} does not exist", field="seat_id")

    source = select(
        literal(seat_id),
        Game.game_pk,
        literal(TICKET_AVAILABLE),
    ).where(home_game_filter())

    created = await _insert_missing_tickets(db, source)
    logger.info("tickets_generated", seat_id=seat_id, created=created)
    return created


@storage_guard
async def generate_tickets_for_all_seats(db: AsyncSession) -> int:
    """Backfill tickets for seats x home games, e.g. after a schedule import."""
    source = (
        select(Seat.id, Game.game_pk, literal(TICKET_AVAILABLE))
        .select_from(Seat)
        .join(Game, true())
        .where(home_game_filter())
    )

    created = await _insert_missing_tickets(db, source)
    logger.info("tickets_generated", scope="all_seats", created=created)
    return created


async def _insert_missing_tickets(db: AsyncSession, source) -> int:
    table = GameTicket.__table__
    stmt = (
        upsert_insert(db, table)
        .from_select([table.c.seat_id, table.c.game_pk, table.c.status], source)
        .on_conflict_do_nothing(index_elements=[table.c.seat_id, table.c.game_pk])
    )
    result = await db.execute(stmt)
    created = max(result.rowcount, 0)
    record_tickets_generated(created)
    return created


@storage_guard
async def list_tickets_for_game(db: AsyncSession, game_pk: int) -> list[GameTicketDetail]:
    result = await db.execute(
        select(*_DETAIL_COLUMNS)
        .join(Seat, Seat.id == GameTicket.seat_id)
        .where(GameTicket.game_pk == game_pk)
        .order_by(Seat.section, Seat.row, Seat.seat)
    )
    return [GameTicketDetail(**row._mapping) for row in result]


@storage_guard
async def list_tickets_for_user(db: AsyncSession, user_id: int) -> list[GameTicketDetail]:
    """Tickets currently assigned to a user, in game order."""
    result = await db.execute(
        select(*_DETAIL_COLUMNS)
        .join(Seat, Seat.id == GameTicket.seat_id)
        .join(Game, Game.game_pk == GameTicket.game_pk)
        .where(GameTicket.assigned_to == user_id, GameTicket.status == TICKET_ASSIGNED)
        .order_by(Game.game_date, Seat.section, Seat.row, Seat.seat)
    )
    return [GameTicketDetail(**row._mapping) for row in result]


@storage_guard
async def get_ticket(db: AsyncSession, ticket_id: int) -> Optional[GameTicket]:
    result = await db.execute(select(GameTicket).where(GameTicket.id == ticket_id))
    return result.scalar_one_or_none()


@storage_guard
async def update_ticket_notes(db: AsyncSession, ticket_id: int, notes: Optional[str]) -> bool:
    """Notes are the only ticket field editable outside the allocation service."""
    result = await db.execute(
        update(GameTicket).where(GameTicket.id == ticket_id).values(notes=notes)
    )
    return result.rowcount == 1


@storage_guard
async def ticket_summary(db: AsyncSession) -> list[TicketSummaryRow]:
    """Total and available ticket counts per game."""
    available = func.sum(case((GameTicket.status == TICKET_AVAILABLE, 1), else_=0))
    result = await db.execute(
        select(
            GameTicket.game_pk,
            func.count(GameTicket.id).label("total"),
            available.label("available"),
        )
        .group_by(GameTicket.game_pk)
        .order_by(GameTicket.game_pk)
    )
    return [
        TicketSummaryRow(game_pk=game_pk, total=total, available=available or 0)
        for game_pk, total, available in result
    ]
