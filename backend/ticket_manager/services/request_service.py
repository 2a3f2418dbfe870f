"""
Request ledger: members' ticket requests.

STATE MACHINE
=============

  pending  --update-->    pending
  pending  --withdraw-->  withdrawn
  withdrawn --create-->   pending     (reactivation, seats_approved kept)
  pending  --approval-->  approved    (allocation service only)

There is one row per (user, game). Asking again for the same game is a single
upsert against that unique constraint: the row is updated in place rather
than duplicated, and a withdrawn row comes back as pending.

Member-side mutations are conditional UPDATEs guarded on ownership and on
status = 'pending'. A miss returns False; the caller reports "not found".
"""

from typing import Iterable, Optional

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_manager.core.config import get_settings
from ticket_manager.core.exceptions import ValidationError, storage_guard
from ticket_manager.core.logging import get_logger
from ticket_manager.core.metrics import record_request_transition
from ticket_manager.db.session import upsert_insert
from ticket_manager.models.game import Game
from ticket_manager.models.ticket_request import (
    TicketRequest,
    REQUEST_PENDING,
    REQUEST_WITHDRAWN,
)
from ticket_manager.schemas.request import TicketRequestCreate

logger = get_logger(__name__)
settings = get_settings()


def validate_seats_requested(seats_requested: int, game_pk: Optional[int] = None) -> None:
    limit = settings.MAX_SEATS_PER_REQUEST
    if seats_requested < 1 or seats_requested > limit:
        if game_pk is None:
            raise ValidationError(f"seats_requested must be 1-{limit}", field="seats_requested")
        raise ValidationError(
            f"seats_requested must be 1-{limit} (got {seats_requested} for game_pk {game_pk})",
            field="seats_requested",
            details={"game_pk": game_pk},
        )


@storage_guard
async def create_or_reactivate_request(
    db: AsyncSession,
    user_id: int,
    game_pk: int,
    seats_requested: int,
    notes: Optional[str] = None,
) -> TicketRequest:
    """
    Create a pending request, or update the user's existing request for the
    game in place. A withdrawn request is reactivated to pending; pending and
    approved requests keep their status. seats_approved is never reset.
    """
    validate_seats_requested(seats_requested, game_pk)
    if await db.get(Game, game_pk) is None:
        raise ValidationError(f"Game {game_pk} does not exist", field="game_pk")

    previous = await db.execute(
        select(TicketRequest.status).where(
            TicketRequest.user_id == user_id, TicketRequest.game_pk == game_pk
        )
    )
    previous_status = previous.scalar_one_or_none()

    stmt = upsert_insert(db, TicketRequest).values(
        user_id=user_id,
        game_pk=game_pk,
        seats_requested=seats_requested,
        seats_approved=0,
        status=REQUEST_PENDING,
        notes=notes,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[TicketRequest.user_id, TicketRequest.game_pk],
        set_={
            "seats_requested": stmt.excluded.seats_requested,
            "notes": stmt.excluded.notes,
            "status": case(
                (TicketRequest.status == REQUEST_WITHDRAWN, REQUEST_PENDING),
                else_=TicketRequest.status,
            ),
            "updated_at": func.now(),
        },
    )
    await db.execute(stmt)

    result = await db.execute(
        select(TicketRequest)
        .where(TicketRequest.user_id == user_id, TicketRequest.game_pk == game_pk)
        .execution_options(populate_existing=True)
    )
    request = result.scalar_one()

    if previous_status is None:
        transition = "created"
    elif previous_status == REQUEST_WITHDRAWN:
        transition = "reactivated"
    else:
        transition = "updated"
    record_request_transition(transition)
    logger.info(
        "ticket_request_saved",
        request_id=request.id,
        user_id=user_id,
        game_pk=game_pk,
        seats_requested=seats_requested,
        transition=transition,
    )
    return request


@storage_guard
async def create_requests(
    db: AsyncSession,
    user_id: int,
    entries: Iterable[TicketRequestCreate],
) -> list[TicketRequest]:
    """
    Batch form of create_or_reactivate_request. Every entry's seat count is
    checked before the first write; the first bad entry rejects the batch.
    """
    entries = list(entries)
    for entry in entries:
        validate_seats_requested(entry.seats_requested, entry.game_pk)

    return [
        await create_or_reactivate_request(
            db, user_id, entry.game_pk, entry.seats_requested, entry.notes
        )
        for entry in entries
    ]


@storage_guard
async def update_request(
    db: AsyncSession,
    request_id: int,
    user_id: int,
    seats_requested: int,
) -> bool:
    """Change the seat count of the caller's own pending request."""
    validate_seats_requested(seats_requested)
    result = await db.execute(
        update(TicketRequest)
        .where(
            TicketRequest.id == request_id,
            TicketRequest.user_id == user_id,
            TicketRequest.status == REQUEST_PENDING,
        )
        .values(seats_requested=seats_requested)
    )
    if result.rowcount != 1:
        return False

    record_request_transition("updated")
    logger.info("ticket_request_updated", request_id=request_id, seats_requested=seats_requested)
    return True


@storage_guard
async def withdraw_request(db: AsyncSession, request_id: int, user_id: int) -> bool:
    """
    Withdraw the caller's own pending request. Tickets already assigned and
    seats_approved are left as they are.
    """
    result = await db.execute(
        update(TicketRequest)
        .where(
            TicketRequest.id == request_id,
            TicketRequest.user_id == user_id,
            TicketRequest.status == REQUEST_PENDING,
        )
        .values(status=REQUEST_WITHDRAWN)
    )
    if result.rowcount != 1:
        return False

    record_request_transition("withdrawn")
    logger.info("ticket_request_withdrawn", request_id=request_id, user_id=user_id)
    return True


@storage_guard
async def get_request(db: AsyncSession, request_id: int) -> Optional[TicketRequest]:
    result = await db.execute(select(TicketRequest).where(TicketRequest.id == request_id))
    return result.scalar_one_or_none()


@storage_guard
async def list_requests_for_user(db: AsyncSession, user_id: int) -> list[TicketRequest]:
    result = await db.execute(
        select(TicketRequest)
        .join(Game, Game.game_pk == TicketRequest.game_pk)
        .where(TicketRequest.user_id == user_id)
        .order_by(Game.game_date)
    )
    return list(result.scalars().all())


@storage_guard
async def list_requests_for_game(db: AsyncSession, game_pk: int) -> list[TicketRequest]:
    result = await db.execute(
        select(TicketRequest)
        .where(TicketRequest.game_pk == game_pk)
        .order_by(TicketRequest.created_at, TicketRequest.id)
    )
    return list(result.scalars().all())


@storage_guard
async def list_pending_requests(db: AsyncSession) -> list[TicketRequest]:
    result = await db.execute(
        select(TicketRequest)
        .join(Game, Game.game_pk == TicketRequest.game_pk)
        .where(TicketRequest.status == REQUEST_PENDING)
        .order_by(Game.game_date, TicketRequest.created_at, TicketRequest.id)
    )
    return list(result.scalars().all())
