"""
Allocation engine: binding available game tickets to users.

CONCURRENCY STRATEGY: Conditional updates (compare-and-set on status)
=====================================================================

Problem:
  Two admins (or an admin and a member releasing tickets) act on the same
  ticket at once. Reading the status and then writing it lets both see
  'available' and both assign it.

Solution:
  Every transition is a single UPDATE whose WHERE clause carries the state
  it expects:

    assign:  UPDATE game_tickets SET status='assigned', assigned_to=:user
             WHERE id = :ticket AND status = 'available'
    revoke:  UPDATE game_tickets SET status='available', assigned_to=NULL
             WHERE id = :ticket AND status = 'assigned'

  The database serializes writers on the row. The loser re-evaluates the
  WHERE clause against the committed row, matches nothing, and sees
  rowcount == 0, reported as False. No SELECT FOR UPDATE, no retries: a
  caller who lost a ticket picks a different one.

  Approvals are additive (seats_approved = seats_approved + :n) for the same
  reason: concurrent batches never overwrite each other's counts.

Batch assignment attempts every entry and reports only how many succeeded.
A batch holds its row locks until the request commits, so it takes them in
ticket id order (and request id order for approvals); two batches over the
same tickets then queue on the first shared row instead of deadlocking.
Input that is wrong rather than merely stale (unknown users, a request that
belongs to someone else or to another game) is rejected before any write.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_manager.core.exceptions import ValidationError, storage_guard
from ticket_manager.core.logging import get_logger
from ticket_manager.core.metrics import record_allocation, record_request_transition, record_revocation
from ticket_manager.models.game import Game
from ticket_manager.models.game_ticket import GameTicket, TICKET_ASSIGNED, TICKET_AVAILABLE
from ticket_manager.models.ticket_request import TicketRequest, REQUEST_APPROVED, REQUEST_PENDING
from ticket_manager.models.user import User
from ticket_manager.schemas.allocation import AllocationItem, GameTicketWithUser, RequestWithUser
from ticket_manager.services import inventory_service, request_service
from ticket_manager.services.game_service import get_game, home_game_filter

logger = get_logger(__name__)


@dataclass
class AllocationSummaryRow:
    game_pk: int
    official_date: str
    away_team_name: str
    total_seats: int
    assigned: int
    available: int
    total_requested: int

    @property
    def oversubscribed(self) -> bool:
        return self.total_requested > self.available


@dataclass
class GameAllocationDetail:
    game: Game
    tickets: list[GameTicketWithUser]
    requests: list[RequestWithUser]


@storage_guard
async def assign_ticket(db: AsyncSession, ticket_id: int, user_id: int) -> bool:
    """Assign a ticket if, and only if, it is currently available."""
    if await db.get(User, user_id) is None:
        raise ValidationError(f"User {user_id} does not exist", field="user_id")
    return await _assign(db, ticket_id, user_id)


async def _assign(db: AsyncSession, ticket_id: int, user_id: int) -> bool:
    result = await db.execute(
        update(GameTicket)
        .where(GameTicket.id == ticket_id, GameTicket.status == TICKET_AVAILABLE)
        .values(status=TICKET_ASSIGNED, assigned_to=user_id)
    )
    assigned = result.rowcount == 1
    record_allocation(assigned)

    if assigned:
        logger.info("ticket_assigned", ticket_id=ticket_id, user_id=user_id)
    else:
        logger.info("ticket_assign_skipped", ticket_id=ticket_id, user_id=user_id, reason="not_available")
    return assigned


@storage_guard
async def revoke_ticket(db: AsyncSession, ticket_id: int) -> bool:
    """Return an assigned ticket to the pool. False if it was not assigned."""
    revoked = await _revoke(db, ticket_id)
    if revoked:
        record_revocation("admin")
        logger.info("ticket_revoked", ticket_id=ticket_id)
    return revoked


async def _revoke(db: AsyncSession, ticket_id: int, holder_id: Optional[int] = None) -> bool:
    conditions = [GameTicket.id == ticket_id, GameTicket.status == TICKET_ASSIGNED]
    if holder_id is not None:
        conditions.append(GameTicket.assigned_to == holder_id)

    result = await db.execute(
        update(GameTicket)
        .where(*conditions)
        .values(status=TICKET_AVAILABLE, assigned_to=None)
    )
    return result.rowcount == 1


@storage_guard
async def release_for_user(db: AsyncSession, game_pk: int, user_id: int) -> int:
    """
    Give back every ticket for a game held by this user. Each ticket is
    revoked with the holder in the WHERE clause, so a ticket reassigned to
    someone else in the meantime is never touched.
    """
    held = await db.execute(
        select(GameTicket.id).where(
            GameTicket.game_pk == game_pk,
            GameTicket.assigned_to == user_id,
            GameTicket.status == TICKET_ASSIGNED,
        )
    )

    released = 0
    for ticket_id in held.scalars().all():
        if await _revoke(db, ticket_id, holder_id=user_id):
            released += 1

    record_revocation("release", released)
    logger.info("tickets_released", game_pk=game_pk, user_id=user_id, released=released)
    return released


@storage_guard
async def record_approval(
    db: AsyncSession,
    request_id: int,
    seats_granted: int,
    status: str = REQUEST_APPROVED,
) -> bool:
    """Add granted seats to a request and mark it with the given status."""
    result = await db.execute(
        update(TicketRequest)
        .where(TicketRequest.id == request_id)
        .values(
            seats_approved=TicketRequest.seats_approved + seats_granted,
            status=status,
        )
        .execution_options(synchronize_session="fetch")
    )
    applied = result.rowcount == 1
    if applied:
        record_request_transition(status)
        logger.info("ticket_request_approved", request_id=request_id, seats_granted=seats_granted)
    return applied


@storage_guard
async def batch_assign(db: AsyncSession, assignments: Iterable[AllocationItem]) -> int:
    """
    Attempt every assignment and return how many tickets were assigned.

    Tickets that are unknown or no longer available are skipped. Successful
    assignments carrying a request_id are credited to that request, once per
    distinct request, after all assignments have been attempted.
    """
    assignments = sorted(assignments, key=lambda item: item.game_ticket_id)
    await _validate_batch(db, assignments)

    assigned_count = 0
    approvals: dict[int, int] = defaultdict(int)

    for item in assignments:
        if await _assign(db, item.game_ticket_id, item.user_id):
            assigned_count += 1
            if item.request_id is not None:
                approvals[item.request_id] += 1

    for request_id, seats in sorted(approvals.items()):
        await record_approval(db, request_id, seats, REQUEST_APPROVED)

    logger.info(
        "batch_assign_completed",
        attempted=len(assignments),
        assigned=assigned_count,
        requests_approved=len(approvals),
    )
    return assigned_count


async def _validate_batch(db: AsyncSession, assignments: list[AllocationItem]) -> None:
    user_ids = {item.user_id for item in assignments}
    known_users = set(
        (await db.execute(select(User.id).where(User.id.in_(user_ids)))).scalars().all()
    )
    unknown_users = sorted(user_ids - known_users)
    if unknown_users:
        raise ValidationError(
            f"Unknown user_id {unknown_users[0]}",
            field="user_id",
            details={"user_ids": unknown_users},
        )

    request_ids = {item.request_id for item in assignments if item.request_id is not None}
    if not request_ids:
        return

    requests = {
        r.id: r
        for r in (
            await db.execute(select(TicketRequest).where(TicketRequest.id.in_(request_ids)))
        ).scalars()
    }
    ticket_games = dict(
        (
            await db.execute(
                select(GameTicket.id, GameTicket.game_pk).where(
                    GameTicket.id.in_({item.game_ticket_id for item in assignments})
                )
            )
        ).all()
    )

    for item in assignments:
        if item.request_id is None:
            continue
        request = requests.get(item.request_id)
        if request is None:
            raise ValidationError(f"Unknown request_id {item.request_id}", field="request_id")
        if request.user_id != item.user_id:
            raise ValidationError(
                f"Request {item.request_id} does not belong to user {item.user_id}",
                field="request_id",
            )
        game_pk = ticket_games.get(item.game_ticket_id)
        if game_pk is not None and game_pk != request.game_pk:
            raise ValidationError(
                f"Ticket {item.game_ticket_id} is not for the game of request {item.request_id}",
                field="game_ticket_id",
            )


@storage_guard
async def allocation_summary(db: AsyncSession) -> list[AllocationSummaryRow]:
    """
    Inventory and pending demand per home game. Only pending requests count
    towards total_requested; approved and withdrawn demand is settled.
    """
    tickets = (
        select(
            GameTicket.game_pk.label("game_pk"),
            func.count(GameTicket.id).label("total_seats"),
            func.sum(case((GameTicket.status == TICKET_ASSIGNED, 1), else_=0)).label("assigned"),
            func.sum(case((GameTicket.status == TICKET_AVAILABLE, 1), else_=0)).label("available"),
        )
        .group_by(GameTicket.game_pk)
        .subquery()
    )
    demand = (
        select(
            TicketRequest.game_pk.label("game_pk"),
            func.sum(TicketRequest.seats_requested).label("total_requested"),
        )
        .where(TicketRequest.status == REQUEST_PENDING)
        .group_by(TicketRequest.game_pk)
        .subquery()
    )

    result = await db.execute(
        select(
            Game.game_pk,
            Game.official_date,
            Game.away_team_name,
            func.coalesce(tickets.c.total_seats, 0),
            func.coalesce(tickets.c.assigned, 0),
            func.coalesce(tickets.c.available, 0),
            func.coalesce(demand.c.total_requested, 0),
        )
        .outerjoin(tickets, tickets.c.game_pk == Game.game_pk)
        .outerjoin(demand, demand.c.game_pk == Game.game_pk)
        .where(home_game_filter())
        .order_by(Game.game_date)
    )
    return [AllocationSummaryRow(*row) for row in result]


@storage_guard
async def allocation_detail(db: AsyncSession, game_pk: int) -> Optional[GameAllocationDetail]:
    """
    A game with its tickets and requests, each decorated with user names.
    Users are looked up by key; a missing user leaves the name empty.
    """
    game = await get_game(db, game_pk)
    if game is None:
        return None

    tickets = await inventory_service.list_tickets_for_game(db, game_pk)
    requests = await request_service.list_requests_for_game(db, game_pk)

    user_ids = {t.assigned_to for t in tickets if t.assigned_to is not None}
    user_ids |= {r.user_id for r in requests}
    names: dict[int, str] = {}
    if user_ids:
        rows = await db.execute(select(User.id, User.name).where(User.id.in_(user_ids)))
        names = dict(rows.all())

    return GameAllocationDetail(
        game=game,
        tickets=[
            GameTicketWithUser(
                id=t.id,
                seat_id=t.seat_id,
                section=t.section,
                row=t.row,
                seat=t.seat,
                status=t.status,
                assigned_to=t.assigned_to,
                assigned_user_name=names.get(t.assigned_to) if t.assigned_to is not None else None,
            )
            for t in tickets
        ],
        requests=[
            RequestWithUser(
                id=r.id,
                user_id=r.user_id,
                user_name=names.get(r.user_id, ""),
                seats_requested=r.seats_requested,
                seats_approved=r.seats_approved,
                status=r.status,
                notes=r.notes,
            )
            for r in requests
        ],
    )

