"""
Tests for seat inventory and ticket generation.
"""

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from ticket_manager.core.exceptions import StorageError, ValidationError
from ticket_manager.models.game_ticket import GameTicket, TICKET_AVAILABLE
from ticket_manager.models.seat import Seat
from ticket_manager.services import allocation_service, inventory_service


async def _ticket_count(db, **filters) -> int:
    query = select(func.count()).select_from(GameTicket)
    for name, value in filters.items():
        query = query.where(getattr(GameTicket, name) == value)
    return (await db.execute(query)).scalar_one()


@pytest.mark.asyncio
async def test_add_seat_strips_whitespace(db_session):
    seat = await inventory_service.add_seat(db_session, " 127 ", "A ", " 3", "aisle")
    assert (seat.section, seat.row, seat.seat) == ("127", "A", "3")
    assert seat.label == "127-A-3"
    assert seat.notes == "aisle"


@pytest.mark.asyncio
async def test_add_seat_rejects_blank_fields(db_session):
    with pytest.raises(ValidationError) as exc:
        await inventory_service.add_seat(db_session, "127", "   ", "3")
    assert exc.value.details["field"] == "row"


@pytest.mark.asyncio
async def test_add_seat_rejects_duplicate_position(db_session, seat):
    with pytest.raises(ValidationError):
        await inventory_service.add_seat(db_session, "127", "A", "3")


@pytest.mark.asyncio
async def test_generate_tickets_only_for_home_games(db_session, add_game, seat):
    await add_game(123, "2026-04-10")
    await add_game(124, "2026-04-11")
    await add_game(900, "2026-04-20", home=False)

    created = await inventory_service.generate_tickets_for_seat(db_session, seat.id)

    assert created == 2
    assert await _ticket_count(db_session, game_pk=900) == 0
    assert await _ticket_count(db_session, seat_id=seat.id, status=TICKET_AVAILABLE) == 2


@pytest.mark.asyncio
async def test_generate_tickets_is_idempotent(db_session, home_game, seat):
    assert await inventory_service.generate_tickets_for_seat(db_session, seat.id) == 1
    assert await inventory_service.generate_tickets_for_seat(db_session, seat.id) == 0
    assert await inventory_service.generate_tickets_for_all_seats(db_session) == 0
    assert await _ticket_count(db_session) == 1


@pytest.mark.asyncio
async def test_generate_leaves_assigned_tickets_alone(db_session, home_game, seat, member):
    await inventory_service.generate_tickets_for_seat(db_session, seat.id)
    ticket = (await inventory_service.list_tickets_for_game(db_session, home_game))[0]
    assert await allocation_service.assign_ticket(db_session, ticket.id, member.id)

    await inventory_service.generate_tickets_for_all_seats(db_session)

    tickets = await inventory_service.list_tickets_for_game(db_session, home_game)
    assert len(tickets) == 1
    assert tickets[0].assigned_to == member.id


@pytest.mark.asyncio
async def test_generate_for_all_seats_backfills_new_games(db_session, add_game, seat):
    await add_game(123, "2026-04-10")
    await inventory_service.generate_tickets_for_seat(db_session, seat.id)
    other = await inventory_service.add_seat(db_session, "127", "A", "4")

    await add_game(124, "2026-04-11")
    created = await inventory_service.generate_tickets_for_all_seats(db_session)

    # seat 3 gains game 124; seat 4 gains both games
    assert created == 3
    assert await _ticket_count(db_session, seat_id=other.id) == 2


@pytest.mark.asyncio
async def test_generate_for_unknown_seat_is_rejected(db_session, home_game):
    with pytest.raises(ValidationError):
        await inventory_service.generate_tickets_for_seat(db_session, 9999)


@pytest.mark.asyncio
async def test_seat_batch_creates_seats_and_tickets(db_session, home_game):
    seats = await inventory_service.add_seat_batch(db_session, "128", "B", 1, 4, "family")

    assert [s.seat for s in seats] == ["1", "2", "3", "4"]
    assert all(s.notes == "family" for s in seats)
    assert await _ticket_count(db_session, game_pk=home_game) == 4


@pytest.mark.asyncio
@pytest.mark.parametrize("seat_start,seat_end", [(5, 4), (0, 50), (10, 100)])
async def test_seat_batch_rejects_bad_ranges(db_session, seat_start, seat_end):
    with pytest.raises(ValidationError):
        await inventory_service.add_seat_batch(db_session, "128", "B", seat_start, seat_end)

    count = (await db_session.execute(select(func.count()).select_from(Seat))).scalar_one()
    assert count == 0


@pytest.mark.asyncio
async def test_seat_batch_allows_fifty_seats(db_session):
    seats = await inventory_service.add_seat_batch(db_session, "128", "B", 1, 50)
    assert len(seats) == 50


@pytest.mark.asyncio
async def test_group_notes_update_counts_rows(db_session):
    await inventory_service.add_seat_batch(db_session, "128", "B", 1, 3)
    await inventory_service.add_seat(db_session, "128", "C", "1")

    assert await inventory_service.update_seat_group_notes(db_session, "128", "B", "shade") == 3
    assert await inventory_service.update_seat_group_notes(db_session, "999", "Z", "x") == 0

    seats = await inventory_service.list_seats(db_session)
    assert [s.notes for s in seats] == ["shade", "shade", "shade", None]


@pytest.mark.asyncio
async def test_update_seat_notes(db_session, seat):
    updated = await inventory_service.update_seat_notes(db_session, seat.id, "near stairs")
    assert updated.notes == "near stairs"
    assert await inventory_service.update_seat_notes(db_session, 9999, "x") is None


@pytest.mark.asyncio
async def test_delete_seat_removes_assigned_tickets(db_session, home_game, seat, member):
    await inventory_service.generate_tickets_for_seat(db_session, seat.id)
    ticket = (await inventory_service.list_tickets_for_game(db_session, home_game))[0]
    await allocation_service.assign_ticket(db_session, ticket.id, member.id)
    seat_id = seat.id

    assert await inventory_service.delete_seat(db_session, seat_id) is True

    assert await _ticket_count(db_session, seat_id=seat_id) == 0
    assert await inventory_service.list_tickets_for_user(db_session, member.id) == []
    assert await inventory_service.delete_seat(db_session, seat_id) is False


@pytest.mark.asyncio
async def test_ticket_notes_and_summary(db_session, add_game):
    await add_game(123, "2026-04-10")
    await add_game(124, "2026-04-11")
    await inventory_service.add_seat_batch(db_session, "127", "A", 1, 2)
    tickets = await inventory_service.list_tickets_for_game(db_session, 123)

    assert await inventory_service.update_ticket_notes(db_session, tickets[0].id, "parking pass")
    assert not await inventory_service.update_ticket_notes(db_session, 9999, "nope")

    summary = await inventory_service.ticket_summary(db_session)
    assert [(r.game_pk, r.total, r.available) for r in summary] == [(123, 2, 2), (124, 2, 2)]


@pytest.mark.asyncio
async def test_tickets_for_game_ordered_by_location(db_session, home_game):
    await inventory_service.add_seat_batch(db_session, "200", "A", 1, 1)
    await inventory_service.add_seat_batch(db_session, "127", "B", 1, 1)
    await inventory_service.add_seat_batch(db_session, "127", "A", 1, 1)

    tickets = await inventory_service.list_tickets_for_game(db_session, home_game)
    assert [(t.section, t.row) for t in tickets] == [("127", "A"), ("127", "B"), ("200", "A")]


@pytest.mark.asyncio
async def test_seat_batch_reports_storage_failures(db_session, home_game, monkeypatch):
    async def failing_generation(db, seat_id):
        raise OperationalError("INSERT INTO game_tickets", {}, Exception("disk I/O error"))

    monkeypatch.setattr(inventory_service, "generate_tickets_for_seat", failing_generation)

    with pytest.raises(StorageError) as exc_info:
        await inventory_service.add_seat_batch(db_session, "127", "A", 1, 2)
    assert exc_info.value.details == {"operation": "add_seat_batch"}
