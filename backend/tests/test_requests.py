"""
Tests for the member request ledger.
"""

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from ticket_manager.core.exceptions import StorageError, ValidationError
from ticket_manager.models.ticket_request import (
    TicketRequest,
    REQUEST_APPROVED,
    REQUEST_PENDING,
    REQUEST_WITHDRAWN,
)
from ticket_manager.schemas.request import TicketRequestCreate
from ticket_manager.services import allocation_service, request_service


@pytest.mark.asyncio
@pytest.mark.parametrize("seats", [0, 5, -1])
async def test_seat_count_out_of_range_rejected(db_session, home_game, member, seats):
    with pytest.raises(ValidationError) as exc:
        await request_service.create_or_reactivate_request(db_session, member.id, home_game, seats)
    assert f"got {seats} for game_pk {home_game}" in exc.value.message


@pytest.mark.asyncio
@pytest.mark.parametrize("seats", [1, 4])
async def test_seat_count_bounds_accepted(db_session, home_game, member, seats):
    request = await request_service.create_or_reactivate_request(
        db_session, member.id, home_game, seats
    )
    assert request.seats_requested == seats
    assert request.seats_approved == 0
    assert request.status == REQUEST_PENDING


@pytest.mark.asyncio
async def test_request_for_unknown_game_rejected(db_session, member):
    with pytest.raises(ValidationError):
        await request_service.create_or_reactivate_request(db_session, member.id, 555, 2)


@pytest.mark.asyncio
async def test_repeat_request_updates_in_place(db_session, home_game, member):
    first = await request_service.create_or_reactivate_request(
        db_session, member.id, home_game, 2, "first ask"
    )
    second = await request_service.create_or_reactivate_request(
        db_session, member.id, home_game, 3, "changed my mind"
    )

    assert second.id == first.id
    assert second.seats_requested == 3
    assert second.notes == "changed my mind"
    count = (await db_session.execute(select(func.count()).select_from(TicketRequest))).scalar_one()
    assert count == 1


@pytest.mark.asyncio
async def test_withdrawn_request_reactivates_keeping_approvals(db_session, home_game, member):
    request = await request_service.create_or_reactivate_request(db_session, member.id, home_game, 4)
    await allocation_service.record_approval(db_session, request.id, 1, REQUEST_PENDING)
    assert await request_service.withdraw_request(db_session, request.id, member.id)

    withdrawn = await request_service.get_request(db_session, request.id)
    assert withdrawn.status == REQUEST_WITHDRAWN

    again = await request_service.create_or_reactivate_request(db_session, member.id, home_game, 2)
    assert again.id == request.id
    assert again.status == REQUEST_PENDING
    assert again.seats_requested == 2
    assert again.seats_approved == 1


@pytest.mark.asyncio
async def test_repeat_request_keeps_approved_status(db_session, home_game, member):
    request = await request_service.create_or_reactivate_request(db_session, member.id, home_game, 2)
    await allocation_service.record_approval(db_session, request.id, 2)

    again = await request_service.create_or_reactivate_request(db_session, member.id, home_game, 3)
    assert again.status == REQUEST_APPROVED
    assert again.seats_approved == 2


@pytest.mark.asyncio
async def test_update_and_withdraw_require_owner(db_session, home_game, member, other_member):
    request = await request_service.create_or_reactivate_request(db_session, member.id, home_game, 2)

    assert not await request_service.update_request(db_session, request.id, other_member.id, 3)
    assert not await request_service.withdraw_request(db_session, request.id, other_member.id)

    assert await request_service.update_request(db_session, request.id, member.id, 3)
    refreshed = await request_service.get_request(db_session, request.id)
    assert refreshed.seats_requested == 3
    assert refreshed.status == REQUEST_PENDING


@pytest.mark.asyncio
async def test_update_and_withdraw_require_pending(db_session, home_game, member):
    request = await request_service.create_or_reactivate_request(db_session, member.id, home_game, 2)
    await allocation_service.record_approval(db_session, request.id, 2)

    assert not await request_service.update_request(db_session, request.id, member.id, 1)
    assert not await request_service.withdraw_request(db_session, request.id, member.id)


@pytest.mark.asyncio
async def test_update_validates_seat_count(db_session, home_game, member):
    request = await request_service.create_or_reactivate_request(db_session, member.id, home_game, 2)
    with pytest.raises(ValidationError):
        await request_service.update_request(db_session, request.id, member.id, 5)


@pytest.mark.asyncio
async def test_batch_with_bad_entry_writes_nothing(db_session, add_game, member):
    await add_game(123, "2026-04-10")
    await add_game(124, "2026-04-11")
    entries = [
        TicketRequestCreate(game_pk=123, seats_requested=2),
        TicketRequestCreate(game_pk=124, seats_requested=9),
    ]

    with pytest.raises(ValidationError) as exc:
        await request_service.create_requests(db_session, member.id, entries)
    assert exc.value.details["game_pk"] == 124
    assert await request_service.list_requests_for_user(db_session, member.id) == []


@pytest.mark.asyncio
async def test_listing_views(db_session, add_game, member, other_member):
    await add_game(124, "2026-05-01")
    await add_game(123, "2026-04-10")
    await request_service.create_requests(
        db_session,
        member.id,
        [
            TicketRequestCreate(game_pk=124, seats_requested=1),
            TicketRequestCreate(game_pk=123, seats_requested=2),
        ],
    )
    other = await request_service.create_or_reactivate_request(db_session, other_member.id, 123, 1)
    await request_service.withdraw_request(db_session, other.id, other_member.id)

    mine = await request_service.list_requests_for_user(db_session, member.id)
    assert [r.game_pk for r in mine] == [123, 124]

    for_game = await request_service.list_requests_for_game(db_session, 123)
    assert {r.user_id for r in for_game} == {member.id, other_member.id}

    pending = await request_service.list_pending_requests(db_session)
    assert [(r.user_id, r.game_pk) for r in pending] == [(member.id, 123), (member.id, 124)]


@pytest.mark.asyncio
async def test_request_batch_reports_storage_failures(db_session, home_game, member, monkeypatch):
    async def failing_upsert(db, user_id, game_pk, seats_requested, notes=None):
        raise OperationalError("INSERT INTO ticket_requests", {}, Exception("disk I/O error"))

    monkeypatch.setattr(request_service, "create_or_reactivate_request", failing_upsert)

    with pytest.raises(StorageError) as exc_info:
        await request_service.create_requests(
            db_session, member.id, [TicketRequestCreate(game_pk=home_game, seats_requested=2)]
        )
    assert exc_info.value.details == {"operation": "create_requests"}
