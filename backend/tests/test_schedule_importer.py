"""
Tests for the schedule importer against a mocked MLB Stats API.
"""

import httpx
import pytest

from ticket_manager.core.exceptions import ExternalServiceError
from ticket_manager.services import game_service, inventory_service
from ticket_manager.services.schedule_importer import (
    import_schedule,
    parse_schedule,
    parse_schedule_with_promotions,
)


def schedule_entry(game_pk: int, official_date: str, home_id: int = 137, **overrides) -> dict:
    away_id = 119 if home_id == 137 else 137
    entry = {
        "gamePk": game_pk,
        "gameGuid": f"guid-{game_pk}",
        "gameType": "R",
        "season": official_date[:4],
        "gameDate": f"{official_date}T20:15:00Z",
        "officialDate": official_date,
        "status": {
            "abstractGameState": "Preview",
            "detailedState": "Scheduled",
            "statusCode": "S",
            "startTimeTBD": False,
        },
        "teams": {
            "away": {"team": {"id": away_id, "name": f"Team {away_id}"}},
            "home": {"team": {"id": home_id, "name": f"Team {home_id}"}},
        },
        "venue": {"id": 2395, "name": "Oracle Park"},
        "dayNight": "night",
        "seriesDescription": "Regular Season",
        "seriesGameNumber": 1,
        "gamesInSeries": 3,
    }
    entry.update(overrides)
    return entry


def promotion(offer_id: int, name: str, order: int = 0, **overrides) -> dict:
    promo = {
        "offerId": offer_id,
        "name": name,
        "offerType": "Giveaway",
        "distribution": "First 20,000 fans",
        "tlink": f"https://example.com/tickets/{offer_id}",
        "order": order,
    }
    promo.update(overrides)
    return promo


def schedule_payload(*entries: dict) -> dict:
    return {"dates": [{"date": e["officialDate"], "games": [e]} for e in entries]}


def mock_client(payload: dict, status_code: int = 200, seen: list | None = None) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=payload)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_parse_applies_defaults_for_missing_fields():
    [game] = parse_schedule(schedule_payload(schedule_entry(1, "2026-04-01")))

    assert game.game_pk == 1
    assert game.double_header == "N"
    assert game.game_number == 1
    assert game.scheduled_innings == 9
    assert game.is_tie is False
    assert game.away_score is None
    assert game.status_detailed == "Scheduled"


def test_parse_reads_final_scores():
    entry = schedule_entry(2, "2026-04-02", doubleHeader="Y", gameNumber=2, isTie=False)
    entry["teams"]["home"].update(score=5, isWinner=True)
    entry["teams"]["away"].update(score=3, isWinner=False)

    [game] = parse_schedule(schedule_payload(entry))

    assert (game.home_score, game.away_score) == (5, 3)
    assert game.home_is_winner is True
    assert (game.double_header, game.game_number) == ("Y", 2)


def test_parse_empty_schedule():
    assert parse_schedule({"dates": []}) == []
    assert parse_schedule({}) == []


@pytest.mark.asyncio
async def test_import_upserts_games_and_generates_home_tickets(db_session, seat):
    seen: list[httpx.Request] = []
    payload = schedule_payload(
        schedule_entry(10, "2026-04-01"),
        schedule_entry(11, "2026-04-02"),
        schedule_entry(12, "2026-04-05", home_id=119),
    )
    async with mock_client(payload, seen=seen) as client:
        result = await import_schedule(db_session, 2026, client)

    assert (result.season, result.games, result.tickets) == (2026, 3, 2)
    assert result.promotions == 0
    params = seen[0].url.params
    assert params["teamId"] == "137"
    assert params["season"] == "2026"
    assert params["sportId"] == "1"
    assert params["gameType"] == "R"
    assert params["hydrate"] == "game(promotions)"

    assert len(await game_service.list_games(db_session)) == 3
    assert [g.game_pk for g in await game_service.list_home_games(db_session)] == [10, 11]
    summary = await inventory_service.ticket_summary(db_session)
    assert [(r.game_pk, r.total) for r in summary] == [(10, 1), (11, 1)]


@pytest.mark.asyncio
async def test_reimport_updates_status_without_new_tickets(db_session, seat):
    async with mock_client(schedule_payload(schedule_entry(10, "2026-04-01"))) as client:
        await import_schedule(db_session, 2026, client)

    final = schedule_entry(
        10,
        "2026-04-01",
        status={"abstractGameState": "Final", "detailedState": "Final", "statusCode": "F"},
    )
    async with mock_client(schedule_payload(final)) as client:
        result = await import_schedule(db_session, 2026, client)

    assert result.tickets == 0
    game = await game_service.get_game(db_session, 10)
    await db_session.refresh(game)
    assert game.status_detailed == "Final"


@pytest.mark.asyncio
async def test_upstream_failure_raises_external_service_error(db_session):
    async with mock_client({"message": "down"}, status_code=503) as client:
        with pytest.raises(ExternalServiceError):
            await import_schedule(db_session, 2026, client)


@pytest.mark.asyncio
async def test_malformed_payload_raises_external_service_error(db_session):
    async with mock_client({"dates": [{"games": [{"gamePk": 1}]}]}) as client:
        with pytest.raises(ExternalServiceError):
            await import_schedule(db_session, 2026, client)


def test_parse_promotions_nested_in_games():
    payload = schedule_payload(
        schedule_entry(1, "2026-04-01", promotions=[promotion(500, "Bobblehead", order=2)]),
        schedule_entry(2, "2026-04-02"),
    )

    schedule = parse_schedule_with_promotions(payload)

    assert [g.game_pk for g in schedule.games] == [1, 2]
    [promo] = schedule.promotions
    assert (promo.offer_id, promo.game_pk, promo.name) == (500, 1, "Bobblehead")
    assert promo.ticket_link == "https://example.com/tickets/500"
    assert promo.display_order == 2
    assert promo.presented_by is None


@pytest.mark.asyncio
async def test_import_upserts_promotions(db_session):
    first = schedule_payload(
        schedule_entry(
            10,
            "2026-04-01",
            promotions=[promotion(501, "Fireworks", order=2), promotion(500, "Bobblehead", order=1)],
        ),
        schedule_entry(11, "2026-04-02", promotions=[promotion(500, "Bobblehead")]),
    )
    async with mock_client(first) as client:
        result = await import_schedule(db_session, 2026, client)

    assert result.promotions == 3
    promos = await game_service.list_promotions(db_session, 10)
    assert [p.name for p in promos] == ["Bobblehead", "Fireworks"]
    assert [p.offer_id for p in await game_service.list_promotions(db_session, 11)] == [500]

    renamed = schedule_payload(
        schedule_entry(10, "2026-04-01", promotions=[promotion(500, "Gold Bobblehead", order=1)]),
    )
    async with mock_client(renamed) as client:
        await import_schedule(db_session, 2026, client)

    promos = await game_service.list_promotions(db_session, 10)
    for promo in promos:
        await db_session.refresh(promo)
    assert len(promos) == 2
    assert {p.name for p in promos} == {"Gold Bobblehead", "Fireworks"}


@pytest.mark.asyncio
async def test_promotion_missing_offer_id_raises_external_service_error(db_session):
    entry = schedule_entry(10, "2026-04-01", promotions=[{"name": "Mystery"}])
    async with mock_client(schedule_payload(entry)) as client:
        with pytest.raises(ExternalServiceError):
            await import_schedule(db_session, 2026, client)
