"""
Schedule importer: fetches the managed team's regular-season schedule from
the MLB Stats API, normalizes it into GameData and PromotionData, upserts
both and backfills tickets for any newly discovered home games.

Promotions are not part of the default schedule payload; the request asks
for them with hydrate=game(promotions), which nests a `promotions` list in
each game entry.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_manager.core.config import get_settings
from ticket_manager.core.exceptions import ExternalServiceError
from ticket_manager.core.logging import get_logger
from ticket_manager.schemas.game import GameData
from ticket_manager.schemas.promotion import PromotionData
from ticket_manager.services.cache_service import invalidate_game_cache
from ticket_manager.services.game_service import upsert_game, upsert_promotion
from ticket_manager.services.inventory_service import generate_tickets_for_all_seats

logger = get_logger(__name__)
settings = get_settings()


@dataclass
class Schedule:
    games: list[GameData] = field(default_factory=list)
    promotions: list[PromotionData] = field(default_factory=list)


@dataclass
class ImportResult:
    season: int
    games: int
    promotions: int
    tickets: int


def parse_game(entry: dict[str, Any]) -> GameData:
    """Flatten one `dates[].games[]` entry of the schedule response."""
    status = entry["status"]
    away = entry["teams"]["away"]
    home = entry["teams"]["home"]
    return GameData(
        game_pk=entry["gamePk"],
        game_guid=entry.get("gameGuid"),
        game_type=entry["gameType"],
        season=entry["season"],
        game_date=entry["gameDate"],
        official_date=entry["officialDate"],
        status_abstract=status["abstractGameState"],
        status_detailed=status["detailedState"],
        status_code=status["statusCode"],
        start_time_tbd=bool(status.get("startTimeTBD", False)),
        away_team_id=away["team"]["id"],
        away_team_name=away["team"]["name"],
        away_score=away.get("score"),
        away_is_winner=away.get("isWinner"),
        home_team_id=home["team"]["id"],
        home_team_name=home["team"]["name"],
        home_score=home.get("score"),
        home_is_winner=home.get("isWinner"),
        venue_id=entry["venue"]["id"],
        venue_name=entry["venue"]["name"],
        day_night=entry.get("dayNight"),
        description=entry.get("description"),
        series_description=entry.get("seriesDescription"),
        series_game_number=entry.get("seriesGameNumber"),
        games_in_series=entry.get("gamesInSeries"),
        double_header=entry.get("doubleHeader") or "N",
        game_number=entry.get("gameNumber") or 1,
        scheduled_innings=entry.get("scheduledInnings") or 9,
        is_tie=bool(entry.get("isTie", False)),
    )


def parse_promotions(entry: dict[str, Any]) -> list[PromotionData]:
    """Promotions nested in one game entry; absent when not hydrated."""
    game_pk = entry["gamePk"]
    return [
        PromotionData(
            offer_id=promo["offerId"],
            game_pk=game_pk,
            name=promo["name"],
            offer_type=promo.get("offerType"),
            description=promo.get("description"),
            distribution=promo.get("distribution"),
            presented_by=promo.get("presentedBy"),
            alt_page_url=promo.get("altPageUrl"),
            ticket_link=promo.get("tlink"),
            thumbnail_url=promo.get("thumbnailUrl"),
            image_url=promo.get("imageUrl"),
            display_order=promo.get("order") or 0,
        )
        for promo in entry.get("promotions") or []
    ]


def _game_entries(payload: dict[str, Any]) -> list[dict[str, Any]]:
    return [game for day in payload.get("dates", []) for game in day.get("games", [])]


def parse_schedule(payload: dict[str, Any]) -> list[GameData]:
    return [parse_game(entry) for entry in _game_entries(payload)]


def parse_schedule_with_promotions(payload: dict[str, Any]) -> Schedule:
    schedule = Schedule()
    for entry in _game_entries(payload):
        schedule.games.append(parse_game(entry))
        schedule.promotions.extend(parse_promotions(entry))
    return schedule


async def fetch_schedule(season: int, client: Optional[httpx.AsyncClient] = None) -> Schedule:
    params = {
        "teamId": settings.HOME_TEAM_ID,
        "season": season,
        "sportId": 1,
        "gameType": "R",
        "hydrate": "game(promotions)",
    }
    logger.info("schedule_fetch_started", season=season, team_id=settings.HOME_TEAM_ID)

    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=settings.SCHEDULE_TIMEOUT)
    try:
        response = await client.get(settings.SCHEDULE_API_URL, params=params)
        response.raise_for_status()
        schedule = parse_schedule_with_promotions(response.json())
    except httpx.HTTPError as e:
        logger.error("schedule_fetch_failed", season=season, error=str(e))
        raise ExternalServiceError("schedule", f"Schedule fetch failed: {e}") from e
    except (KeyError, TypeError, ValueError) as e:
        logger.error("schedule_parse_failed", season=season, error=str(e))
        raise ExternalServiceError("schedule", "Schedule response could not be parsed") from e
    finally:
        if owns_client:
            await client.aclose()

    logger.info(
        "schedule_fetched",
        season=season,
        games=len(schedule.games),
        promotions=len(schedule.promotions),
    )
    return schedule


async def import_schedule(
    db: AsyncSession,
    season: int,
    client: Optional[httpx.AsyncClient] = None,
) -> ImportResult:
    """Fetch, upsert every game and promotion, then generate tickets for existing seats."""
    schedule = await fetch_schedule(season, client)
    for game in schedule.games:
        await upsert_game(db, game)
    # Games first: promotions reference them.
    for promotion in schedule.promotions:
        await upsert_promotion(db, promotion)

    tickets = await generate_tickets_for_all_seats(db)
    await invalidate_game_cache()

    logger.info(
        "schedule_imported",
        season=season,
        games=len(schedule.games),
        promotions=len(schedule.promotions),
        tickets=tickets,
    )
    return ImportResult(
        season=season,
        games=len(schedule.games),
        promotions=len(schedule.promotions),
        tickets=tickets,
    )
