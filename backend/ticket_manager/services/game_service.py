"""
Game service: schedule upserts and read access to games and their promotions.
"""

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_manager.core.config import get_settings
from ticket_manager.core.exceptions import storage_guard
from ticket_manager.db.session import upsert_insert
from ticket_manager.models.game import Game
from ticket_manager.models.promotion import Promotion
from ticket_manager.schemas.game import GameData
from ticket_manager.schemas.promotion import PromotionData

settings = get_settings()

# Columns refreshed when the provider re-publishes a known game.
# Teams, venue and series data are fixed once scheduled.
_MUTABLE_GAME_COLUMNS = (
    "game_guid",
    "game_date",
    "official_date",
    "status_abstract",
    "status_detailed",
    "status_code",
    "start_time_tbd",
    "away_score",
    "away_is_winner",
    "home_score",
    "home_is_winner",
    "day_night",
    "description",
    "double_header",
    "game_number",
    "is_tie",
)


def home_game_filter():
    return Game.home_team_id == settings.HOME_TEAM_ID


@storage_guard
async def upsert_game(db: AsyncSession, game: GameData) -> None:
    """Insert a game or refresh its mutable columns, keyed by game_pk."""
    stmt = upsert_insert(db, Game).values(**game.model_dump())
    stmt = stmt.on_conflict_do_update(
        index_elements=[Game.game_pk],
        set_={
            **{name: stmt.excluded[name] for name in _MUTABLE_GAME_COLUMNS},
            "updated_at": func.now(),
        },
    )
    await db.execute(stmt)


@storage_guard
async def get_game(db: AsyncSession, game_pk: int) -> Optional[Game]:
    result = await db.execute(select(Game).where(Game.game_pk == game_pk))
    return result.scalar_one_or_none()


@storage_guard
async def list_games(db: AsyncSession, month: Optional[int] = None) -> list[Game]:
    """All games ordered by start time, optionally limited to one calendar month."""
    query = select(Game)
    if month is not None:
        query = query.where(Game.official_date.like(f"%-{month:02d}-%"))
    result = await db.execute(query.order_by(Game.game_date.asc()))
    return list(result.scalars().all())


@storage_guard
async def list_home_games(db: AsyncSession) -> list[Game]:
    result = await db.execute(
        select(Game).where(home_game_filter()).order_by(Game.game_date.asc())
    )
    return list(result.scalars().all())


@storage_guard
async def upsert_promotion(db: AsyncSession, promotion: PromotionData) -> None:
    """Insert a promotion or refresh its details, keyed by (offer_id, game_pk)."""
    stmt = upsert_insert(db, Promotion).values(**promotion.model_dump())
    stmt = stmt.on_conflict_do_update(
        index_elements=[Promotion.offer_id, Promotion.game_pk],
        set_={
            **{
                name: stmt.excluded[name]
                for name in promotion.model_dump(exclude={"offer_id", "game_pk"})
            },
            "updated_at": func.now(),
        },
    )
    await db.execute(stmt)


@storage_guard
async def list_promotions(db: AsyncSession, game_pk: int) -> list[Promotion]:
    result = await db.execute(
        select(Promotion)
        .where(Promotion.game_pk == game_pk)
        .order_by(Promotion.display_order.asc(), Promotion.offer_id.asc())
    )
    return list(result.scalars().all())
