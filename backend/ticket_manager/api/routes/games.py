"""
Game schedule endpoints with Redis caching on the listing.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_manager.core.exceptions import NotFoundError
from ticket_manager.core.logging import get_logger
from ticket_manager.db.session import get_db
from ticket_manager.schemas.game import GameListResponse, GameResponse
from ticket_manager.schemas.promotion import PromotionResponse
from ticket_manager.schemas.ticket import GameTicketDetail
from ticket_manager.services.cache_service import get_cached_games, set_cached_games
from ticket_manager.services.game_service import get_game, list_games, list_promotions
from ticket_manager.services.inventory_service import list_tickets_for_game

logger = get_logger(__name__)
router = APIRouter(prefix="/games", tags=["Games"])


@router.get("", response_model=GameListResponse)
async def list_games_endpoint(
    month: Optional[int] = Query(None, ge=1, le=12),
    db: AsyncSession = Depends(get_db),
):
    """
    List games ordered by start time, optionally for one month.
    Cached until the next schedule import or the TTL expires.
    """
    cached = await get_cached_games(month)
    if cached:
        logger.info("games_list_cache_hit", month=month)
        cached["cached"] = True
        return GameListResponse(**cached)

    games = await list_games(db, month)
    response_data = {
        "games": [GameResponse.model_validate(g).model_dump() for g in games],
        "total": len(games),
        "cached": False,
    }
    await set_cached_games(month, response_data)

    return GameListResponse(**response_data)


@router.get("/{game_pk}", response_model=GameResponse)
async def get_game_endpoint(game_pk: int, db: AsyncSession = Depends(get_db)):
    game = await get_game(db, game_pk)
    if game is None:
        raise NotFoundError("Game not found")
    return game


@router.get("/{game_pk}/tickets", response_model=list[GameTicketDetail])
async def list_game_tickets_endpoint(game_pk: int, db: AsyncSession = Depends(get_db)):
    """Every ticket for the game with its seat location. Not cached."""
    return await list_tickets_for_game(db, game_pk)


@router.get("/{game_pk}/promotions", response_model=list[PromotionResponse])
async def list_game_promotions_endpoint(game_pk: int, db: AsyncSession = Depends(get_db)):
    """Promotions for the game in display order; empty for unknown games."""
    return await list_promotions(db, game_pk)
