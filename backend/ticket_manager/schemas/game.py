"""
Pydantic schemas for games.

GameData is the normalized form produced by the schedule importer and the
input to the game upsert.
"""

from typing import Optional
from pydantic import BaseModel, computed_field

from ticket_manager.core.config import get_settings


class GameData(BaseModel):
    game_pk: int
    game_guid: Optional[str] = None
    game_type: str
    season: str
    game_date: str
    official_date: str
    status_abstract: str
    status_detailed: str
    status_code: str
    start_time_tbd: bool = False
    away_team_id: int
    away_team_name: str
    away_score: Optional[int] = None
    away_is_winner: Optional[bool] = None
    home_team_id: int
    home_team_name: str
    home_score: Optional[int] = None
    home_is_winner: Optional[bool] = None
    venue_id: int
    venue_name: str
    day_night: Optional[str] = None
    description: Optional[str] = None
    series_description: Optional[str] = None
    series_game_number: Optional[int] = None
    games_in_series: Optional[int] = None
    double_header: str = "N"
    game_number: int = 1
    scheduled_innings: int = 9
    is_tie: bool = False


class GameResponse(GameData):
    model_config = {"from_attributes": True}

    @computed_field
    @property
    def home_away(self) -> str:
        return "home" if self.home_team_id == get_settings().HOME_TEAM_ID else "away"


class GameListResponse(BaseModel):
    games: list[GameResponse]
    total: int
    cached: bool = False


class ScheduleImportRequest(BaseModel):
    season: Optional[int] = None


class ScheduleImportResponse(BaseModel):
    season: int
    games: int
    promotions: int
    tickets: int
