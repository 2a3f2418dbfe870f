"""
Game model, keyed by the schedule provider's game_pk.

Rows are upserted by the schedule importer and never deleted. Dates are kept
in the provider's string form: game_date is an ISO timestamp, official_date
is YYYY-MM-DD and drives month filtering.
"""

from sqlalchemy import BigInteger, Boolean, Column, Index, Integer, String

from ticket_manager.db.base import Base, TimestampMixin


class Game(Base, TimestampMixin):
    __tablename__ = "games"

    game_pk = Column(BigInteger, primary_key=True, autoincrement=False)
    game_guid = Column(String(64), nullable=True)
    game_type = Column(String(4), nullable=False)
    season = Column(String(8), nullable=False)
    game_date = Column(String(32), nullable=False)
    official_date = Column(String(10), nullable=False)
    status_abstract = Column(String(32), nullable=False)
    status_detailed = Column(String(64), nullable=False)
    status_code = Column(String(8), nullable=False)
    start_time_tbd = Column(Boolean, nullable=False, default=False)

    away_team_id = Column(Integer, nullable=False)
    away_team_name = Column(String(100), nullable=False)
    away_score = Column(Integer, nullable=True)
    away_is_winner = Column(Boolean, nullable=True)
    home_team_id = Column(Integer, nullable=False)
    home_team_name = Column(String(100), nullable=False)
    home_score = Column(Integer, nullable=True)
    home_is_winner = Column(Boolean, nullable=True)

    venue_id = Column(Integer, nullable=False)
    venue_name = Column(String(100), nullable=False)
    day_night = Column(String(8), nullable=True)
    description = Column(String(255), nullable=True)
    series_description = Column(String(100), nullable=True)
    series_game_number = Column(Integer, nullable=True)
    games_in_series = Column(Integer, nullable=True)
    double_header = Column(String(1), nullable=False, default="N")
    game_number = Column(Integer, nullable=False, default=1)
    scheduled_innings = Column(Integer, nullable=False, default=9)
    is_tie = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("ix_games_home_team_date", "home_team_id", "game_date"),
        Index("ix_games_official_date", "official_date"),
    )

    def __repr__(self) -> str:
        return f"<Game(pk={self.game_pk}, {self.official_date} {self.away_team_name} @ {self.home_team_name})>"
