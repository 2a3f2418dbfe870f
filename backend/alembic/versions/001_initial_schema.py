"""Initial schema: users, games, seats, game tickets and ticket requests.

Revision ID: 001
Revises: None
Create Date: 2026-03-02
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("external_sub", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="member"),
        *_timestamps(),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_external_sub", "users", ["external_sub"], unique=True)

    op.create_table(
        "games",
        sa.Column("game_pk", sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column("game_guid", sa.String(64), nullable=True),
        sa.Column("game_type", sa.String(4), nullable=False),
        sa.Column("season", sa.String(8), nullable=False),
        sa.Column("game_date", sa.String(32), nullable=False),
        sa.Column("official_date", sa.String(10), nullable=False),
        sa.Column("status_abstract", sa.String(32), nullable=False),
        sa.Column("status_detailed", sa.String(64), nullable=False),
        sa.Column("status_code", sa.String(8), nullable=False),
        sa.Column("start_time_tbd", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("away_team_id", sa.Integer(), nullable=False),
        sa.Column("away_team_name", sa.String(100), nullable=False),
        sa.Column("away_score", sa.Integer(), nullable=True),
        sa.Column("away_is_winner", sa.Boolean(), nullable=True),
        sa.Column("home_team_id", sa.Integer(), nullable=False),
        sa.Column("home_team_name", sa.String(100), nullable=False),
        sa.Column("home_score", sa.Integer(), nullable=True),
        sa.Column("home_is_winner", sa.Boolean(), nullable=True),
        sa.Column("venue_id", sa.Integer(), nullable=False),
        sa.Column("venue_name", sa.String(100), nullable=False),
        sa.Column("day_night", sa.String(8), nullable=True),
        sa.Column("description", sa.String(255), nullable=True),
        sa.Column("series_description", sa.String(100), nullable=True),
        sa.Column("series_game_number", sa.Integer(), nullable=True),
        sa.Column("games_in_series", sa.Integer(), nullable=True),
        sa.Column("double_header", sa.String(1), nullable=False, server_default="N"),
        sa.Column("game_number", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("scheduled_innings", sa.Integer(), nullable=False, server_default="9"),
        sa.Column("is_tie", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    # Home-game filter + chronological ordering, and month filtering
    op.create_index("ix_games_home_team_date", "games", ["home_team_id", "game_date"])
    op.create_index("ix_games_official_date", "games", ["official_date"])

    op.create_table(
        "seats",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("section", sa.String(20), nullable=False),
        sa.Column("row", sa.String(20), nullable=False),
        sa.Column("seat", sa.String(20), nullable=False),
        sa.Column("notes", sa.String(500), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("section", "row", "seat", name="uq_seat_position"),
    )
    op.create_index("ix_seats_id", "seats", ["id"])

    op.create_table(
        "game_tickets",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("seat_id", sa.Integer(), sa.ForeignKey("seats.id"), nullable=False),
        sa.Column("game_pk", sa.BigInteger(), sa.ForeignKey("games.game_pk"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="available"),
        sa.Column("assigned_to", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("notes", sa.String(500), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("seat_id", "game_pk", name="uq_game_ticket_seat_game"),
        sa.CheckConstraint("status IN ('available', 'assigned')", name="check_game_ticket_status"),
        sa.CheckConstraint(
            "(status = 'assigned' AND assigned_to IS NOT NULL) "
            "OR (status = 'available' AND assigned_to IS NULL)",
            name="check_game_ticket_assignment",
        ),
    )
    op.create_index("ix_game_tickets_id", "game_tickets", ["id"])
    op.create_index("ix_game_tickets_seat_id", "game_tickets", ["seat_id"])
    op.create_index("ix_game_tickets_game_pk", "game_tickets", ["game_pk"])
    op.create_index("ix_game_tickets_assigned_to", "game_tickets", ["assigned_to"])
    # Allocation summary aggregates by game and status
    op.create_index("ix_game_tickets_game_status", "game_tickets", ["game_pk", "status"])

    op.create_table(
        "ticket_requests",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("game_pk", sa.BigInteger(), sa.ForeignKey("games.game_pk"), nullable=False),
        sa.Column("seats_requested", sa.Integer(), nullable=False),
        sa.Column("seats_approved", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("notes", sa.String(500), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "game_pk", name="uq_ticket_request_user_game"),
        sa.CheckConstraint("seats_requested > 0", name="check_seats_requested_positive"),
        sa.CheckConstraint("seats_approved >= 0", name="check_seats_approved_non_negative"),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'withdrawn')", name="check_ticket_request_status"
        ),
    )
    op.create_index("ix_ticket_requests_id", "ticket_requests", ["id"])
    op.create_index("ix_ticket_requests_user_id", "ticket_requests", ["user_id"])
    op.create_index("ix_ticket_requests_game_pk", "ticket_requests", ["game_pk"])


def downgrade() -> None:
    op.drop_table("ticket_requests")
    op.drop_table("game_tickets")
    op.drop_table("seats")
    op.drop_table("games")
    op.drop_table("users")
