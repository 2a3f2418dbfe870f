"""Add promotions imported with the schedule.

Revision ID: 002
Revises: 001
Create Date: 2026-03-09
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "promotions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("offer_id", sa.BigInteger(), nullable=False),
        sa.Column("game_pk", sa.BigInteger(), sa.ForeignKey("games.game_pk"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("offer_type", sa.String(100), nullable=True),
        sa.Column("description", sa.String(2000), nullable=True),
        sa.Column("distribution", sa.String(255), nullable=True),
        sa.Column("presented_by", sa.String(255), nullable=True),
        sa.Column("alt_page_url", sa.String(500), nullable=True),
        sa.Column("ticket_link", sa.String(500), nullable=True),
        sa.Column("thumbnail_url", sa.String(500), nullable=True),
        sa.Column("image_url", sa.String(500), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("offer_id", "game_pk", name="uq_promotion_offer_game"),
    )
    op.create_index("ix_promotions_id", "promotions", ["id"])
    op.create_index("ix_promotions_game_order", "promotions", ["game_pk", "display_order"])


def downgrade() -> None:
    op.drop_table("promotions")
