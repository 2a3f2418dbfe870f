"""
Promotion model: a giveaway or theme night attached to one game.

The schedule provider identifies an offer by offer_id, and the same offer can
run on several games, so (offer_id, game_pk) is the identity used by the
importer's upsert.
"""

from sqlalchemy import BigInteger, Column, ForeignKey, Index, Integer, String, UniqueConstraint

from ticket_manager.db.base import Base, TimestampMixin


class Promotion(Base, TimestampMixin):
    __tablename__ = "promotions"

    id = Column(Integer, primary_key=True, index=True)
    offer_id = Column(BigInteger, nullable=False)
    game_pk = Column(BigInteger, ForeignKey("games.game_pk"), nullable=False)
    name = Column(String(255), nullable=False)
    offer_type = Column(String(100), nullable=True)
    description = Column(String(2000), nullable=True)
    distribution = Column(String(255), nullable=True)
    presented_by = Column(String(255), nullable=True)
    alt_page_url = Column(String(500), nullable=True)
    ticket_link = Column(String(500), nullable=True)
    thumbnail_url = Column(String(500), nullable=True)
    image_url = Column(String(500), nullable=True)
    display_order = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("offer_id", "game_pk", name="uq_promotion_offer_game"),
        Index("ix_promotions_game_order", "game_pk", "display_order"),
    )

    def __repr__(self) -> str:
        return f"<Promotion(offer={self.offer_id}, game={self.game_pk}, {self.name!r})>"
