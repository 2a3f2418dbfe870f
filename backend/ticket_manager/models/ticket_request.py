"""
TicketRequest model: a member's ask for a number of seats to one game.

Key design decisions:
- Unique constraint on (user_id, game_pk): a repeated ask updates the row
- Withdrawn rows are kept so a later ask can reactivate them
- seats_approved only ever grows, through the allocation service
"""

from sqlalchemy import BigInteger, CheckConstraint, Column, ForeignKey, Integer, String, UniqueConstraint

from ticket_manager.db.base import Base, TimestampMixin

REQUEST_PENDING = "pending"
REQUEST_APPROVED = "approved"
REQUEST_WITHDRAWN = "withdrawn"


class TicketRequest(Base, TimestampMixin):
    __tablename__ = "ticket_requests"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    game_pk = Column(BigInteger, ForeignKey("games.game_pk"), nullable=False, index=True)
    seats_requested = Column(Integer, nullable=False)
    seats_approved = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default=REQUEST_PENDING)
    notes = Column(String(500), nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "game_pk", name="uq_ticket_request_user_game"),
        CheckConstraint("seats_requested > 0", name="check_seats_requested_positive"),
        CheckConstraint("seats_approved >= 0", name="check_seats_approved_non_negative"),
        CheckConstraint(
            "status IN ('pending', 'approved', 'withdrawn')", name="check_ticket_request_status"
        ),
    )

    def __repr__(self) -> str:
        return f"<TicketRequest(id={self.id}, user={self.user_id}, game={self.game_pk}, status={self.status})>"
