"""
GameTicket model: one seat's allocatable right to attend one home game.

Key design decisions:
- Unique constraint on (seat_id, game_pk) makes generation insert-if-absent
- CHECK ties assigned_to to status so the pair can never disagree
- Status transitions are conditional UPDATEs issued by the allocation service
"""

from sqlalchemy import BigInteger, CheckConstraint, Column, ForeignKey, Index, Integer, String, UniqueConstraint

from ticket_manager.db.base import Base, TimestampMixin

TICKET_AVAILABLE = "available"
TICKET_ASSIGNED = "assigned"


class GameTicket(Base, TimestampMixin):
    __tablename__ = "game_tickets"

    id = Column(Integer, primary_key=True, index=True)
    seat_id = Column(Integer, ForeignKey("seats.id"), nullable=False, index=True)
    game_pk = Column(BigInteger, ForeignKey("games.game_pk"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=TICKET_AVAILABLE)
    assigned_to = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    notes = Column(String(500), nullable=True)

    __table_args__ = (
        UniqueConstraint("seat_id", "game_pk", name="uq_game_ticket_seat_game"),
        CheckConstraint("status IN ('available', 'assigned')", name="check_game_ticket_status"),
        CheckConstraint(
            "(status = 'assigned' AND assigned_to IS NOT NULL) "
            "OR (status = 'available' AND assigned_to IS NULL)",
            name="check_game_ticket_assignment",
        ),
        Index("ix_game_tickets_game_status", "game_pk", "status"),
    )

    def __repr__(self) -> str:
        return f"<GameTicket(id={self.id}, seat={self.seat_id}, game={self.game_pk}, status={self.status})>"
