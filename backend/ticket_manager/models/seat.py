"""
Seat model: one physical season-ticket position.

Key design decisions:
- (section, row, seat) is the identity and is unique
- Game tickets are deleted explicitly by the inventory service before the
  seat row, so the FK carries no ON DELETE behaviour
"""

from sqlalchemy import Column, Integer, String, UniqueConstraint

from ticket_manager.db.base import Base, TimestampMixin


class Seat(Base, TimestampMixin):
    __tablename__ = "seats"

    id = Column(Integer, primary_key=True, index=True)
    section = Column(String(20), nullable=False)
    row = Column(String(20), nullable=False)
    seat = Column(String(20), nullable=False)
    notes = Column(String(500), nullable=True)

    __table_args__ = (
        UniqueConstraint("section", "row", "seat", name="uq_seat_position"),
    )

    @property
    def label(self) -> str:
        return f"{self.section}-{self.row}-{self.seat}"

    def __repr__(self) -> str:
        return f"<Seat(id={self.id}, {self.label})>"
