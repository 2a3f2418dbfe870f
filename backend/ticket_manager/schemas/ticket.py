"""
Pydantic schemas for game tickets.
"""

from typing import Optional
from pydantic import BaseModel, Field


class GameTicketDetail(BaseModel):
    id: int
    game_pk: int
    seat_id: int
    section: str
    row: str
    seat: str
    status: str
    notes: Optional[str] = None
    assigned_to: Optional[int] = None

    model_config = {"from_attributes": True}


class TicketUpdate(BaseModel):
    notes: Optional[str] = Field(None, max_length=500)


class TicketSummaryRow(BaseModel):
    game_pk: int
    total: int
    available: int
