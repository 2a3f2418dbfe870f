"""
Pydantic schemas for member ticket requests.

seats_requested is range-checked by the request service so a bad batch entry
is reported by game_pk.
"""

from typing import Optional
from pydantic import BaseModel, Field


class TicketRequestCreate(BaseModel):
    game_pk: int
    seats_requested: int
    notes: Optional[str] = Field(None, max_length=500)


class TicketRequestBatchCreate(BaseModel):
    requests: list[TicketRequestCreate] = Field(..., min_length=1)


class TicketRequestUpdate(BaseModel):
    seats_requested: int


class TicketRequestResponse(BaseModel):
    id: int
    user_id: int
    game_pk: int
    seats_requested: int
    seats_approved: int
    status: str
    notes: Optional[str]

    model_config = {"from_attributes": True}
