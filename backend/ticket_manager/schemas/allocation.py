"""
Pydantic schemas for admin allocation views and batch assignment.
"""

from typing import Optional
from pydantic import BaseModel, Field

from ticket_manager.schemas.game import GameResponse


class AllocationItem(BaseModel):
    game_ticket_id: int
    user_id: int
    request_id: Optional[int] = None


class AllocateBatchRequest(BaseModel):
    assignments: list[AllocationItem] = Field(..., min_length=1)


class AllocateBatchResponse(BaseModel):
    status: str = "ok"
    assigned: int


class AllocationSummaryResponse(BaseModel):
    game_pk: int
    official_date: str
    away_team_name: str
    total_seats: int
    assigned: int
    available: int
    total_requested: int
    oversubscribed: bool

    model_config = {"from_attributes": True}


class GameTicketWithUser(BaseModel):
    id: int
    seat_id: int
    section: str
    row: str
    seat: str
    status: str
    assigned_to: Optional[int]
    assigned_user_name: Optional[str]

    model_config = {"from_attributes": True}


class RequestWithUser(BaseModel):
    id: int
    user_id: int
    user_name: str
    seats_requested: int
    seats_approved: int
    status: str
    notes: Optional[str]

    model_config = {"from_attributes": True}


class GameAllocationDetailResponse(BaseModel):
    game: GameResponse
    tickets: list[GameTicketWithUser]
    requests: list[RequestWithUser]

    model_config = {"from_attributes": True}


class ReleaseResponse(BaseModel):
    status: str = "ok"
    released: int


class StatusResponse(BaseModel):
    status: str = "ok"
