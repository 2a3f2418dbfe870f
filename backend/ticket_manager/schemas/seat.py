"""
Pydantic schemas for seat-related request/response validation.

Blank fields and seat-range bounds are checked by the inventory service so
they surface as ValidationError rather than a schema 422.
"""

from typing import Optional
from pydantic import BaseModel, Field


class SeatCreate(BaseModel):
    section: str = Field(..., max_length=20)
    row: str = Field(..., max_length=20)
    seat: str = Field(..., max_length=20)
    notes: Optional[str] = Field(None, max_length=500)


class SeatBatchCreate(BaseModel):
    section: str = Field(..., max_length=20)
    row: str = Field(..., max_length=20)
    seat_start: int = Field(..., ge=0)
    seat_end: int = Field(..., ge=0)
    notes: Optional[str] = Field(None, max_length=500)


class SeatUpdate(BaseModel):
    notes: Optional[str] = Field(None, max_length=500)


class SeatGroupUpdate(BaseModel):
    section: str
    row: str
    notes: Optional[str] = Field(None, max_length=500)


class SeatResponse(BaseModel):
    id: int
    section: str
    row: str
    seat: str
    notes: Optional[str]

    model_config = {"from_attributes": True}
