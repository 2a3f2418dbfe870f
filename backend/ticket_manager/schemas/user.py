"""
Pydantic schemas for users.
"""

from datetime import datetime
from pydantic import BaseModel


class UserResponse(BaseModel):
    id: int
    external_sub: str
    email: str
    name: str
    role: str
    created_at: datetime

    model_config = {"from_attributes": True}
