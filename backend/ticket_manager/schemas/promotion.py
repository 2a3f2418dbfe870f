"""
Pydantic schemas for game promotions.
"""

from typing import Optional
from pydantic import BaseModel


class PromotionData(BaseModel):
    offer_id: int
    game_pk: int
    name: str
    offer_type: Optional[str] = None
    description: Optional[str] = None
    distribution: Optional[str] = None
    presented_by: Optional[str] = None
    alt_page_url: Optional[str] = None
    ticket_link: Optional[str] = None
    thumbnail_url: Optional[str] = None
    image_url: Optional[str] = None
    display_order: int = 0


class PromotionResponse(PromotionData):
    model_config = {"from_attributes": True}
