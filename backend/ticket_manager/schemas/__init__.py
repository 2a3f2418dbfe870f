from ticket_manager.schemas.user import UserResponse
from ticket_manager.schemas.game import GameData, GameResponse, GameListResponse
from ticket_manager.schemas.promotion import PromotionData, PromotionResponse
from ticket_manager.schemas.seat import SeatCreate, SeatBatchCreate, SeatResponse
from ticket_manager.schemas.ticket import GameTicketDetail, TicketSummaryRow
from ticket_manager.schemas.request import TicketRequestCreate, TicketRequestResponse
from ticket_manager.schemas.allocation import (
    AllocationItem,
    AllocateBatchRequest,
    AllocationSummaryResponse,
    GameAllocationDetailResponse,
)

__all__ = [
    "UserResponse",
    "GameData", "GameResponse", "GameListResponse",
    "PromotionData", "PromotionResponse",
    "SeatCreate", "SeatBatchCreate", "SeatResponse",
    "GameTicketDetail", "TicketSummaryRow",
    "TicketRequestCreate", "TicketRequestResponse",
    "AllocationItem", "AllocateBatchRequest",
    "AllocationSummaryResponse", "GameAllocationDetailResponse",
]
