from ticket_manager.models.user import User
from ticket_manager.models.game import Game
from ticket_manager.models.promotion import Promotion
from ticket_manager.models.seat import Seat
from ticket_manager.models.game_ticket import GameTicket
from ticket_manager.models.ticket_request import TicketRequest

__all__ = ["User", "Game", "Promotion", "Seat", "GameTicket", "TicketRequest"]
