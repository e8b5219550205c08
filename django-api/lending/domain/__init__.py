from lending.domain.lifecycle import TicketAction, TicketStatus
from lending.domain.models import Book, BookEdit, EventLogEntry, Ticket
from lending.domain.value_objects import BookId, Quantity, TicketId, UserId

__all__ = [
    "Book",
    "BookEdit",
    "EventLogEntry",
    "Ticket",
    "TicketAction",
    "TicketStatus",
    "BookId",
    "TicketId",
    "UserId",
    "Quantity",
]
