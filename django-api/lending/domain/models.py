"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in lending/models.py (persistence layer).
"""

from dataclasses import dataclass
from datetime import datetime

from lending.domain.lifecycle import TicketStatus
from lending.domain.value_objects import BookId, TicketId, UserId


@dataclass(frozen=True)
class Book:
    """Domain representation of a Book and its copy counters."""

    id: BookId
    title: str
    author: str
    quantity: int
    available: int
    deleted: bool = False

    def __post_init__(self) -> None:
        if not 0 <= self.available <= self.quantity:
            raise ValueError(
                f"Book {self.id} breaks 0 <= available ({self.available}) "
                f"<= quantity ({self.quantity})"
            )

    @property
    def on_loan(self) -> int:
        """Copies held by tickets that are active or pending return."""
        return self.quantity - self.available


@dataclass(frozen=True)
class EventLogEntry:
    """One immutable line of a ticket's audit trail."""

    ticket_id: TicketId
    seq: int
    status: str
    actor_id: UserId
    time: datetime


@dataclass(frozen=True)
class Ticket:
    """Domain representation of a loan ticket."""

    id: TicketId
    book_id: BookId
    borrower_id: UserId
    status: TicketStatus
    created_at: datetime
    updated_at: datetime
    borrowed_at: datetime | None = None
    returned_at: datetime | None = None
    book_title: str = ""
    event_logs: tuple[EventLogEntry, ...] = ()

    @property
    def sort_order(self) -> int:
        return self.status.sort_order

    @property
    def is_open(self) -> bool:
        return self.status.is_open


@dataclass(frozen=True)
class BookEdit:
    """A recorded change of a book's owned quantity."""

    book_id: BookId
    updated_by: UserId
    old_quantity: int
    new_quantity: int
    time: datetime
