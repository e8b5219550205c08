"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from contextlib import AbstractContextManager
from datetime import datetime

from lending.domain import (
    Book,
    BookEdit,
    BookId,
    EventLogEntry,
    Ticket,
    TicketId,
    TicketStatus,
    UserId,
)


class UnitOfWork(ABC):
    """Boundary of an all-or-nothing group of store writes."""

    @abstractmethod
    def atomic(self) -> AbstractContextManager[None]:
        """Return a context manager; writes inside it commit or roll back together."""
        ...


class BookStore(ABC):
    """Interface for book persistence and copy counters."""

    @abstractmethod
    def get_book(self, book_id: BookId) -> Book | None:
        """Return a book by ID, or None if not found. Soft-deleted books are returned."""
        ...

    @abstractmethod
    def get_books(self, book_ids: Sequence[BookId]) -> list[Book]:
        """Return the books that exist among ``book_ids``, in no particular order."""
        ...

    @abstractmethod
    def decrement_available(self, book_id: BookId) -> bool:
        """Take one copy if ``available >= 1`` in a single conditional write.

        Returns False when no row matched (missing book or no copy left).
        """
        ...

    @abstractmethod
    def increment_available(self, book_id: BookId) -> bool:
        """Give back one copy if ``available < quantity`` in a single conditional write.

        Returns False when no row matched (missing book or counter already full).
        """
        ...

    @abstractmethod
    def lock_book(self, book_id: BookId) -> Book | None:
        """Return a book and hold its row until the surrounding unit of work ends."""
        ...

    @abstractmethod
    def set_counts(self, book_id: BookId, quantity: int, available: int) -> Book:
        """Overwrite both counters of a book previously locked with ``lock_book``."""
        ...

    @abstractmethod
    def record_edit(
        self, book_id: BookId, actor_id: UserId, old_quantity: int, new_quantity: int
    ) -> BookEdit:
        """Append an entry to the book's quantity edit history."""
        ...

    @abstractmethod
    def list_edits(self, book_id: BookId) -> list[BookEdit]:
        """Return the quantity edit history of a book, oldest first."""
        ...


class TicketStore(ABC):
    """Interface for ticket and event log persistence."""

    @abstractmethod
    def get_ticket(self, ticket_id: TicketId, with_events: bool = False) -> Ticket | None:
        """Return a ticket by ID, or None if not found."""
        ...

    @abstractmethod
    def lock_ticket(self, ticket_id: TicketId) -> Ticket | None:
        """Return a ticket and hold its row until the surrounding unit of work ends."""
        ...

    @abstractmethod
    def create_ticket(
        self, book_id: BookId, borrower_id: UserId, status: TicketStatus
    ) -> Ticket:
        """Insert a new ticket.

        Raises:
            DuplicateOpenTicketError: If the borrower already has an open
                ticket for the book.
        """
        ...

    @abstractmethod
    def update_status(
        self,
        ticket_id: TicketId,
        expected: TicketStatus,
        status: TicketStatus,
        borrowed_at: datetime | None = None,
        returned_at: datetime | None = None,
    ) -> bool:
        """Move a ticket to ``status`` only if it is still in ``expected``.

        Timestamps left as None are not changed. Returns False when no row
        matched.
        """
        ...

    @abstractmethod
    def append_event(
        self, ticket_id: TicketId, status: str, actor_id: UserId
    ) -> EventLogEntry:
        """Append a log entry with the next sequence number and the current time.

        Raises:
            ConcurrencyConflictError: If another writer took the same sequence number.
        """
        ...

    @abstractmethod
    def list_events(self, ticket_id: TicketId) -> list[EventLogEntry]:
        """Return all log entries of a ticket ordered by sequence number."""
        ...

    @abstractmethod
    def latest_event(self, ticket_id: TicketId) -> EventLogEntry | None:
        """Return the log entry with the highest sequence number."""
        ...

    @abstractmethod
    def open_tickets_for_books(
        self, borrower_id: UserId, book_ids: Sequence[BookId]
    ) -> list[Ticket]:
        """Return the borrower's open tickets on any of ``book_ids``."""
        ...

    @abstractmethod
    def open_tickets_for(self, borrower_id: UserId) -> list[Ticket]:
        """Return the borrower's open tickets, most recently updated first."""
        ...

    @abstractmethod
    def list_tickets(self, statuses: Sequence[TicketStatus] | None = None) -> list[Ticket]:
        """Return tickets in ``statuses`` (all when None), most recently updated first."""
        ...


class BorrowerStore(ABC):
    """Interface for the borrower data the engine needs."""

    @abstractmethod
    def exists(self, user_id: UserId) -> bool:
        """Check if a user exists."""
        ...

    @abstractmethod
    def remove_from_cart(self, user_id: UserId, book_ids: Sequence[BookId]) -> None:
        """Drop ``book_ids`` from the user's cart; missing entries are ignored."""
        ...
