"""Domain error codes for the lending module."""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    NOT_FOUND = "NOT_FOUND"
    INVALID_ID = "INVALID_ID"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    INSUFFICIENT_INVENTORY = "INSUFFICIENT_INVENTORY"
    DUPLICATE_OPEN_TICKET = "DUPLICATE_OPEN_TICKET"
    INVALID_QUANTITY = "INVALID_QUANTITY"
    CONCURRENCY_CONFLICT = "CONCURRENCY_CONFLICT"
    INVENTORY_CORRUPTION = "INVENTORY_CORRUPTION"
    EMPTY_CHECKOUT = "EMPTY_CHECKOUT"
    NOT_TICKET_OWNER = "NOT_TICKET_OWNER"
    INVALID_SORT_ORDER = "INVALID_SORT_ORDER"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


def _join(names: Iterable[str]) -> str:
    return ", ".join(names)


class BookNotFoundError(DomainError):
    """Raised when one or more books do not exist or are soft-deleted."""

    def __init__(self, *book_ids: str) -> None:
        super().__init__(
            code=ErrorCode.NOT_FOUND,
            message="Book not found" if len(book_ids) < 2 else "Books not found",
        )
        self.book_ids = book_ids


class TicketNotFoundError(DomainError):
    """Raised when a ticket is not found."""

    def __init__(self, ticket_id: str) -> None:
        super().__init__(
            code=ErrorCode.NOT_FOUND,
            message="Ticket not found",
        )
        self.ticket_id = ticket_id


class UserNotFoundError(DomainError):
    """Raised when a borrower id does not resolve to a user."""

    def __init__(self, user_id: int) -> None:
        super().__init__(
            code=ErrorCode.NOT_FOUND,
            message="User not found",
        )
        self.user_id = user_id


class InvalidIdError(DomainError):
    """Raised when a book, ticket or user ID is malformed."""

    def __init__(self, kind: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_ID,
            message=f"Invalid {kind} ID format",
        )
        self.kind = kind


class InvalidTransitionError(DomainError):
    """Raised when an action does not apply to the ticket's current status."""

    def __init__(self, status: str, action: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_TRANSITION,
            message=f"Action '{action}' is not allowed while ticket is {status}",
        )
        self.status = status
        self.action = action


class InsufficientInventoryError(DomainError):
    """Raised when no copy of a book is left to reserve."""

    def __init__(self, titles: Iterable[str] = ()) -> None:
        titles = tuple(titles)
        message = "No copies available"
        if titles:
            message = f"The following books are not available: {_join(titles)}"
        super().__init__(code=ErrorCode.INSUFFICIENT_INVENTORY, message=message)
        self.titles = titles


class DuplicateOpenTicketError(DomainError):
    """Raised when a borrower already holds an open ticket for a book."""

    def __init__(self, titles: Iterable[str] = ()) -> None:
        titles = tuple(titles)
        message = "An open ticket already exists for this book"
        if titles:
            message = f"You still have open tickets for the following books: {_join(titles)}"
        super().__init__(code=ErrorCode.DUPLICATE_OPEN_TICKET, message=message)
        self.titles = titles


class InvalidQuantityError(DomainError):
    """Raised when a quantity edit would break the availability invariant."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.INVALID_QUANTITY, message=message)


class ConcurrencyConflictError(DomainError):
    """Raised when a write lost a race for the same ticket; safe to retry."""

    def __init__(self, ticket_id: str) -> None:
        super().__init__(
            code=ErrorCode.CONCURRENCY_CONFLICT,
            message="Ticket was modified concurrently, please retry",
        )
        self.ticket_id = ticket_id


class InventoryCorruptionError(DomainError):
    """Raised when releasing a copy would push available above quantity."""

    def __init__(self, book_id: str) -> None:
        super().__init__(
            code=ErrorCode.INVENTORY_CORRUPTION,
            message="Inventory counters are inconsistent",
        )
        self.book_id = book_id


class EmptyCheckoutError(DomainError):
    """Raised when checkout is called without any book."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.EMPTY_CHECKOUT,
            message="Checkout requires at least one book",
        )


class NotTicketOwnerError(DomainError):
    """Raised when a borrower action is attempted on someone else's ticket."""

    def __init__(self, ticket_id: str) -> None:
        super().__init__(
            code=ErrorCode.NOT_TICKET_OWNER,
            message="Only the borrower can perform this action",
        )
        self.ticket_id = ticket_id


class InvalidSortOrderError(DomainError):
    """Raised when a ticket listing is filtered by an unknown sort order."""

    def __init__(self, value: object) -> None:
        super().__init__(
            code=ErrorCode.INVALID_SORT_ORDER,
            message="Invalid sort order",
        )
        self.value = value
