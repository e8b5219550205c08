"""Inventory ledger - the only writer of a book's copy counters.

Invariant kept for every book: 0 <= available <= quantity.
"""

import logging

from lending.domain import Book, BookId, Quantity, UserId
from lending.domain.errors import (
    BookNotFoundError,
    InsufficientInventoryError,
    InvalidQuantityError,
    InventoryCorruptionError,
)
from lending.stores.interfaces import BookStore, UnitOfWork

logger = logging.getLogger(__name__)


class InventoryLedger:
    """Atomic reservation, release and quantity edits for books."""

    def __init__(self, books: BookStore, uow: UnitOfWork) -> None:
        self._books = books
        self._uow = uow

    def reserve(self, book_id: BookId) -> None:
        """Take one available copy.

        Raises:
            BookNotFoundError: If the book does not exist.
            InsufficientInventoryError: If no copy is available.
        """
        if self._books.decrement_available(book_id):
            return
        book = self._books.get_book(book_id)
        if book is None:
            raise BookNotFoundError(str(book_id))
        logger.info("No copy left to reserve", extra={"book_id": str(book_id)})
        raise InsufficientInventoryError((book.title,))

    def release(self, book_id: BookId) -> None:
        """Give one copy back.

        Raises:
            BookNotFoundError: If the book does not exist.
            InventoryCorruptionError: If available is already equal to quantity.
        """
        if self._books.increment_available(book_id):
            return
        book = self._books.get_book(book_id)
        if book is None:
            raise BookNotFoundError(str(book_id))
        logger.error(
            "Release would exceed owned quantity",
            extra={"book_id": str(book_id), "quantity": book.quantity},
        )
        raise InventoryCorruptionError(str(book_id))

    def adjust_quantity(self, book_id: BookId, new_quantity: int, actor_id: UserId) -> Book:
        """Set the owned quantity and shift available by the same delta.

        Raises:
            BookNotFoundError: If the book does not exist.
            InvalidQuantityError: If the quantity is negative or lower than
                the number of copies currently on loan.
        """
        try:
            quantity = Quantity(new_quantity)
        except ValueError as exc:
            raise InvalidQuantityError(str(exc)) from exc

        with self._uow.atomic():
            book = self._books.lock_book(book_id)
            if book is None:
                raise BookNotFoundError(str(book_id))
            delta = quantity.value - book.quantity
            available = book.available + delta
            if available < 0:
                raise InvalidQuantityError(
                    f"Quantity cannot be lower than the {book.on_loan} copies on loan"
                )
            updated = self._books.set_counts(book_id, quantity.value, available)
            self._books.record_edit(book_id, actor_id, book.quantity, quantity.value)

        logger.info(
            "Book quantity adjusted",
            extra={
                "book_id": str(book_id),
                "actor_id": actor_id.value,
                "old_quantity": book.quantity,
                "new_quantity": quantity.value,
            },
        )
        return updated
