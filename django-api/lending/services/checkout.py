"""Checkout - turns a set of requested books into borrow tickets.

The batch is all-or-nothing: every book is validated before any ticket is
created, and ticket creation plus cart cleanup share one unit of work.
The availability check here is advisory; the binding check is the ledger
reservation when staff accept the borrow request.
"""

import logging
from collections.abc import Iterable

from lending.domain import Ticket
from lending.domain.errors import (
    BookNotFoundError,
    DuplicateOpenTicketError,
    EmptyCheckoutError,
    InsufficientInventoryError,
    UserNotFoundError,
)
from lending.services.parsing import parse_book_id, parse_user_id
from lending.services.ticket_state_machine import TicketStateMachine
from lending.stores.interfaces import BookStore, BorrowerStore, TicketStore, UnitOfWork

logger = logging.getLogger(__name__)


class CheckoutCoordinator:
    def __init__(
        self,
        books: BookStore,
        tickets: TicketStore,
        borrowers: BorrowerStore,
        machine: TicketStateMachine,
        uow: UnitOfWork,
    ) -> None:
        self._books = books
        self._tickets = tickets
        self._borrowers = borrowers
        self._machine = machine
        self._uow = uow

    def checkout(self, borrower_id: object, book_ids: Iterable[object]) -> list[Ticket]:
        """Create one PendingBorrow ticket per requested book.

        Raises:
            InvalidIdError: If an ID is malformed.
            EmptyCheckoutError: If no book is requested.
            UserNotFoundError: If the borrower does not exist.
            BookNotFoundError: If a book does not exist or is deleted.
            InsufficientInventoryError: If a book has no available copy.
            DuplicateOpenTicketError: If the borrower already has an open
                ticket for one of the books.
        """
        borrower = parse_user_id(borrower_id)
        requested = list(dict.fromkeys(parse_book_id(book_id) for book_id in book_ids))
        if not requested:
            raise EmptyCheckoutError()

        with self._uow.atomic():
            if not self._borrowers.exists(borrower):
                raise UserNotFoundError(borrower.value)

            books = {book.id: book for book in self._books.get_books(requested)}
            missing = [
                str(book_id)
                for book_id in requested
                if book_id not in books or books[book_id].deleted
            ]
            if missing:
                raise BookNotFoundError(*missing)

            unavailable = [
                books[book_id].title for book_id in requested if books[book_id].available < 1
            ]
            if unavailable:
                logger.info(
                    "Checkout rejected, books unavailable",
                    extra={"borrower_id": borrower.value, "titles": unavailable},
                )
                raise InsufficientInventoryError(unavailable)

            open_tickets = self._tickets.open_tickets_for_books(borrower, requested)
            if open_tickets:
                logger.info(
                    "Checkout rejected, open tickets exist",
                    extra={"borrower_id": borrower.value},
                )
                raise DuplicateOpenTicketError(sorted({t.book_title for t in open_tickets}))

            tickets = [self._machine.create(book_id, borrower) for book_id in requested]
            self._borrowers.remove_from_cart(borrower, requested)

        logger.info(
            "Checkout created tickets",
            extra={
                "borrower_id": borrower.value,
                "ticket_ids": [str(ticket.id) for ticket in tickets],
            },
        )
        return tickets
