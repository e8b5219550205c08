"""Named ticket actions for staff and borrowers.

Every action is a thin call into TicketStateMachine.transition; the
transition table decides what is allowed. A ConcurrencyConflictError is
retried once, every other error is returned to the caller as raised.
"""

import logging

from lending.domain import Book, Ticket, TicketAction
from lending.domain.errors import ConcurrencyConflictError, DomainError
from lending.services.inventory_ledger import InventoryLedger
from lending.services.parsing import parse_book_id, parse_ticket_id, parse_user_id
from lending.services.ticket_state_machine import TicketStateMachine

logger = logging.getLogger(__name__)


class AdminActionHandler:
    """Service for the ticket actions exposed to the HTTP layer."""

    def __init__(self, machine: TicketStateMachine, ledger: InventoryLedger) -> None:
        self._machine = machine
        self._ledger = ledger

    def accept_borrow(self, ticket_id: object, actor_id: object) -> Ticket:
        """Staff hands out a copy: PendingBorrow -> Active."""
        return self._apply(ticket_id, TicketAction.ACCEPT_BORROW, actor_id)

    def decline_borrow(self, ticket_id: object, actor_id: object) -> Ticket:
        """Staff refuses the request: PendingBorrow -> Declined."""
        return self._apply(ticket_id, TicketAction.DECLINE_BORROW, actor_id)

    def cancel_borrow_request(self, ticket_id: object, actor_id: object) -> Ticket:
        """Borrower withdraws the request: PendingBorrow -> Cancelled."""
        return self._apply(ticket_id, TicketAction.CANCEL_BORROW, actor_id)

    def request_return(self, ticket_id: object, actor_id: object) -> Ticket:
        """Borrower brings the copy back: Active -> PendingReturn."""
        return self._apply(ticket_id, TicketAction.REQUEST_RETURN, actor_id)

    def accept_return(self, ticket_id: object, actor_id: object) -> Ticket:
        """Staff takes the copy back: PendingReturn -> Returned."""
        return self._apply(ticket_id, TicketAction.ACCEPT_RETURN, actor_id)

    def decline_return(self, ticket_id: object, actor_id: object) -> Ticket:
        """Staff refuses the return: PendingReturn -> Active."""
        return self._apply(ticket_id, TicketAction.DECLINE_RETURN, actor_id)

    def cancel_return_request(self, ticket_id: object, actor_id: object) -> Ticket:
        """Borrower keeps the copy after all: PendingReturn -> Active."""
        return self._apply(ticket_id, TicketAction.CANCEL_RETURN, actor_id)

    def cancel_ticket(self, ticket_id: object, actor_id: object) -> Ticket:
        """Cancel whichever request is pending on the ticket.

        The current status is read under the ticket lock, so the choice
        between cancelling a borrow and cancelling a return cannot race.
        """
        return self._apply(ticket_id, TicketAction.CANCEL, actor_id)

    def adjust_book_quantity(self, book_id: object, new_quantity: int, actor_id: object) -> Book:
        return self._ledger.adjust_quantity(
            parse_book_id(book_id), new_quantity, parse_user_id(actor_id)
        )

    def _apply(self, ticket_id: object, action: TicketAction, actor_id: object) -> Ticket:
        ticket = parse_ticket_id(ticket_id)
        actor = parse_user_id(actor_id)
        try:
            try:
                return self._machine.transition(ticket, action, actor)
            except ConcurrencyConflictError:
                logger.info(
                    "Retrying ticket action after conflict",
                    extra={"ticket_id": str(ticket), "action": action.value},
                )
                return self._machine.transition(ticket, action, actor)
        except DomainError as exc:
            logger.info(
                "Ticket action rejected",
                extra={
                    "ticket_id": str(ticket),
                    "action": action.value,
                    "actor_id": actor.value,
                    "code": exc.code.value,
                },
            )
            raise
