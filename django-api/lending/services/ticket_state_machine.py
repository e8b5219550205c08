"""Ticket state machine - the only place a ticket's status changes.

A transition is applied as one unit of work:

1. lock the ticket row (one transition per ticket at a time)
2. look the action up in the transition table
3. apply the ledger effect, if any
4. write the new status, conditional on the status read in step 1
5. append the event log entry

Any failure rolls the whole unit back, so a ticket is never left with a
status change but no log entry, or a reserved copy but no status change.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from lending.domain import BookId, Ticket, TicketAction, TicketId, TicketStatus, UserId
from lending.domain.errors import (
    ConcurrencyConflictError,
    NotTicketOwnerError,
    TicketNotFoundError,
)
from lending.domain.lifecycle import CREATE_LOG_LABEL, Actor, LedgerEffect, resolve
from lending.services.event_log import EventLog
from lending.services.inventory_ledger import InventoryLedger
from lending.stores.interfaces import TicketStore, UnitOfWork

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TicketStateMachine:
    def __init__(
        self,
        tickets: TicketStore,
        ledger: InventoryLedger,
        event_log: EventLog,
        uow: UnitOfWork,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._tickets = tickets
        self._ledger = ledger
        self._event_log = event_log
        self._uow = uow
        self._clock = clock

    def get(self, ticket_id: TicketId, with_events: bool = False) -> Ticket:
        """Return a ticket.

        Raises:
            TicketNotFoundError: If the ticket does not exist.
        """
        ticket = self._tickets.get_ticket(ticket_id, with_events=with_events)
        if ticket is None:
            raise TicketNotFoundError(str(ticket_id))
        return ticket

    def create(self, book_id: BookId, borrower_id: UserId) -> Ticket:
        """Open a PendingBorrow ticket and log the borrow request.

        Raises:
            DuplicateOpenTicketError: If the borrower already has an open
                ticket for the book.
        """
        with self._uow.atomic():
            ticket = self._tickets.create_ticket(
                book_id, borrower_id, TicketStatus.PENDING_BORROW
            )
            self._event_log.append(ticket.id, CREATE_LOG_LABEL, borrower_id)
        return self.get(ticket.id, with_events=True)

    def transition(self, ticket_id: TicketId, action: TicketAction, actor_id: UserId) -> Ticket:
        """Apply ``action`` to the ticket on behalf of ``actor_id``.

        Raises:
            TicketNotFoundError: If the ticket does not exist.
            InvalidTransitionError: If the action does not apply to the
                ticket's current status.
            NotTicketOwnerError: If a borrower action comes from someone else.
            InsufficientInventoryError: If accepting a borrow finds no copy.
            InventoryCorruptionError: If accepting a return overflows the counter.
            ConcurrencyConflictError: If another writer changed the ticket first.
        """
        with self._uow.atomic():
            ticket = self._tickets.lock_ticket(ticket_id)
            if ticket is None:
                raise TicketNotFoundError(str(ticket_id))

            transition = resolve(ticket.status, action)
            if transition.actor is Actor.BORROWER and actor_id != ticket.borrower_id:
                raise NotTicketOwnerError(str(ticket_id))

            if transition.ledger_effect is LedgerEffect.RESERVE:
                self._ledger.reserve(ticket.book_id)
            elif transition.ledger_effect is LedgerEffect.RELEASE:
                self._ledger.release(ticket.book_id)

            now = self._clock()
            changed = self._tickets.update_status(
                ticket_id,
                expected=transition.source,
                status=transition.target,
                borrowed_at=now if transition.starts_loan else None,
                returned_at=now if transition.ends_loan else None,
            )
            if not changed:
                raise ConcurrencyConflictError(str(ticket_id))
            self._event_log.append(ticket_id, transition.log_label, actor_id)

        logger.info(
            "Ticket transitioned",
            extra={
                "ticket_id": str(ticket_id),
                "book_id": str(ticket.book_id),
                "actor_id": actor_id.value,
                "from_status": transition.source.value,
                "to_status": transition.target.value,
            },
        )
        return self.get(ticket_id, with_events=True)
