"""Read-side ticket queries for staff dashboards and borrower views."""

from lending.domain import Ticket, TicketStatus
from lending.domain.errors import InvalidSortOrderError, TicketNotFoundError
from lending.domain.lifecycle import SORT_ORDERS
from lending.services.parsing import parse_ticket_id, parse_user_id
from lending.stores.interfaces import TicketStore


class TicketQueryService:
    def __init__(self, tickets: TicketStore) -> None:
        self._tickets = tickets

    def list_tickets(self, sort_order: object = None) -> list[Ticket]:
        """Return all tickets, or those whose status has ``sort_order``.

        Raises:
            InvalidSortOrderError: If ``sort_order`` is not a known rank.
        """
        if sort_order is None:
            return self._tickets.list_tickets()
        try:
            rank = int(str(sort_order))
        except ValueError as exc:
            raise InvalidSortOrderError(sort_order) from exc
        if rank not in SORT_ORDERS:
            raise InvalidSortOrderError(sort_order)
        return self._tickets.list_tickets(TicketStatus.with_sort_order(rank))

    def get_ticket(self, ticket_id: object) -> Ticket:
        """Return a ticket with its full event log.

        Raises:
            InvalidIdError: If the ticket_id is not a valid UUID.
            TicketNotFoundError: If the ticket does not exist.
        """
        parsed = parse_ticket_id(ticket_id)
        ticket = self._tickets.get_ticket(parsed, with_events=True)
        if ticket is None:
            raise TicketNotFoundError(str(parsed))
        return ticket

    def open_tickets_for(self, borrower_id: object) -> list[Ticket]:
        """Return the borrower's open tickets, most recently updated first."""
        return self._tickets.open_tickets_for(parse_user_id(borrower_id))
