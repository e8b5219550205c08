"""Append-only audit trail of ticket transitions."""

from lending.domain import EventLogEntry, TicketId, UserId
from lending.stores.interfaces import TicketStore


class EventLog:
    """Service for a ticket's event log. Entries are never changed once written."""

    def __init__(self, tickets: TicketStore) -> None:
        self._tickets = tickets

    def append(self, ticket_id: TicketId, status: str, actor_id: UserId) -> EventLogEntry:
        """Record ``status`` for the ticket with the next sequence number."""
        return self._tickets.append_event(ticket_id, status, actor_id)

    def latest(self, ticket_id: TicketId) -> EventLogEntry | None:
        """Return the most recent entry, used for display."""
        return self._tickets.latest_event(ticket_id)

    def entries(self, ticket_id: TicketId) -> list[EventLogEntry]:
        return self._tickets.list_events(ticket_id)
