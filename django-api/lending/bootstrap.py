"""Composition root - wires the Django stores to the lending services.

Handlers call these factories; services only see store interfaces.
"""

from lending.services.admin_actions import AdminActionHandler
from lending.services.checkout import CheckoutCoordinator
from lending.services.event_log import EventLog
from lending.services.inventory_ledger import InventoryLedger
from lending.services.ticket_queries import TicketQueryService
from lending.services.ticket_state_machine import TicketStateMachine
from lending.stores.django_store import (
    DjangoBookStore,
    DjangoBorrowerStore,
    DjangoTicketStore,
    DjangoUnitOfWork,
)


def _state_machine(tickets: DjangoTicketStore, ledger: InventoryLedger) -> TicketStateMachine:
    return TicketStateMachine(tickets, ledger, EventLog(tickets), DjangoUnitOfWork())


def inventory_ledger() -> InventoryLedger:
    return InventoryLedger(DjangoBookStore(), DjangoUnitOfWork())


def admin_actions() -> AdminActionHandler:
    ledger = inventory_ledger()
    return AdminActionHandler(_state_machine(DjangoTicketStore(), ledger), ledger)


def checkout_coordinator() -> CheckoutCoordinator:
    tickets = DjangoTicketStore()
    return CheckoutCoordinator(
        DjangoBookStore(),
        tickets,
        DjangoBorrowerStore(),
        _state_machine(tickets, inventory_ledger()),
        DjangoUnitOfWork(),
    )


def ticket_queries() -> TicketQueryService:
    return TicketQueryService(DjangoTicketStore())
