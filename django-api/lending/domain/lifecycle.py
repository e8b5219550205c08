"""Ticket lifecycle: statuses, actions and the transition table.

Every status change a ticket can go through is listed in ``TRANSITIONS``.
Anything not in the table is an invalid transition.
"""

from dataclasses import dataclass
from enum import Enum

from lending.domain.errors import InvalidTransitionError

CREATE_LOG_LABEL = "Borrow Request"

# Sort order shared by every terminal status; open tickets sort below it.
CLOSED_SORT_ORDER = 4


class TicketStatus(Enum):
    PENDING_BORROW = "pending_borrow"
    ACTIVE = "active"
    PENDING_RETURN = "pending_return"
    RETURNED = "returned"
    DECLINED = "declined"
    CANCELLED = "cancelled"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def sort_order(self) -> int:
        return _SORT_ORDERS[self]

    @property
    def is_open(self) -> bool:
        return self.sort_order < CLOSED_SORT_ORDER

    @property
    def is_terminal(self) -> bool:
        return not self.is_open

    @property
    def holds_copy(self) -> bool:
        """True while the borrower has (or is returning) a physical copy."""
        return self in (TicketStatus.ACTIVE, TicketStatus.PENDING_RETURN)

    @classmethod
    def open_statuses(cls) -> tuple["TicketStatus", ...]:
        return tuple(s for s in cls if s.is_open)

    @classmethod
    def with_sort_order(cls, sort_order: int) -> tuple["TicketStatus", ...]:
        return tuple(s for s in cls if s.sort_order == sort_order)


_LABELS = {
    TicketStatus.PENDING_BORROW: "Pending (Borrow)",
    TicketStatus.ACTIVE: "Active",
    TicketStatus.PENDING_RETURN: "Pending (Return)",
    TicketStatus.RETURNED: "Returned",
    TicketStatus.DECLINED: "Declined",
    TicketStatus.CANCELLED: "Cancelled",
}

_SORT_ORDERS = {
    TicketStatus.PENDING_BORROW: 1,
    TicketStatus.ACTIVE: 2,
    TicketStatus.PENDING_RETURN: 3,
    TicketStatus.RETURNED: CLOSED_SORT_ORDER,
    TicketStatus.DECLINED: CLOSED_SORT_ORDER,
    TicketStatus.CANCELLED: CLOSED_SORT_ORDER,
}

SORT_ORDERS = tuple(sorted(set(_SORT_ORDERS.values())))


class TicketAction(Enum):
    ACCEPT_BORROW = "accept_borrow"
    DECLINE_BORROW = "decline_borrow"
    CANCEL_BORROW = "cancel_borrow"
    REQUEST_RETURN = "request_return"
    ACCEPT_RETURN = "accept_return"
    DECLINE_RETURN = "decline_return"
    CANCEL_RETURN = "cancel_return"
    # Resolved against the current status to CANCEL_BORROW or CANCEL_RETURN.
    CANCEL = "cancel"


class Actor(Enum):
    """Who is allowed to trigger a transition."""

    STAFF = "staff"
    BORROWER = "borrower"


class LedgerEffect(Enum):
    NONE = "none"
    RESERVE = "reserve"
    RELEASE = "release"


@dataclass(frozen=True)
class Transition:
    source: TicketStatus
    action: TicketAction
    target: TicketStatus
    log_label: str
    actor: Actor
    ledger_effect: LedgerEffect = LedgerEffect.NONE
    starts_loan: bool = False
    ends_loan: bool = False


TRANSITIONS: dict[tuple[TicketStatus, TicketAction], Transition] = {
    (t.source, t.action): t
    for t in (
        Transition(
            TicketStatus.PENDING_BORROW,
            TicketAction.ACCEPT_BORROW,
            TicketStatus.ACTIVE,
            "Accepted borrow request",
            Actor.STAFF,
            ledger_effect=LedgerEffect.RESERVE,
            starts_loan=True,
        ),
        Transition(
            TicketStatus.PENDING_BORROW,
            TicketAction.DECLINE_BORROW,
            TicketStatus.DECLINED,
            "Declined borrow request",
            Actor.STAFF,
        ),
        Transition(
            TicketStatus.PENDING_BORROW,
            TicketAction.CANCEL_BORROW,
            TicketStatus.CANCELLED,
            "Cancelled borrow request",
            Actor.BORROWER,
        ),
        Transition(
            TicketStatus.ACTIVE,
            TicketAction.REQUEST_RETURN,
            TicketStatus.PENDING_RETURN,
            "Return Request",
            Actor.BORROWER,
        ),
        Transition(
            TicketStatus.PENDING_RETURN,
            TicketAction.ACCEPT_RETURN,
            TicketStatus.RETURNED,
            "Accepted return request",
            Actor.STAFF,
            ledger_effect=LedgerEffect.RELEASE,
            ends_loan=True,
        ),
        Transition(
            TicketStatus.PENDING_RETURN,
            TicketAction.DECLINE_RETURN,
            TicketStatus.ACTIVE,
            "Declined return request",
            Actor.STAFF,
        ),
        Transition(
            TicketStatus.PENDING_RETURN,
            TicketAction.CANCEL_RETURN,
            TicketStatus.ACTIVE,
            "Cancelled return request",
            Actor.BORROWER,
        ),
    )
}

_ALIASES = {
    TicketAction.CANCEL: (TicketAction.CANCEL_BORROW, TicketAction.CANCEL_RETURN),
}


def resolve(status: TicketStatus, action: TicketAction) -> Transition:
    """Return the transition for ``action`` from ``status``.

    Raises:
        InvalidTransitionError: If the table has no such row.
    """
    for candidate in _ALIASES.get(action, (action,)):
        transition = TRANSITIONS.get((status, candidate))
        if transition is not None:
            return transition
    raise InvalidTransitionError(status.label, action.value)
