"""Django ORM implementation of the lending stores.

Copy counters only change through conditional ``UPDATE ... WHERE``
statements built from ``F()`` expressions, so the database decides who gets
the last copy. Row locks (``select_for_update``) serialize writers on the
same ticket or book for the duration of the caller's ``atomic()`` block.
"""

from collections.abc import Sequence
from contextlib import AbstractContextManager
from datetime import datetime

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import F, Max
from django.utils import timezone

from lending import models as orm
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
from lending.domain.errors import ConcurrencyConflictError, DuplicateOpenTicketError
from lending.domain.lifecycle import CLOSED_SORT_ORDER
from lending.stores.interfaces import BookStore, BorrowerStore, TicketStore, UnitOfWork


def _to_book(row: orm.Book) -> Book:
    return Book(
        id=BookId(row.id),
        title=row.title,
        author=row.author,
        quantity=row.quantity,
        available=row.available,
        deleted=row.deleted,
    )


def _to_edit(row: orm.BookEdit) -> BookEdit:
    return BookEdit(
        book_id=BookId(row.book_id),
        updated_by=UserId(row.updated_by_id),
        old_quantity=row.old_quantity,
        new_quantity=row.new_quantity,
        time=row.time,
    )


def _to_event(row: orm.EventLogEntry) -> EventLogEntry:
    return EventLogEntry(
        ticket_id=TicketId(row.ticket_id),
        seq=row.seq,
        status=row.status,
        actor_id=UserId(row.actor_id),
        time=row.time,
    )


def _to_ticket(row: orm.Ticket, events: Sequence[EventLogEntry] = ()) -> Ticket:
    return Ticket(
        id=TicketId(row.id),
        book_id=BookId(row.book_id),
        borrower_id=UserId(row.borrower_id),
        status=TicketStatus(row.status),
        created_at=row.created_at,
        updated_at=row.updated_at,
        borrowed_at=row.borrowed_at,
        returned_at=row.returned_at,
        book_title=row.book.title,
        event_logs=tuple(events),
    )


class DjangoUnitOfWork(UnitOfWork):
    """Database transaction as the unit of work."""

    def atomic(self) -> AbstractContextManager[None]:
        return transaction.atomic()


class DjangoBookStore(BookStore):
    """Book store backed by the ``lending_book`` table."""

    def get_book(self, book_id: BookId) -> Book | None:
        row = orm.Book.objects.filter(pk=book_id.value).first()
        return _to_book(row) if row is not None else None

    def get_books(self, book_ids: Sequence[BookId]) -> list[Book]:
        rows = orm.Book.objects.filter(pk__in=[book_id.value for book_id in book_ids])
        return [_to_book(row) for row in rows]

    def decrement_available(self, book_id: BookId) -> bool:
        updated = orm.Book.objects.filter(pk=book_id.value, available__gte=1).update(
            available=F("available") - 1, updated_at=timezone.now()
        )
        return updated == 1

    def increment_available(self, book_id: BookId) -> bool:
        updated = orm.Book.objects.filter(
            pk=book_id.value, available__lt=F("quantity")
        ).update(available=F("available") + 1, updated_at=timezone.now())
        return updated == 1

    def lock_book(self, book_id: BookId) -> Book | None:
        row = orm.Book.objects.select_for_update().filter(pk=book_id.value).first()
        return _to_book(row) if row is not None else None

    def set_counts(self, book_id: BookId, quantity: int, available: int) -> Book:
        orm.Book.objects.filter(pk=book_id.value).update(
            quantity=quantity, available=available, updated_at=timezone.now()
        )
        return _to_book(orm.Book.objects.get(pk=book_id.value))

    def record_edit(
        self, book_id: BookId, actor_id: UserId, old_quantity: int, new_quantity: int
    ) -> BookEdit:
        row = orm.BookEdit.objects.create(
            book_id=book_id.value,
            updated_by_id=actor_id.value,
            old_quantity=old_quantity,
            new_quantity=new_quantity,
        )
        return _to_edit(row)

    def list_edits(self, book_id: BookId) -> list[BookEdit]:
        return [_to_edit(row) for row in orm.BookEdit.objects.filter(book_id=book_id.value)]


class DjangoTicketStore(TicketStore):
    """Ticket store backed by the ``lending_ticket`` and ``lending_eventlogentry`` tables."""

    def get_ticket(self, ticket_id: TicketId, with_events: bool = False) -> Ticket | None:
        row = orm.Ticket.objects.select_related("book").filter(pk=ticket_id.value).first()
        if row is None:
            return None
        events = self.list_events(ticket_id) if with_events else ()
        return _to_ticket(row, events)

    def lock_ticket(self, ticket_id: TicketId) -> Ticket | None:
        row = (
            orm.Ticket.objects.select_for_update(of=("self",))
            .select_related("book")
            .filter(pk=ticket_id.value)
            .first()
        )
        return _to_ticket(row) if row is not None else None

    def create_ticket(
        self, book_id: BookId, borrower_id: UserId, status: TicketStatus
    ) -> Ticket:
        now = timezone.now()
        try:
            with transaction.atomic():
                row = orm.Ticket.objects.create(
                    book_id=book_id.value,
                    borrower_id=borrower_id.value,
                    status=status.value,
                    sort_order=status.sort_order,
                    created_at=now,
                    updated_at=now,
                )
        except IntegrityError as exc:
            raise DuplicateOpenTicketError() from exc
        return _to_ticket(row)

    def update_status(
        self,
        ticket_id: TicketId,
        expected: TicketStatus,
        status: TicketStatus,
        borrowed_at: datetime | None = None,
        returned_at: datetime | None = None,
    ) -> bool:
        fields = {
            "status": status.value,
            "sort_order": status.sort_order,
            "updated_at": timezone.now(),
        }
        if borrowed_at is not None:
            fields["borrowed_at"] = borrowed_at
        if returned_at is not None:
            fields["returned_at"] = returned_at
        updated = orm.Ticket.objects.filter(
            pk=ticket_id.value, status=expected.value
        ).update(**fields)
        return updated == 1

    def append_event(
        self, ticket_id: TicketId, status: str, actor_id: UserId
    ) -> EventLogEntry:
        last = orm.EventLogEntry.objects.filter(ticket_id=ticket_id.value).aggregate(
            last=Max("seq")
        )["last"]
        try:
            with transaction.atomic():
                row = orm.EventLogEntry.objects.create(
                    ticket_id=ticket_id.value,
                    seq=(last or 0) + 1,
                    status=status,
                    actor_id=actor_id.value,
                )
        except IntegrityError as exc:
            raise ConcurrencyConflictError(str(ticket_id)) from exc
        return _to_event(row)

    def list_events(self, ticket_id: TicketId) -> list[EventLogEntry]:
        rows = orm.EventLogEntry.objects.filter(ticket_id=ticket_id.value).order_by("seq")
        return [_to_event(row) for row in rows]

    def latest_event(self, ticket_id: TicketId) -> EventLogEntry | None:
        row = (
            orm.EventLogEntry.objects.filter(ticket_id=ticket_id.value)
            .order_by("-seq")
            .first()
        )
        return _to_event(row) if row is not None else None

    def open_tickets_for_books(
        self, borrower_id: UserId, book_ids: Sequence[BookId]
    ) -> list[Ticket]:
        rows = orm.Ticket.objects.select_related("book").filter(
            borrower_id=borrower_id.value,
            book_id__in=[book_id.value for book_id in book_ids],
            sort_order__lt=CLOSED_SORT_ORDER,
        )
        return [_to_ticket(row) for row in rows]

    def open_tickets_for(self, borrower_id: UserId) -> list[Ticket]:
        rows = (
            orm.Ticket.objects.select_related("book")
            .filter(borrower_id=borrower_id.value, sort_order__lt=CLOSED_SORT_ORDER)
            .order_by("-updated_at")
        )
        return [_to_ticket(row) for row in rows]

    def list_tickets(self, statuses: Sequence[TicketStatus] | None = None) -> list[Ticket]:
        rows = orm.Ticket.objects.select_related("book").order_by("-updated_at")
        if statuses is not None:
            rows = rows.filter(status__in=[status.value for status in statuses])
        return [_to_ticket(row) for row in rows]


class DjangoBorrowerStore(BorrowerStore):
    """Borrower lookups against the configured user model and cart table."""

    def exists(self, user_id: UserId) -> bool:
        return get_user_model().objects.filter(pk=user_id.value).exists()

    def remove_from_cart(self, user_id: UserId, book_ids: Sequence[BookId]) -> None:
        orm.CartItem.objects.filter(
            user_id=user_id.value, book_id__in=[book_id.value for book_id in book_ids]
        ).delete()
