"""Integration tests for the Django stores and the engine on a real database.

Run with: pytest tests/test_stores.py -v
"""

import threading

import pytest
from django.db import IntegrityError, connection, transaction

from lending import bootstrap
from lending.domain import BookId, TicketStatus, UserId
from lending.domain.errors import (
    DuplicateOpenTicketError,
    InsufficientInventoryError,
    InvalidQuantityError,
    InvalidTransitionError,
    InventoryCorruptionError,
)
from lending.models import Book, BookEdit, CartItem, EventLogEntry, Ticket
from lending.stores.django_store import DjangoBookStore, DjangoTicketStore, DjangoUnitOfWork


def _open(store, book, borrower):
    return store.create_ticket(BookId(book.id), UserId(borrower.pk), TicketStatus.PENDING_BORROW)


def _assert_ledger_consistent() -> None:
    for book in Book.objects.all():
        holding = Ticket.objects.filter(
            book=book, status__in=[TicketStatus.ACTIVE.value, TicketStatus.PENDING_RETURN.value]
        ).count()
        assert 0 <= book.available <= book.quantity
        assert book.quantity - book.available == holding


@pytest.mark.django_db
class TestDjangoBookStore:
    """Conditional counter updates."""

    def test_decrement_stops_at_zero(self, make_book):
        book = make_book(quantity=1)
        store = DjangoBookStore()
        assert store.decrement_available(BookId(book.id)) is True
        assert store.decrement_available(BookId(book.id)) is False
        book.refresh_from_db()
        assert book.available == 0

    def test_decrement_uses_current_row_not_stale_copy(self, make_book):
        book = make_book(quantity=1)
        stale = Book.objects.get(pk=book.id)
        DjangoBookStore().decrement_available(BookId(book.id))
        assert stale.available == 1
        assert DjangoBookStore().decrement_available(BookId(stale.id)) is False

    def test_increment_stops_at_quantity(self, make_book):
        book = make_book(quantity=2, available=1)
        store = DjangoBookStore()
        assert store.increment_available(BookId(book.id)) is True
        assert store.increment_available(BookId(book.id)) is False

    def test_check_constraint_rejects_available_above_quantity(self, make_book):
        book = make_book(quantity=1)
        with pytest.raises(IntegrityError), transaction.atomic():
            Book.objects.filter(pk=book.id).update(available=2)


@pytest.mark.django_db
class TestDjangoTicketStore:
    """Ticket rows, conditional status writes and the event log."""

    def test_update_status_is_conditional(self, make_book, borrower):
        book = make_book()
        store = DjangoTicketStore()
        ticket = _open(store, book, borrower)

        assert store.update_status(ticket.id, TicketStatus.PENDING_BORROW, TicketStatus.ACTIVE)
        assert not store.update_status(
            ticket.id, TicketStatus.PENDING_BORROW, TicketStatus.DECLINED
        )
        row = Ticket.objects.get(pk=ticket.id.value)
        assert (row.status, row.sort_order) == ("active", 2)

    def test_event_seq_increases(self, make_book, borrower):
        book = make_book()
        store = DjangoTicketStore()
        ticket = _open(store, book, borrower)
        store.append_event(ticket.id, "Borrow Request", UserId(borrower.pk))
        store.append_event(ticket.id, "Cancelled borrow request", UserId(borrower.pk))

        assert [e.seq for e in store.list_events(ticket.id)] == [1, 2]
        assert store.latest_event(ticket.id).status == "Cancelled borrow request"

    def test_second_open_ticket_for_same_book_rejected(self, make_book, borrower):
        book = make_book()
        store = DjangoTicketStore()
        _open(store, book, borrower)
        with pytest.raises(DuplicateOpenTicketError):
            _open(store, book, borrower)

    def test_closed_ticket_does_not_block_new_one(self, make_book, borrower):
        book = make_book()
        store = DjangoTicketStore()
        first = _open(store, book, borrower)
        store.update_status(first.id, TicketStatus.PENDING_BORROW, TicketStatus.CANCELLED)
        second = _open(store, book, borrower)
        assert second.id != first.id

    def test_unit_of_work_rolls_back(self, make_book, borrower):
        book = make_book()
        store = DjangoTicketStore()
        with pytest.raises(RuntimeError), DjangoUnitOfWork().atomic():
            _open(store, book, borrower)
            raise RuntimeError("boom")
        assert not Ticket.objects.exists()


@pytest.mark.django_db
class TestEngineOnDatabase:
    """Scenarios run through the composition root."""

    def test_borrow_and_return_cycle(self, make_book, borrower, staff):
        book = make_book(quantity=2)
        CartItem.objects.create(user=borrower, book=book)
        actions = bootstrap.admin_actions()

        [ticket] = bootstrap.checkout_coordinator().checkout(borrower.pk, [str(book.id)])
        assert not CartItem.objects.filter(user=borrower).exists()

        ticket = actions.accept_borrow(ticket.id, staff.pk)
        book.refresh_from_db()
        assert (ticket.status, book.available) == (TicketStatus.ACTIVE, 1)
        _assert_ledger_consistent()

        actions.request_return(ticket.id, borrower.pk)
        ticket = actions.decline_return(ticket.id, staff.pk)
        book.refresh_from_db()
        assert (ticket.status, book.available) == (TicketStatus.ACTIVE, 1)

        actions.request_return(ticket.id, borrower.pk)
        ticket = actions.accept_return(ticket.id, staff.pk)
        book.refresh_from_db()
        assert (ticket.status, book.available) == (TicketStatus.RETURNED, 2)
        assert ticket.borrowed_at is not None and ticket.returned_at is not None
        assert [e.seq for e in ticket.event_logs] == [1, 2, 3, 4, 5, 6]
        _assert_ledger_consistent()

    def test_last_copy_goes_to_first_accept(self, make_book, borrower, other_borrower, staff):
        book = make_book(quantity=1)
        checkout = bootstrap.checkout_coordinator()
        [first] = checkout.checkout(borrower.pk, [str(book.id)])
        [second] = checkout.checkout(other_borrower.pk, [str(book.id)])
        actions = bootstrap.admin_actions()

        actions.accept_borrow(first.id, staff.pk)
        with pytest.raises(InsufficientInventoryError):
            actions.accept_borrow(second.id, staff.pk)

        book.refresh_from_db()
        assert book.available == 0
        assert Ticket.objects.get(pk=second.id.value).status == TicketStatus.PENDING_BORROW.value
        assert EventLogEntry.objects.filter(ticket_id=second.id.value).count() == 1
        _assert_ledger_consistent()

    def test_invalid_transition_leaves_no_trace(self, make_book, borrower, staff):
        book = make_book(quantity=1)
        [ticket] = bootstrap.checkout_coordinator().checkout(borrower.pk, [str(book.id)])
        with pytest.raises(InvalidTransitionError):
            bootstrap.admin_actions().accept_return(ticket.id, staff.pk)
        book.refresh_from_db()
        assert book.available == 1
        assert EventLogEntry.objects.filter(ticket_id=ticket.id.value).count() == 1

    def test_corrupt_release_rolls_back(self, make_book, borrower, staff):
        book = make_book(quantity=1)
        actions = bootstrap.admin_actions()
        [ticket] = bootstrap.checkout_coordinator().checkout(borrower.pk, [str(book.id)])
        actions.accept_borrow(ticket.id, staff.pk)
        actions.request_return(ticket.id, borrower.pk)
        Book.objects.filter(pk=book.id).update(available=1)

        with pytest.raises(InventoryCorruptionError):
            actions.accept_return(ticket.id, staff.pk)
        assert Ticket.objects.get(pk=ticket.id.value).status == TicketStatus.PENDING_RETURN.value
        assert EventLogEntry.objects.filter(ticket_id=ticket.id.value).count() == 3

    def test_adjust_quantity(self, make_book, borrower, staff):
        book = make_book(quantity=2)
        actions = bootstrap.admin_actions()
        [ticket] = bootstrap.checkout_coordinator().checkout(borrower.pk, [str(book.id)])
        actions.accept_borrow(ticket.id, staff.pk)

        updated = actions.adjust_book_quantity(str(book.id), 4, staff.pk)
        assert (updated.quantity, updated.available) == (4, 3)
        with pytest.raises(InvalidQuantityError):
            actions.adjust_book_quantity(str(book.id), 0, staff.pk)

        book.refresh_from_db()
        assert (book.quantity, book.available) == (4, 3)
        edit = BookEdit.objects.get(book=book)
        assert (edit.old_quantity, edit.new_quantity, edit.updated_by) == (2, 4, staff)
        _assert_ledger_consistent()


def _race(target, calls: list[tuple]) -> list:
    """Run ``target`` once per argument tuple, all threads released together.

    Each thread works on its own database connection and closes it when done.
    Exceptions are returned in place of results.
    """
    barrier = threading.Barrier(len(calls))
    results: list = [None] * len(calls)

    def run(index: int, args: tuple) -> None:
        try:
            barrier.wait()
            results[index] = target(*args)
        except Exception as exc:
            results[index] = exc
        finally:
            connection.close()

    threads = [threading.Thread(target=run, args=(i, args)) for i, args in enumerate(calls)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return results


@pytest.mark.django_db(transaction=True)
class TestConcurrentWriters:
    """Races between separate database connections."""

    def test_decrement_hands_out_each_copy_once(self, make_book):
        book = make_book(quantity=3)
        store = DjangoBookStore()

        results = _race(store.decrement_available, [(BookId(book.id),)] * 8)

        assert results.count(True) == 3
        assert results.count(False) == 5
        book.refresh_from_db()
        assert book.available == 0

    @pytest.mark.skipif(
        connection.vendor != "postgresql",
        reason="needs row-level locking between concurrent transactions",
    )
    def test_two_accepts_for_last_copy(self, make_book, borrower, other_borrower, staff):
        book = make_book(quantity=1)
        checkout = bootstrap.checkout_coordinator()
        [first] = checkout.checkout(borrower.pk, [str(book.id)])
        [second] = checkout.checkout(other_borrower.pk, [str(book.id)])

        def accept(ticket_id):
            return bootstrap.admin_actions().accept_borrow(ticket_id, staff.pk).status

        results = _race(accept, [(first.id,), (second.id,)])

        assert results.count(TicketStatus.ACTIVE) == 1
        assert sum(isinstance(r, InsufficientInventoryError) for r in results) == 1
        book.refresh_from_db()
        assert book.available == 0
        _assert_ledger_consistent()
