"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/.
"""

import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone

from lending.domain.lifecycle import CLOSED_SORT_ORDER, TicketStatus

TICKET_STATUS_CHOICES = [(status.value, status.label) for status in TicketStatus]


class Book(models.Model):
    """Persistence model for books and their copy counters."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=255)
    author = models.CharField(max_length=255, blank=True)
    quantity = models.PositiveIntegerField(default=0)
    available = models.PositiveIntegerField(default=0)
    deleted = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["title"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(available__gte=0),
                name="book_available_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(available__lte=models.F("quantity")),
                name="book_available_lte_quantity",
            ),
        ]

    def __str__(self) -> str:
        return self.title


class BookEdit(models.Model):
    """Quantity edit history of a book."""

    book = models.ForeignKey(Book, on_delete=models.CASCADE, related_name="edits")
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="book_edits"
    )
    old_quantity = models.PositiveIntegerField()
    new_quantity = models.PositiveIntegerField()
    time = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["time", "id"]

    def __str__(self) -> str:
        return f"{self.book.title}: {self.old_quantity} -> {self.new_quantity}"


class Ticket(models.Model):
    """Persistence model for loan tickets."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    book = models.ForeignKey(Book, on_delete=models.PROTECT, related_name="tickets")
    borrower = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="loan_tickets"
    )
    status = models.CharField(max_length=20, choices=TICKET_STATUS_CHOICES)
    sort_order = models.PositiveSmallIntegerField()
    borrowed_at = models.DateTimeField(null=True, blank=True)
    returned_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    # Written explicitly: status changes go through queryset.update().
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-updated_at"]
        indexes = [
            models.Index(fields=["borrower", "sort_order"], name="ticket_borrower_sort_idx"),
            models.Index(fields=["sort_order", "-updated_at"], name="ticket_sort_updated_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["borrower", "book"],
                condition=models.Q(sort_order__lt=CLOSED_SORT_ORDER),
                name="one_open_ticket_per_borrower_and_book",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.book.title} - {self.get_status_display()}"


class EventLogEntry(models.Model):
    """Append-only audit trail of a ticket."""

    ticket = models.ForeignKey(Ticket, on_delete=models.PROTECT, related_name="event_logs")
    seq = models.PositiveIntegerField()
    status = models.CharField(max_length=100)
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="ticket_events"
    )
    time = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["ticket", "seq"]
        constraints = [
            models.UniqueConstraint(fields=["ticket", "seq"], name="unique_event_seq_per_ticket"),
        ]

    def __str__(self) -> str:
        return f"#{self.seq} {self.status}"


class CartItem(models.Model):
    """A book waiting in a user's cart until checkout."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="cart_items"
    )
    book = models.ForeignKey(Book, on_delete=models.CASCADE, related_name="+")
    added_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["added_at"]
        constraints = [
            models.UniqueConstraint(fields=["user", "book"], name="unique_cart_item"),
        ]

    def __str__(self) -> str:
        return f"{self.user} - {self.book.title}"
