from django.urls import path
from rest_framework.permissions import IsAdminUser, IsAuthenticated

from lending.handlers import (
    BookQuantityView,
    CheckoutView,
    MyTicketsView,
    TicketActionView,
    TicketDetailView,
    TicketListView,
)

_STAFF = [IsAdminUser]
_BORROWER = [IsAuthenticated]

_TICKET_ACTIONS = [
    ("accept-borrow", "accept_borrow", _STAFF),
    ("decline-borrow", "decline_borrow", _STAFF),
    ("cancel", "cancel_ticket", _BORROWER),
    ("return", "request_return", _BORROWER),
    ("accept-return", "accept_return", _STAFF),
    ("decline-return", "decline_return", _STAFF),
]

urlpatterns = [
    path("checkout", CheckoutView.as_view(), name="checkout"),
    path("me/tickets", MyTicketsView.as_view(), name="my-tickets"),
    path("tickets", TicketListView.as_view(), name="ticket-list"),
    path("tickets/<str:ticket_id>", TicketDetailView.as_view(), name="ticket-detail"),
    *[
        path(
            f"tickets/<str:ticket_id>/{suffix}",
            TicketActionView.as_view(operation=operation, permission_classes=permissions),
            name=f"ticket-{suffix}",
        )
        for suffix, operation, permissions in _TICKET_ACTIONS
    ],
    path("books/<str:book_id>/quantity", BookQuantityView.as_view(), name="book-quantity"),
]
