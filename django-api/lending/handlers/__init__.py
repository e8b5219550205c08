from lending.handlers.views import (
    BookQuantityView,
    CheckoutView,
    MyTicketsView,
    TicketActionView,
    TicketDetailView,
    TicketListView,
)

__all__ = [
    "BookQuantityView",
    "CheckoutView",
    "MyTicketsView",
    "TicketActionView",
    "TicketDetailView",
    "TicketListView",
]
