"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Map domain errors to HTTP responses
- Never contain business logic
- Never expose internal error details
"""

import logging

from django.conf import settings
from django.core.cache import cache
from rest_framework import status
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from lending import bootstrap
from lending.cache_keys import open_tickets_key
from lending.domain.errors import DomainError, ErrorCode
from lending.handlers.serializers import (
    BookSerializer,
    CheckoutRequestSerializer,
    QuantityRequestSerializer,
    TicketDetailSerializer,
    TicketSerializer,
)

logger = logging.getLogger(__name__)

_HTTP_STATUS = {
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INVALID_ID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorCode.INSUFFICIENT_INVENTORY: status.HTTP_409_CONFLICT,
    ErrorCode.DUPLICATE_OPEN_TICKET: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_QUANTITY: status.HTTP_400_BAD_REQUEST,
    ErrorCode.CONCURRENCY_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.INVENTORY_CORRUPTION: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.EMPTY_CHECKOUT: status.HTTP_400_BAD_REQUEST,
    ErrorCode.NOT_TICKET_OWNER: status.HTTP_403_FORBIDDEN,
    ErrorCode.INVALID_SORT_ORDER: status.HTTP_400_BAD_REQUEST,
}


def error_response(exc: DomainError) -> Response:
    return Response(
        {"code": exc.code.value, "message": exc.message},
        status=_HTTP_STATUS.get(exc.code, status.HTTP_400_BAD_REQUEST),
    )


class CheckoutView(APIView):
    """Handler for POST /api/checkout"""

    permission_classes = [IsAuthenticated]

    def post(self, request: Request) -> Response:
        body = CheckoutRequestSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        try:
            tickets = bootstrap.checkout_coordinator().checkout(
                request.user.pk, body.validated_data["book_ids"]
            )
        except DomainError as exc:
            return error_response(exc)
        return Response(
            {
                "created_ticket_ids": [str(ticket.id) for ticket in tickets],
                "tickets": TicketSerializer(tickets, many=True).data,
            },
            status=status.HTTP_201_CREATED,
        )


class TicketActionView(APIView):
    """Handler for POST /api/tickets/{ticket_id}/<action>

    ``operation`` names the AdminActionHandler method to call; it is set
    per route in urls.py together with the permission classes.
    """

    operation = ""
    permission_classes = [IsAuthenticated]

    def post(self, request: Request, ticket_id: str) -> Response:
        handler = bootstrap.admin_actions()
        try:
            ticket = getattr(handler, self.operation)(ticket_id, request.user.pk)
        except DomainError as exc:
            return error_response(exc)
        return Response({"ticket": TicketDetailSerializer(ticket).data})


class BookQuantityView(APIView):
    """Handler for PATCH /api/books/{book_id}/quantity"""

    permission_classes = [IsAdminUser]

    def patch(self, request: Request, book_id: str) -> Response:
        body = QuantityRequestSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        try:
            book = bootstrap.admin_actions().adjust_book_quantity(
                book_id, body.validated_data["quantity"], request.user.pk
            )
        except DomainError as exc:
            return error_response(exc)
        return Response({"book": BookSerializer(book).data})


class TicketListView(APIView):
    """Handler for GET /api/tickets?sort_order=n"""

    permission_classes = [IsAdminUser]

    def get(self, request: Request) -> Response:
        try:
            tickets = bootstrap.ticket_queries().list_tickets(
                request.query_params.get("sort_order")
            )
        except DomainError as exc:
            return error_response(exc)
        return Response(TicketSerializer(tickets, many=True).data)


class TicketDetailView(APIView):
    """Handler for GET /api/tickets/{ticket_id}"""

    permission_classes = [IsAdminUser]

    def get(self, request: Request, ticket_id: str) -> Response:
        try:
            ticket = bootstrap.ticket_queries().get_ticket(ticket_id)
        except DomainError as exc:
            return error_response(exc)
        return Response({"ticket": TicketDetailSerializer(ticket).data})


class MyTicketsView(APIView):
    """Handler for GET /api/me/tickets

    The list is cached per borrower. The cache is an optimisation only:
    when it fails the tickets are read from the database.
    """

    permission_classes = [IsAuthenticated]

    def get(self, request: Request) -> Response:
        key = open_tickets_key(request.user.pk)
        data = self._cached(key)
        if data is None:
            tickets = bootstrap.ticket_queries().open_tickets_for(request.user.pk)
            data = TicketSerializer(tickets, many=True).data
            self._store(key, data)
        return Response(data)

    @staticmethod
    def _cached(key: str):
        try:
            return cache.get(key)
        except Exception:
            logger.exception("Ticket cache read failed for %s", key)
            return None

    @staticmethod
    def _store(key: str, data) -> None:
        try:
            cache.set(key, data, timeout=settings.LENDING_TICKET_CACHE_TTL)
        except Exception:
            logger.exception("Ticket cache write failed for %s", key)
