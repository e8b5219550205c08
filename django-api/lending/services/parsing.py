"""Conversion of raw identifiers into value objects."""

from lending.domain import BookId, TicketId, UserId
from lending.domain.errors import InvalidIdError


def parse_book_id(value: object) -> BookId:
    try:
        return BookId.from_string(str(value))
    except ValueError as exc:
        raise InvalidIdError("book") from exc


def parse_ticket_id(value: object) -> TicketId:
    try:
        return TicketId.from_string(str(value))
    except ValueError as exc:
        raise InvalidIdError("ticket") from exc


def parse_user_id(value: object) -> UserId:
    if isinstance(value, UserId):
        return value
    try:
        return UserId.from_string(str(value))
    except ValueError as exc:
        raise InvalidIdError("user") from exc
