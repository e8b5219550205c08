"""Cache keys shared by the handlers and the invalidation signals."""


def open_tickets_key(borrower_id: int) -> str:
    return f"tickets:borrower:{borrower_id}:open"
