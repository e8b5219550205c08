"""Django signals for cache invalidation.

Every ticket write appends an EventLogEntry, so listening on both models
covers ticket creation and status changes made through queryset.update().
Keys are dropped after commit so a concurrent reader cannot re-cache the
pre-commit state.
"""

import logging

from django.core.cache import cache
from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from lending.cache_keys import open_tickets_key
from lending.models import EventLogEntry, Ticket

logger = logging.getLogger(__name__)


def _drop_open_tickets(borrower_id: int) -> None:
    key = open_tickets_key(borrower_id)

    def drop() -> None:
        try:
            cache.delete(key)
        except Exception:
            # Entry expires on its own after the configured TTL.
            logger.exception("Failed to invalidate cache key %s", key)

    transaction.on_commit(drop)


@receiver([post_save, post_delete], sender=Ticket)
def invalidate_ticket_cache(sender, instance, **kwargs):
    """Invalidate the borrower's open ticket list when a ticket is saved or deleted."""
    _drop_open_tickets(instance.borrower_id)


@receiver(post_save, sender=EventLogEntry)
def invalidate_ticket_cache_on_event(sender, instance, created, **kwargs):
    """Invalidate the borrower's open ticket list when a ticket moves."""
    if created:
        borrower_id = Ticket.objects.values_list("borrower_id", flat=True).get(
            pk=instance.ticket_id
        )
        _drop_open_tickets(borrower_id)
