"""Serializers for request bodies and for domain models in API responses."""

from rest_framework import serializers


class CheckoutRequestSerializer(serializers.Serializer):
    book_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)


class QuantityRequestSerializer(serializers.Serializer):
    quantity = serializers.IntegerField()


class BookSerializer(serializers.Serializer):
    """Serializer for Book domain model."""

    id = serializers.UUIDField(source="id.value")
    title = serializers.CharField()
    author = serializers.CharField()
    quantity = serializers.IntegerField()
    available = serializers.IntegerField()
    deleted = serializers.BooleanField()


class EventLogEntrySerializer(serializers.Serializer):
    """Serializer for EventLogEntry domain model."""

    seq = serializers.IntegerField()
    status = serializers.CharField()
    actor_id = serializers.IntegerField(source="actor_id.value")
    time = serializers.DateTimeField()


class TicketSerializer(serializers.Serializer):
    """Serializer for Ticket domain model, without its event log."""

    id = serializers.UUIDField(source="id.value")
    book_id = serializers.UUIDField(source="book_id.value")
    book_title = serializers.CharField()
    borrower_id = serializers.IntegerField(source="borrower_id.value")
    status = serializers.CharField(source="status.value")
    status_label = serializers.CharField(source="status.label")
    sort_order = serializers.IntegerField()
    borrowed_at = serializers.DateTimeField(allow_null=True)
    returned_at = serializers.DateTimeField(allow_null=True)
    updated_at = serializers.DateTimeField()


class TicketDetailSerializer(TicketSerializer):
    """Serializer for Ticket domain model including its event log."""

    event_logs = EventLogEntrySerializer(many=True)
