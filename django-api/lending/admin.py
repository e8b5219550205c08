from django.contrib import admin

from lending.models import Book, BookEdit, CartItem, EventLogEntry, Ticket


class BookEditInline(admin.TabularInline):
    model = BookEdit
    extra = 0
    can_delete = False
    readonly_fields = ["updated_by", "old_quantity", "new_quantity", "time"]

    def has_add_permission(self, request, obj=None):
        return False


class EventLogEntryInline(admin.TabularInline):
    model = EventLogEntry
    extra = 0
    can_delete = False
    readonly_fields = ["seq", "status", "actor", "time"]

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Book)
class BookAdmin(admin.ModelAdmin):
    list_display = ["title", "author", "quantity", "available", "deleted"]
    list_filter = ["deleted"]
    search_fields = ["title", "author"]
    inlines = [BookEditInline]

    def get_readonly_fields(self, request, obj=None):
        # After creation, counters change only through the ledger.
        if obj is not None:
            return ["quantity", "available"]
        return ["available"]

    def save_model(self, request, obj, form, change):
        if not change:
            obj.available = obj.quantity
        super().save_model(request, obj, form, change)


@admin.register(Ticket)
class TicketAdmin(admin.ModelAdmin):
    list_display = ["book", "borrower", "status", "borrowed_at", "returned_at", "updated_at"]
    list_filter = ["status"]
    search_fields = ["book__title", "borrower__username"]
    readonly_fields = [
        "book",
        "borrower",
        "status",
        "sort_order",
        "borrowed_at",
        "returned_at",
        "created_at",
        "updated_at",
    ]
    inlines = [EventLogEntryInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(CartItem)
class CartItemAdmin(admin.ModelAdmin):
    list_display = ["user", "book", "added_at"]
    list_filter = ["user"]
