"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking, BookingEvent


class BookingEventInline(admin.TabularInline):
    model = BookingEvent
    extra = 0
    can_delete = False
    fields = ("event_type", "occurred_at", "payload")
    readonly_fields = fields


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "booking_code",
        "resource",
        "user",
        "guest_email",
        "status",
        "payment_status",
        "start_at",
        "end_at",
        "party_size",
        "total_price",
        "created_at",
    )
    list_filter = ("status", "payment_status", "source", "payment_method")
    search_fields = ("booking_code", "resource__name", "user__email", "guest_email", "transaction_id")
    readonly_fields = (
        "booking_code",
        "guest_token_hash",
        "created_at",
        "updated_at",
        "total_price",
        "cancelled_at",
        "paid_at",
    )
    inlines = (BookingEventInline,)

    def has_delete_permission(self, request, obj=None):  # type: ignore
        return False


@admin.register(BookingEvent)
class BookingEventAdmin(admin.ModelAdmin):
    list_display = ("event_type", "booking", "occurred_at", "recorded_at")
    list_filter = ("event_type",)
    search_fields = ("booking__booking_code", "event_id")
    readonly_fields = ("booking", "event_id", "event_type", "payload", "occurred_at", "recorded_at")
