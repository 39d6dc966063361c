"""Serializers for the booking domain.

Request serializers only check types; admission rules (shape, party size,
requester, capacity, hours, overlap) are enforced by the admission service
so every rejection carries an admission error code.
"""

from __future__ import annotations

from django.utils import timezone  # type: ignore
from rest_framework import serializers  # type: ignore

from .models import SPECIAL_REQUESTS_MAX_LENGTH, Booking


class LocalDateTimeField(serializers.DateTimeField):
    """Reads offsets as the server's local wall clock, not UTC, even with USE_TZ off."""

    def default_timezone(self):  # type: ignore
        return timezone.get_current_timezone()


class BookingShapeFields(serializers.Serializer):
    start_at = LocalDateTimeField(required=False, allow_null=True)
    end_at = LocalDateTimeField(required=False, allow_null=True)
    slot_date = serializers.DateField(required=False, allow_null=True)
    slot_time = serializers.TimeField(required=False, allow_null=True)

    def shape_kwargs(self) -> dict:
        data = self.validated_data
        return {
            "start": data.get("start_at"),
            "end": data.get("end_at"),
            "slot_date": data.get("slot_date"),
            "slot_time": data.get("slot_time"),
        }


class BookingRequestSerializer(BookingShapeFields):
    """New booking by a signed-in user or a guest."""

    resource = serializers.IntegerField()
    party_size = serializers.IntegerField()
    guest_name = serializers.CharField(required=False, allow_blank=True, max_length=255)
    guest_email = serializers.CharField(required=False, allow_blank=True, max_length=254)
    guest_phone = serializers.CharField(required=False, allow_blank=True, max_length=20)
    payment_method = serializers.ChoiceField(
        choices=Booking.PaymentMethod.choices,
        required=False,
        allow_blank=True,
    )
    special_requests = serializers.CharField(
        required=False,
        allow_blank=True,
        max_length=SPECIAL_REQUESTS_MAX_LENGTH,
    )
    source = serializers.ChoiceField(
        choices=Booking.Source.choices,
        required=False,
        default=Booking.Source.WEB,
    )

    def has_guest_contact(self) -> bool:
        data = self.validated_data
        return any(data.get(key) for key in ("guest_name", "guest_email", "guest_phone"))


class BookingUpdateSerializer(BookingShapeFields):
    party_size = serializers.IntegerField(required=False, allow_null=True)


class BookingCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255)


class BookingSerializer(serializers.ModelSerializer):
    """Booking as seen by its owner or the host."""

    resource_name = serializers.ReadOnlyField(source="resource.name")
    service_id = serializers.ReadOnlyField(source="resource.service_id")
    slot_time = serializers.TimeField(format="%H:%M", read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "booking_code",
            "resource",
            "resource_name",
            "service_id",
            "user",
            "guest_name",
            "guest_email",
            "guest_phone",
            "start_at",
            "end_at",
            "slot_date",
            "slot_time",
            "party_size",
            "total_price",
            "currency",
            "status",
            "payment_status",
            "payment_method",
            "transaction_id",
            "special_requests",
            "source",
            "cancellation_reason",
            "cancelled_at",
            "paid_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BookingCreatedSerializer(BookingSerializer):
    """Creation response; carries the guest possession token exactly once."""

    guest_token = serializers.SerializerMethodField()

    class Meta(BookingSerializer.Meta):
        fields = BookingSerializer.Meta.fields + ["guest_token"]
        read_only_fields = fields

    def get_guest_token(self, obj: Booking) -> str | None:
        return getattr(obj, "guest_token", None)
