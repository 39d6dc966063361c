"""Serializers for payment endpoints."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.bookings.serializers import BookingSerializer


class PaymentWebhookSerializer(serializers.Serializer):
    """Gateway notification: ``{"externalId": ..., "newStatus": ...}``.

    Snake-case ``external_id`` / ``status`` are accepted as well.
    """

    external_id = serializers.CharField(max_length=128)
    status = serializers.CharField(max_length=32)

    def to_internal_value(self, data):  # type: ignore
        if hasattr(data, "get"):
            data = {
                "external_id": data.get("external_id") or data.get("externalId"),
                "status": data.get("status") or data.get("newStatus"),
            }
        return super().to_internal_value(data)


class PaymentStartedSerializer(serializers.Serializer):
    booking = BookingSerializer()
    transaction_id = serializers.CharField()
    status = serializers.CharField()
    checkout_url = serializers.CharField(allow_blank=True)
