"""URL routing for payments."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import PaymentWebhookView, RefundBookingView, StartPaymentView

urlpatterns = [
    path("bookings/<int:booking_id>/start/", StartPaymentView.as_view(), name="payment-start"),
    path("bookings/<int:booking_id>/refund/", RefundBookingView.as_view(), name="payment-refund"),
    path("webhook/", PaymentWebhookView.as_view(), name="payment-webhook"),
]
