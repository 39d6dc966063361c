"""API views for payments."""

from __future__ import annotations

import logging

import structlog  # type: ignore
from rest_framework import permissions, status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.bookings.application.payment_sync import BookingPaymentService
from apps.bookings.serializers import BookingSerializer
from apps.bookings.views import AdmissionErrorMixin, requester_from_request

from .gateway import PaymentGatewayError
from .serializers import PaymentStartedSerializer, PaymentWebhookSerializer
from .services import refund_booking, start_payment, verify_webhook_signature

logger = logging.getLogger(__name__)
webhook_logger = structlog.get_logger("apps.payments.webhook")

SIGNATURE_HEADER = "X-Payment-Signature"


class PaymentGatewayErrorMixin(AdmissionErrorMixin):
    def handle_exception(self, exc):  # type: ignore
        if isinstance(exc, PaymentGatewayError):
            logger.error(f"Payment gateway failure: {exc}")
            return Response(
                {"code": "payment_gateway_error", "detail": str(exc)},
                status=status.HTTP_502_BAD_GATEWAY,
            )
        return super().handle_exception(exc)


class StartPaymentView(PaymentGatewayErrorMixin, APIView):
    """Start a gateway charge for the caller's pending booking."""

    permission_classes = [permissions.AllowAny]

    def post(self, request, booking_id: int):  # type: ignore
        booking, charge = start_payment(booking_id, requester_from_request(request))
        data = PaymentStartedSerializer(
            {
                "booking": booking,
                "transaction_id": charge.external_id,
                "status": charge.status,
                "checkout_url": charge.checkout_url,
            }
        ).data
        return Response(data, status=status.HTTP_201_CREATED)


class RefundBookingView(PaymentGatewayErrorMixin, APIView):
    """Refund a cancelled, paid booking."""

    permission_classes = [permissions.AllowAny]

    def post(self, request, booking_id: int):  # type: ignore
        booking = refund_booking(booking_id, requester_from_request(request))
        return Response(BookingSerializer(booking).data)


class PaymentWebhookView(AdmissionErrorMixin, APIView):
    """Status notifications from the payment gateway."""

    authentication_classes: list = []
    permission_classes = [permissions.AllowAny]

    def post(self, request):  # type: ignore
        raw_body = request.body
        log = webhook_logger.bind(remote_addr=request.META.get("REMOTE_ADDR"))

        if not verify_webhook_signature(raw_body, request.headers.get(SIGNATURE_HEADER)):
            log.warning("payment_webhook_rejected", reason="invalid_signature")
            return Response(
                {"code": "invalid_signature", "detail": "Invalid webhook signature."},
                status=status.HTTP_403_FORBIDDEN,
            )

        serializer = PaymentWebhookSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        external_id = serializer.validated_data["external_id"]
        new_status = serializer.validated_data["status"]
        log = log.bind(external_id=external_id, gateway_status=new_status)

        booking = BookingPaymentService().apply_payment_update(external_id, new_status)
        log.info(
            "payment_webhook_applied",
            booking_code=booking.booking_code,
            payment_status=booking.payment_status,
            booking_status=booking.status,
        )
        return Response(
            {
                "status": "ok",
                "booking": booking.booking_code,
                "payment_status": booking.payment_status,
            }
        )
