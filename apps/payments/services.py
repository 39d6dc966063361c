"""Payment workflows for bookings."""

from __future__ import annotations

import hashlib
import hmac
import logging

from django.conf import settings  # type: ignore

from apps.bookings.application.admission import is_host, is_owner
from apps.bookings.application.payment_sync import PAYABLE_STATUSES, BookingPaymentService
from apps.bookings.domain.errors import Forbidden, ValidationFailed
from apps.bookings.domain.lifecycle import PaymentStatus, map_gateway_status
from apps.bookings.domain.requester import RequesterIdentity
from apps.bookings.models import Booking
from apps.bookings.store import BookingStore
from shared.domain.value_objects import Money

from .gateway import ChargeResult, PaymentGateway, get_gateway

logger = logging.getLogger(__name__)


def start_payment(
    booking_id: int,
    requester: RequesterIdentity,
    *,
    gateway: PaymentGateway | None = None,
) -> tuple[Booking, ChargeResult]:
    """Charge a pending booking and remember the gateway's transaction id."""

    gateway = gateway or get_gateway()
    booking = BookingStore().get(booking_id)
    if not is_owner(booking, requester):
        raise Forbidden()
    if booking.status != Booking.Status.PENDING or booking.payment_status not in PAYABLE_STATUSES:
        raise ValidationFailed("Booking is not awaiting payment.")

    charge = gateway.charge(
        Money(booking.total_price, booking.currency),
        metadata={"booking_id": booking.pk, "booking_code": booking.booking_code},
    )
    payments = BookingPaymentService()
    booking = payments.attach_transaction(booking.pk, charge.external_id)
    logger.info(f"Booking {booking.booking_code} attached to charge {charge.external_id}")

    if map_gateway_status(charge.status) is PaymentStatus.PAID:
        booking = payments.confirm_payment(booking.pk)
    return booking, charge


def refund_booking(
    booking_id: int,
    requester: RequesterIdentity,
    *,
    gateway: PaymentGateway | None = None,
) -> Booking:
    """Refund a cancelled, paid booking.

    Cancellation never refunds on its own; this is the explicit follow-up.
    If the gateway reports the refund as still in flight, the webhook
    finishes the job.
    """

    gateway = gateway or get_gateway()
    booking = BookingStore().get(booking_id)
    if not (is_owner(booking, requester) or is_host(booking, requester) or requester.is_staff):
        raise Forbidden()
    if booking.status != Booking.Status.CANCELLED:
        raise ValidationFailed("Only cancelled bookings can be refunded.")
    if booking.payment_status != Booking.PaymentStatus.PAID or not booking.transaction_id:
        raise ValidationFailed("Only paid bookings can be refunded.")

    result = gateway.refund(booking.transaction_id, Money(booking.total_price, booking.currency))
    logger.info(f"Refund for booking {booking.booking_code} returned status {result.status}")

    if map_gateway_status(result.status) is PaymentStatus.REFUNDED:
        return BookingPaymentService().record_refund(booking.pk)
    return booking


def sign_payload(raw_body: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()


def verify_webhook_signature(raw_body: bytes, signature: str | None, secret: str | None = None) -> bool:
    """HMAC-SHA256 of the raw body, hex encoded, optionally prefixed with ``sha256=``.

    With no secret configured every payload is accepted.
    """

    secret = settings.PAYMENT_WEBHOOK_SECRET if secret is None else secret
    if not secret:
        return True
    if not signature:
        return False
    provided = signature.strip()
    if provided.startswith("sha256="):
        provided = provided[len("sha256="):]
    return hmac.compare_digest(sign_payload(raw_body, secret), provided.lower())
