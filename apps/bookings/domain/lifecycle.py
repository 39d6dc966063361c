"""
Booking Lifecycle

Status values and the allowed moves between them:

    pending ──► confirmed ──► completed
       │            │
       └────────────┴──► cancelled

Payment status moves independently:

    pending ──► paid ──► refunded
       │
       └──► failed ──► paid
"""

from enum import Enum


class BookingStatus(Enum):
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    CANCELLED = 'cancelled'
    COMPLETED = 'completed'


class PaymentStatus(Enum):
    PENDING = 'pending'
    PAID = 'paid'
    FAILED = 'failed'
    REFUNDED = 'refunded'


# Statuses that hold the resource and take part in conflict checks
ACTIVE_STATUSES = (
    BookingStatus.PENDING.value,
    BookingStatus.CONFIRMED.value,
    BookingStatus.COMPLETED.value,
)

# Statuses from which the owner may reschedule or cancel
CHANGEABLE_STATUSES = (
    BookingStatus.PENDING.value,
    BookingStatus.CONFIRMED.value,
)

# Payment gateway vocabulary -> our payment status; None means "no change"
GATEWAY_STATUS_MAP = {
    'succeeded': PaymentStatus.PAID,
    'paid': PaymentStatus.PAID,
    'completed': PaymentStatus.PAID,
    'failed': PaymentStatus.FAILED,
    'declined': PaymentStatus.FAILED,
    'canceled': PaymentStatus.FAILED,
    'expired': PaymentStatus.FAILED,
    'refunded': PaymentStatus.REFUNDED,
    'pending': None,
    'processing': None,
}


def map_gateway_status(raw_status: str) -> PaymentStatus | None:
    """
    Translate a gateway status string

    Returns None both for in-flight statuses and for statuses we do not
    recognise; callers treat both as "leave the booking alone".
    """
    return GATEWAY_STATUS_MAP.get((raw_status or '').strip().lower())
