"""
Booking Domain Events

Events that represent things that have happened in the booking domain.
These are published after successful transaction commits.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from shared.domain.base import DomainEvent


@dataclass
class BookingRequested(DomainEvent):
    """
    Event: A booking was admitted (status pending, payment pending)

    Triggers:
    - Audit trail entry
    - Notify the host
    """
    resource_id: int = 0
    start_at: datetime | None = None
    end_at: datetime | None = None
    party_size: int = 1
    total_price: Decimal = Decimal('0.00')
    currency: str = 'USD'
    guest_booking: bool = False


@dataclass
class BookingRescheduled(DomainEvent):
    """
    Event: Owner moved a booking or changed its party size

    Triggers:
    - Audit trail entry
    - Notify the host of the new time
    """
    resource_id: int = 0
    previous_start_at: datetime | None = None
    previous_end_at: datetime | None = None
    start_at: datetime | None = None
    end_at: datetime | None = None
    party_size: int = 1


@dataclass
class BookingCancelled(DomainEvent):
    """
    Event: Booking was cancelled by its owner

    No refund is issued here; refunds are a separate payment operation.
    """
    resource_id: int = 0
    previous_status: str = ''
    reason: str = ''


@dataclass
class BookingPaymentUpdated(DomainEvent):
    """
    Event: Payment status changed (gateway webhook or explicit confirmation)
    """
    previous_payment_status: str = ''
    payment_status: str = ''
    status: str = ''
    transaction_id: str = ''
