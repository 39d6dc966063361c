"""Message bus handlers for booking events."""

from __future__ import annotations

import logging

from shared.application.message_bus import message_bus
from shared.domain.base import DomainEvent

from .domain.events import (
    BookingCancelled,
    BookingPaymentUpdated,
    BookingRequested,
    BookingRescheduled,
)
from .models import BookingEvent

logger = logging.getLogger(__name__)

AUDITED_EVENTS = (
    BookingRequested,
    BookingRescheduled,
    BookingCancelled,
    BookingPaymentUpdated,
)


def record_booking_event(event: DomainEvent) -> BookingEvent | None:
    """Append the event to the booking's audit trail (idempotent per event id)."""

    if event.aggregate_id is None:
        logger.warning(f"{event.event_type} {event.event_id} has no booking id, not audited")
        return None
    entry, created = BookingEvent.objects.get_or_create(
        event_id=event.event_id,
        defaults={
            "booking_id": event.aggregate_id,
            "event_type": event.event_type,
            "payload": event.payload(),
            "occurred_at": event.occurred_at,
        },
    )
    if created:
        logger.info(f"Audited {event.event_type} for booking {event.aggregate_id}")
    return entry


def register_handlers(bus=message_bus) -> None:
    for event_class in AUDITED_EVENTS:
        bus.register_event_handler(event_class, record_booking_event)
