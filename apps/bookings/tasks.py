"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging
from datetime import datetime

from celery import shared_task  # type: ignore

from apps.catalog import services as catalog
from apps.catalog.models import Resource

from .domain.errors import AdmissionError
from .models import Booking
from .store import BookingStore

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (scheduled through Celery Beat)
# ============================================================================

@shared_task(name="bookings.complete_finished_bookings")
def complete_finished_bookings() -> dict[str, int]:
    """
    Move confirmed bookings whose end has passed to COMPLETED.

    Each booking is a single-row compare-and-set, so a booking cancelled
    meanwhile is simply skipped.

    Runs every 15 minutes.

    Returns:
        dict: {"completed": number of completed bookings}
    """
    store = BookingStore()
    completed_count = 0

    for booking_id in store.finished_confirmed_ids(datetime.now()):
        try:
            if store.transition(
                booking_id,
                from_statuses=[Booking.Status.CONFIRMED],
                status=Booking.Status.COMPLETED,
            ):
                completed_count += 1
                logger.info(f"Booking {booking_id} completed")
        except AdmissionError as e:
            logger.error(f"Error completing booking {booking_id}: {e}", exc_info=True)

    if completed_count > 0:
        logger.info(f"Completed {completed_count} bookings")

    return {"completed": completed_count}


@shared_task(name="bookings.rebuild_booked_ranges")
def rebuild_booked_ranges(resource_id: int | None = None) -> dict[str, int]:
    """
    Recompute the derived ``booked_ranges`` cache from the bookings table.

    Rebuilds a single resource when ``resource_id`` is given, every resource
    otherwise. Runs nightly.

    Returns:
        dict: {"resources": resources rebuilt, "ranges": entries written}
    """
    store = BookingStore()
    resource_ids = (
        [resource_id]
        if resource_id is not None
        else list(Resource.objects.order_by("pk").values_list("pk", flat=True))
    )

    rebuilt = 0
    written = 0
    for pk in resource_ids:
        try:
            written += catalog.rebuild_booked_ranges(pk, store.active_ranges(pk))
            rebuilt += 1
        except AdmissionError as e:
            logger.error(f"Error rebuilding booked ranges for resource {pk}: {e}", exc_info=True)

    logger.info(f"Rebuilt booked ranges for {rebuilt} resources ({written} entries)")
    return {"resources": rebuilt, "ranges": written}
