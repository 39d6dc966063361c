"""Tests for the periodic booking tasks."""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from apps.bookings.models import Booking
from apps.bookings.tasks import complete_finished_bookings, rebuild_booked_ranges

from .factories import make_host, make_resource, make_user

pytestmark = pytest.mark.django_db


def make_booking(resource, user, start: datetime, hours: int = 2, **fields) -> Booking:
    values = {
        "resource": resource,
        "user": user,
        "start_at": start,
        "end_at": start + timedelta(hours=hours),
        "party_size": 1,
        "total_price": Decimal("50.00"),
    }
    values.update(fields)
    return Booking.objects.create(**values)


@pytest.fixture
def resource():
    return make_resource(make_host())


@pytest.fixture
def traveler():
    return make_user("traveler@example.com")


def test_finished_confirmed_bookings_are_completed(resource, traveler):
    past = datetime.now() - timedelta(days=2)
    finished = make_booking(resource, traveler, past, status=Booking.Status.CONFIRMED)
    unpaid = make_booking(resource, traveler, past + timedelta(hours=3), status=Booking.Status.PENDING)
    upcoming = make_booking(
        resource, traveler, datetime.now() + timedelta(days=2), status=Booking.Status.CONFIRMED
    )

    result = complete_finished_bookings.delay().get()

    assert result == {"completed": 1}
    finished.refresh_from_db()
    unpaid.refresh_from_db()
    upcoming.refresh_from_db()
    assert finished.status == Booking.Status.COMPLETED
    assert unpaid.status == Booking.Status.PENDING
    assert upcoming.status == Booking.Status.CONFIRMED


def test_completing_twice_is_a_no_op(resource, traveler):
    make_booking(resource, traveler, datetime.now() - timedelta(days=1), status=Booking.Status.CONFIRMED)

    assert complete_finished_bookings() == {"completed": 1}
    assert complete_finished_bookings() == {"completed": 0}


def test_rebuild_booked_ranges_drops_stale_entries(resource, traveler):
    start = datetime(2030, 1, 7, 10, 0)
    kept = make_booking(resource, traveler, start)
    make_booking(resource, traveler, start + timedelta(hours=3), status=Booking.Status.CANCELLED)
    resource.booked_ranges = [{"booking": 9999, "start": "2030-01-01T00:00:00", "end": "2030-01-02T00:00:00"}]
    resource.save(update_fields=["booked_ranges"])

    result = rebuild_booked_ranges(resource.pk)

    assert result == {"resources": 1, "ranges": 1}
    resource.refresh_from_db()
    assert resource.booked_ranges == [
        {"booking": kept.pk, "start": "2030-01-07T10:00:00", "end": "2030-01-07T12:00:00"}
    ]


def test_rebuild_all_resources(resource, traveler):
    other = make_resource(resource.service.host, service_name="Harbour Cafe")
    make_booking(resource, traveler, datetime(2030, 1, 7, 10, 0))
    make_booking(other, traveler, datetime(2030, 1, 7, 10, 0))

    result = rebuild_booked_ranges()

    assert result == {"resources": 2, "ranges": 2}
