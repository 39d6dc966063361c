"""Catalog services used by the booking core."""

from __future__ import annotations

from typing import Iterable

from django.db import transaction  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore

from shared.domain.value_objects import TimeRange

from .domain import ResourceProfile
from .models import Resource


def lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update(of=("self",))
    except NotSupportedError:
        return queryset


def load_resource(resource_id: int, *, for_update: bool = False) -> Resource:
    """Fetch a resource with its service and opening hours.

    Raises ``Resource.DoesNotExist`` for unknown ids.
    """

    queryset = Resource.objects.select_related("service").prefetch_related("opening_windows")
    if for_update:
        queryset = lock_queryset_if_possible(queryset)
    return queryset.get(pk=resource_id)


def load_profile(resource_id: int, *, for_update: bool = False) -> ResourceProfile:
    return load_resource(resource_id, for_update=for_update).profile()


def _serialize_range(booking_id: int, window: TimeRange) -> dict:
    return {
        "booking": booking_id,
        "start": window.start.isoformat(),
        "end": window.end.isoformat(),
    }


def record_booked_range(resource_id: int, booking_id: int, window: TimeRange) -> None:
    """Add or replace a booking's entry in the resource's booked-range cache.

    Must run in the same transaction as the booking write.
    """

    resource = lock_queryset_if_possible(Resource.objects.filter(pk=resource_id)).get()
    entries = [entry for entry in resource.booked_ranges if entry.get("booking") != booking_id]
    entries.append(_serialize_range(booking_id, window))
    entries.sort(key=lambda entry: entry["start"])
    resource.booked_ranges = entries
    resource.save(update_fields=["booked_ranges", "updated_at"])


def drop_booked_range(resource_id: int, booking_id: int) -> None:
    resource = lock_queryset_if_possible(Resource.objects.filter(pk=resource_id)).get()
    entries = [entry for entry in resource.booked_ranges if entry.get("booking") != booking_id]
    if len(entries) != len(resource.booked_ranges):
        resource.booked_ranges = entries
        resource.save(update_fields=["booked_ranges", "updated_at"])


def rebuild_booked_ranges(resource_id: int, active: Iterable[tuple[int, TimeRange]]) -> int:
    """Overwrite the cache from authoritative (booking id, range) pairs.

    Returns the number of entries written.
    """

    entries = sorted(
        (_serialize_range(booking_id, window) for booking_id, window in active),
        key=lambda entry: entry["start"],
    )
    Resource.objects.filter(pk=resource_id).update(booked_ranges=entries)
    return len(entries)
