"""FilterSet definitions for booking listings."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import Booking


class BookingFilterSet(django_filters.FilterSet):
    """Filters shared by the requester's and the host's booking lists."""

    status = django_filters.ChoiceFilter(choices=Booking.Status.choices)
    payment_status = django_filters.ChoiceFilter(choices=Booking.PaymentStatus.choices)
    resource = django_filters.NumberFilter(field_name="resource_id", lookup_expr="exact")
    start_from = django_filters.IsoDateTimeFilter(field_name="start_at", lookup_expr="gte")
    start_to = django_filters.IsoDateTimeFilter(field_name="start_at", lookup_expr="lt")
    slot_date = django_filters.DateFilter(field_name="slot_date")

    class Meta:
        model = Booking
        fields = [
            "status",
            "payment_status",
            "resource",
            "slot_date",
        ]
