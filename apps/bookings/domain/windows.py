"""
Booking Shapes

A booking reserves either a continuous range (``TimeRange``) or a slot: a
calendar date plus a time label whose length is fixed by the resource.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Union

from django.utils import timezone

from shared.domain.base import ValueObject
from shared.domain.value_objects import TimeRange

from .errors import ValidationFailed


@dataclass(frozen=True)
class Slot(ValueObject):
    """Date + HH:MM label, e.g. a restaurant table at 19:30"""
    day: date
    label: time

    @property
    def start(self) -> datetime:
        return datetime.combine(self.day, self.label)

    def to_range(self, length: timedelta) -> TimeRange:
        return TimeRange(self.start, self.start + length)

    def __str__(self):
        return f"{self.day:%Y-%m-%d} {self.label:%H:%M}"


BookingShape = Union[TimeRange, Slot]


def wall_clock(value: datetime) -> datetime:
    """Aware datetimes are converted to the server's local wall clock"""
    if timezone.is_aware(value):
        return timezone.make_naive(value)
    return value


def requested_shape(
    start: datetime | None = None,
    end: datetime | None = None,
    slot_date: date | None = None,
    slot_time: time | None = None,
) -> BookingShape:
    """
    Build the requested shape from raw request values

    Exactly one of (start, end) or (slot_date, slot_time) must be given,
    complete. Raises ValidationFailed otherwise.
    """
    has_range = start is not None or end is not None
    has_slot = slot_date is not None or slot_time is not None

    if has_range and has_slot:
        raise ValidationFailed('Provide either start/end or slot date/time, not both.')

    if has_slot:
        if slot_date is None or slot_time is None:
            raise ValidationFailed('Slot bookings need both a date and a time label.')
        if not isinstance(slot_date, date) or isinstance(slot_date, datetime):
            raise ValidationFailed('Slot date must be a calendar date.')
        if not isinstance(slot_time, time):
            raise ValidationFailed('Slot time must be a time of day.')
        return Slot(slot_date, slot_time.replace(second=0, microsecond=0, tzinfo=None))

    if start is None or end is None:
        raise ValidationFailed('Both start and end are required.')
    if not isinstance(start, datetime) or not isinstance(end, datetime):
        raise ValidationFailed('Start and end must be valid instants.')
    try:
        return TimeRange(wall_clock(start), wall_clock(end))
    except ValueError:
        raise ValidationFailed('End must be after start.')
