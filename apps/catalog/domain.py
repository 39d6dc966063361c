"""
Catalog Domain

Pure constraint evaluation for bookable resources:
- CapacitySpec: flat or adult/child capacity
- OpeningWindow / WeeklySchedule: per-weekday wall-clock opening hours
- ResourceProfile: read-only view of a resource the admission service consults

Nothing here touches the database. Times are naive wall-clock values in the
resource's local terms.
"""

import math
from dataclasses import dataclass, field
from datetime import date, time, timedelta
from enum import Enum
from typing import Dict, Iterable, Tuple

from shared.domain.base import ValueObject
from shared.domain.value_objects import Money, TimeRange

WEEKDAYS = (
    'monday',
    'tuesday',
    'wednesday',
    'thursday',
    'friday',
    'saturday',
    'sunday',
)


def weekday_name(day: date) -> str:
    return WEEKDAYS[day.weekday()]


class BookingMode(Enum):
    """How a resource is reserved"""
    RANGE = 'range'     # continuous [start, end)
    SLOT = 'slot'       # date + fixed-length time label


class PricingUnit(Enum):
    NIGHT = 'night'
    HOUR = 'hour'
    GUEST = 'guest'
    BOOKING = 'booking'


@dataclass(frozen=True)
class CapacitySpec(ValueObject):
    """
    Capacity of a resource

    Either a flat number or a structured adults + children split.
    The structured form wins when both are present.
    """
    flat: int | None = None
    adults: int | None = None
    children: int | None = None

    @property
    def is_structured(self) -> bool:
        return self.adults is not None or self.children is not None

    @property
    def limit(self) -> int | None:
        if self.is_structured:
            return (self.adults or 0) + (self.children or 0)
        return self.flat

    def accepts(self, party_size: int) -> bool:
        limit = self.limit
        return limit is None or party_size <= limit


@dataclass(frozen=True)
class OpeningWindow(ValueObject):
    """One open/close pair on a weekday (HH:MM, 24h)"""
    opens_at: time
    closes_at: time

    def __post_init__(self):
        if self.closes_at <= self.opens_at:
            raise ValueError(
                f"Closing time ({self.closes_at:%H:%M}) must be after opening time ({self.opens_at:%H:%M})"
            )

    def covers(self, start: time, end: time) -> bool:
        """The whole of [start, end) lies inside the window; end may equal closing time"""
        return self.opens_at <= start and end <= self.closes_at

    def admits_label(self, label: time) -> bool:
        return self.opens_at <= label <= self.closes_at

    def __str__(self):
        return f"{self.opens_at:%H:%M}-{self.closes_at:%H:%M}"


@dataclass(frozen=True)
class WeeklySchedule(ValueObject):
    """
    Sparse weekly opening hours

    A weekday missing from the mapping is closed. A resource without any
    schedule at all is always open; that case is modelled as
    ``ResourceProfile.schedule is None``, never as an empty schedule.
    """
    windows: Dict[str, Tuple[OpeningWindow, ...]] = field(default_factory=dict, hash=False)

    @classmethod
    def from_rows(cls, rows: Iterable[Tuple[str, time, time]]) -> 'WeeklySchedule':
        days: Dict[str, list] = {}
        for weekday, opens_at, closes_at in rows:
            if weekday not in WEEKDAYS:
                raise ValueError(f"Unknown weekday: {weekday}")
            days.setdefault(weekday, []).append(OpeningWindow(opens_at, closes_at))
        return cls({
            day: tuple(sorted(items, key=lambda w: w.opens_at))
            for day, items in days.items()
        })

    def windows_on(self, day: date) -> Tuple[OpeningWindow, ...]:
        return self.windows.get(weekday_name(day), ())

    def is_open_on(self, day: date) -> bool:
        return bool(self.windows_on(day))

    def admits_range(self, requested: TimeRange) -> bool:
        """A range is admitted if one window on the start's weekday contains it entirely"""
        if not requested.spans_single_day or not self.is_open_on(requested.start.date()):
            return False
        start, end = requested.start.time(), requested.end.time()
        return any(window.covers(start, end) for window in self.windows_on(requested.start.date()))

    def admits_slot(self, day: date, label: time) -> bool:
        if not self.is_open_on(day):
            return False
        return any(window.admits_label(label) for window in self.windows_on(day))


@dataclass(frozen=True)
class ResourceProfile(ValueObject):
    """
    Everything the admission service needs to know about a resource

    Built from the catalog models by ``Resource.profile()``.
    """
    resource_id: int
    host_id: int
    capacity: CapacitySpec
    price: Money
    pricing_unit: PricingUnit = PricingUnit.BOOKING
    booking_mode: BookingMode = BookingMode.RANGE
    slot_length: timedelta = timedelta(hours=2)
    schedule: WeeklySchedule | None = None
    is_available: bool = True

    @property
    def declares_hours(self) -> bool:
        return self.schedule is not None

    @property
    def capacity_limit(self) -> int | None:
        return self.capacity.limit

    def accepts_party(self, party_size: int) -> bool:
        return self.capacity.accepts(party_size)

    def admits_range(self, requested: TimeRange) -> bool:
        if self.schedule is None:
            return True
        return self.schedule.admits_range(requested)

    def admits_slot(self, day: date, label: time) -> bool:
        if self.schedule is None:
            return True
        return self.schedule.admits_slot(day, label)

    def quote(self, requested: TimeRange, party_size: int) -> Money:
        """Total price for a booking of this resource"""
        if self.pricing_unit is PricingUnit.NIGHT:
            units = math.ceil(requested.duration / timedelta(days=1))
        elif self.pricing_unit is PricingUnit.HOUR:
            units = math.ceil(requested.duration / timedelta(hours=1))
        elif self.pricing_unit is PricingUnit.GUEST:
            units = party_size
        else:
            units = 1
        return (self.price * units).quantized()
