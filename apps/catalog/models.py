"""Catalog models for HostBook.

A host lists a service (restaurant, hotel, home stay, ...) and exposes one or
more bookable resources under it. A resource is reserved either as a
continuous range (rooms) or as fixed-length slots (tables, appointments),
optionally within weekly opening hours.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError  # type: ignore
from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.db.models import F, Q  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.value_objects import Money

from . import domain


class Service(models.Model):
    """A host's listing that groups bookable resources."""

    class Kind(models.TextChoices):
        RESTAURANT = "restaurant", _("Restaurant")
        HOTEL = "hotel", _("Hotel")
        LODGE = "lodge", _("Lodge")
        HOME_STAY = "home_stay", _("Home stay")
        LUXURY_VILLA = "luxury_villa", _("Luxury villa")
        OTHER = "other", _("Other")

    host = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="services",
    )
    name = models.CharField(max_length=255)
    kind = models.CharField(max_length=20, choices=Kind.choices, default=Kind.OTHER)
    description = models.TextField(blank=True)
    address_line = models.CharField(max_length=255, blank=True)
    is_available = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Service")
        verbose_name_plural = _("Services")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["host", "is_available"], name="catalog_ser_host_id_5c1a8e_idx"),
        ]

    def __str__(self) -> str:
        return self.name


class Resource(models.Model):
    """A bookable unit of a service: a room, a table or a generic service."""

    class Kind(models.TextChoices):
        ROOM = "room", _("Room")
        TABLE = "table", _("Table")
        SERVICE = "service", _("Service")

    class BookingMode(models.TextChoices):
        RANGE = domain.BookingMode.RANGE.value, _("Date/time range")
        SLOT = domain.BookingMode.SLOT.value, _("Fixed time slot")

    class PricingUnit(models.TextChoices):
        NIGHT = domain.PricingUnit.NIGHT.value, _("Per night")
        HOUR = domain.PricingUnit.HOUR.value, _("Per hour")
        GUEST = domain.PricingUnit.GUEST.value, _("Per guest")
        BOOKING = domain.PricingUnit.BOOKING.value, _("Per booking")

    service = models.ForeignKey(
        Service,
        on_delete=models.CASCADE,
        related_name="resources",
    )
    name = models.CharField(max_length=255)
    kind = models.CharField(max_length=20, choices=Kind.choices, default=Kind.ROOM)
    booking_mode = models.CharField(
        max_length=10,
        choices=BookingMode.choices,
        default=BookingMode.RANGE,
    )
    capacity = models.PositiveIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1)],
        help_text=_("Flat capacity. Ignored when adults/children are set."),
    )
    capacity_adults = models.PositiveIntegerField(null=True, blank=True)
    capacity_children = models.PositiveIntegerField(null=True, blank=True)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    pricing_unit = models.CharField(
        max_length=10,
        choices=PricingUnit.choices,
        default=PricingUnit.BOOKING,
    )
    currency = models.CharField(max_length=3, default=settings.BOOKING_DEFAULT_CURRENCY)
    slot_minutes = models.PositiveIntegerField(
        default=120,
        validators=[MinValueValidator(1)],
        help_text=_("Length of one slot for slot-mode resources."),
    )
    is_available = models.BooleanField(default=True)
    booked_ranges = models.JSONField(
        default=list,
        blank=True,
        help_text=_("Derived cache of active bookings; rebuilt from the bookings table."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Resource")
        verbose_name_plural = _("Resources")
        ordering = ["service", "name"]
        indexes = [
            models.Index(fields=["service", "is_available"], name="catalog_res_service_3f9b2d_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.service.name}: {self.name}"

    def clean(self) -> None:
        super().clean()
        if self.capacity is None and self.capacity_adults is None and self.capacity_children is None:
            raise ValidationError(_("Set either a flat capacity or adults/children capacity."))

    @property
    def is_bookable(self) -> bool:
        return self.is_available and self.service.is_available

    def capacity_spec(self) -> domain.CapacitySpec:
        return domain.CapacitySpec(
            flat=self.capacity,
            adults=self.capacity_adults,
            children=self.capacity_children,
        )

    def schedule(self) -> domain.WeeklySchedule | None:
        rows = [
            (window.weekday, window.opens_at, window.closes_at)
            for window in self.opening_windows.all()
        ]
        if not rows:
            return None
        return domain.WeeklySchedule.from_rows(rows)

    def profile(self) -> domain.ResourceProfile:
        """Snapshot of everything booking admission checks against."""
        return domain.ResourceProfile(
            resource_id=self.pk,
            host_id=self.service.host_id,
            capacity=self.capacity_spec(),
            price=Money(self.price, self.currency),
            pricing_unit=domain.PricingUnit(self.pricing_unit),
            booking_mode=domain.BookingMode(self.booking_mode),
            slot_length=timedelta(minutes=self.slot_minutes),
            schedule=self.schedule(),
            is_available=self.is_bookable,
        )


class OpeningWindow(models.Model):
    """Opening hours of a resource on one weekday. Several per day are allowed."""

    class Weekday(models.TextChoices):
        MONDAY = "monday", _("Monday")
        TUESDAY = "tuesday", _("Tuesday")
        WEDNESDAY = "wednesday", _("Wednesday")
        THURSDAY = "thursday", _("Thursday")
        FRIDAY = "friday", _("Friday")
        SATURDAY = "saturday", _("Saturday")
        SUNDAY = "sunday", _("Sunday")

    resource = models.ForeignKey(
        Resource,
        on_delete=models.CASCADE,
        related_name="opening_windows",
    )
    weekday = models.CharField(max_length=10, choices=Weekday.choices)
    opens_at = models.TimeField()
    closes_at = models.TimeField()

    class Meta:
        verbose_name = _("Opening window")
        verbose_name_plural = _("Opening windows")
        ordering = ["resource", "weekday", "opens_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(closes_at__gt=F("opens_at")),
                name="opening_window_closes_after_opens",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.get_weekday_display()} {self.opens_at:%H:%M}-{self.closes_at:%H:%M}"

    def clean(self) -> None:
        super().clean()
        if self.opens_at and self.closes_at and self.closes_at <= self.opens_at:
            raise ValidationError(_("Closing time must be after opening time."))
