"""Booking domain models for HostBook."""

from __future__ import annotations

import secrets
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError  # type: ignore
from django.core.validators import MaxLengthValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.db.models import F, Q  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.value_objects import TimeRange

from .domain import lifecycle
from .domain.requester import guest_token_matches
from .domain.windows import Slot

SPECIAL_REQUESTS_MAX_LENGTH = 500


class Booking(models.Model):
    """Reservation of one resource for a time range or a date + slot."""

    class Status(models.TextChoices):
        PENDING = lifecycle.BookingStatus.PENDING.value, _("Pending")
        CONFIRMED = lifecycle.BookingStatus.CONFIRMED.value, _("Confirmed")
        CANCELLED = lifecycle.BookingStatus.CANCELLED.value, _("Cancelled")
        COMPLETED = lifecycle.BookingStatus.COMPLETED.value, _("Completed")

    class PaymentStatus(models.TextChoices):
        PENDING = lifecycle.PaymentStatus.PENDING.value, _("Awaiting payment")
        PAID = lifecycle.PaymentStatus.PAID.value, _("Paid")
        FAILED = lifecycle.PaymentStatus.FAILED.value, _("Payment failed")
        REFUNDED = lifecycle.PaymentStatus.REFUNDED.value, _("Refunded")

    class PaymentMethod(models.TextChoices):
        STRIPE = "stripe", _("Stripe")
        PAYPAL = "paypal", _("PayPal")
        RAZORPAY = "razorpay", _("Razorpay")
        ESEWA = "esewa", _("eSewa")
        CREDIT_CARD = "credit_card", _("Credit card")

    class Source(models.TextChoices):
        WEB = "web", _("Web")
        MOBILE = "mobile", _("Mobile app")
        AGENT = "agent", _("Agent")
        WALK_IN = "walk-in", _("Walk-in")

    resource = models.ForeignKey(
        "catalog.Resource",
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="bookings",
    )
    guest_name = models.CharField(max_length=100, blank=True)
    guest_email = models.EmailField(blank=True)
    guest_phone = models.CharField(max_length=20, blank=True)
    guest_token_hash = models.CharField(
        max_length=64,
        blank=True,
        editable=False,
        db_index=True,
        help_text=_("SHA-256 digest of the guest's possession token."),
    )
    booking_code = models.CharField(max_length=12, unique=True, editable=False)
    source = models.CharField(max_length=20, choices=Source.choices, default=Source.WEB)
    start_at = models.DateTimeField()
    end_at = models.DateTimeField()
    slot_date = models.DateField(null=True, blank=True)
    slot_time = models.TimeField(null=True, blank=True)
    party_size = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    total_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default=settings.BOOKING_DEFAULT_CURRENCY)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices, blank=True)
    transaction_id = models.CharField(max_length=128, blank=True, db_index=True)
    special_requests = models.TextField(
        blank=True,
        validators=[MaxLengthValidator(SPECIAL_REQUESTS_MAX_LENGTH)],
    )
    cancellation_reason = models.CharField(max_length=255, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at", "-id"]
        constraints = [
            models.CheckConstraint(
                condition=Q(end_at__gt=F("start_at")),
                name="booking_end_after_start",
            ),
            models.CheckConstraint(
                condition=Q(party_size__gte=1),
                name="booking_party_size_positive",
            ),
            models.CheckConstraint(
                condition=(
                    (Q(user__isnull=False) & Q(guest_email=""))
                    | (Q(user__isnull=True) & ~Q(guest_email=""))
                ),
                name="booking_single_requester",
            ),
            models.CheckConstraint(
                condition=(
                    (Q(slot_date__isnull=True) & Q(slot_time__isnull=True))
                    | (Q(slot_date__isnull=False) & Q(slot_time__isnull=False))
                ),
                name="booking_slot_complete",
            ),
            models.UniqueConstraint(
                fields=["resource", "slot_date", "slot_time"],
                condition=Q(slot_date__isnull=False) & ~Q(status=lifecycle.BookingStatus.CANCELLED.value),
                name="booking_unique_active_slot",
            ),
        ]
        indexes = [
            models.Index(fields=["resource", "start_at", "end_at"], name="booking_resource_range_idx"),
            models.Index(fields=["status"], name="booking_status_idx"),
            models.Index(fields=["user", "status"], name="booking_user_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking #{self.booking_code} for {self.resource_id}"

    def clean(self) -> None:
        errors = {}
        if self.start_at and self.end_at and self.end_at <= self.start_at:
            errors["end_at"] = _("End must be after start.")
        if bool(self.user_id) == bool(self.guest_email):
            errors["user"] = _("A booking belongs either to a user or to a guest, never both.")
        if (self.slot_date is None) != (self.slot_time is None):
            errors["slot_time"] = _("Slot bookings need both a date and a time label.")
        if errors:
            raise ValidationError(errors)

    def save(self, *args, **kwargs):  # type: ignore
        if self._state.adding and not self.booking_code:
            self.booking_code = self.generate_booking_code()
        super().save(*args, **kwargs)

    @staticmethod
    def generate_booking_code() -> str:
        return secrets.token_hex(4).upper()

    @property
    def is_guest_booking(self) -> bool:
        return self.user_id is None

    @property
    def is_slot(self) -> bool:
        return self.slot_date is not None

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(self.start_at, self.end_at)

    @property
    def slot(self) -> Slot | None:
        if not self.is_slot:
            return None
        return Slot(self.slot_date, self.slot_time)

    def matches_guest_token(self, token: str | None) -> bool:
        return guest_token_matches(token, self.guest_token_hash)


class BookingEvent(models.Model):
    """Append-only audit trail of booking domain events."""

    booking = models.ForeignKey(
        Booking,
        on_delete=models.PROTECT,
        related_name="events",
    )
    event_id = models.UUIDField(unique=True, editable=False)
    event_type = models.CharField(max_length=64)
    payload = models.JSONField(default=dict, blank=True)
    occurred_at = models.DateTimeField()
    recorded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Booking event")
        verbose_name_plural = _("Booking events")
        ordering = ["occurred_at", "id"]
        indexes = [
            models.Index(fields=["booking", "occurred_at"], name="booking_event_booking_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.event_type} for booking {self.booking_id}"
