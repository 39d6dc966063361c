"""Persistence for bookings.

The only place that reads or writes ``Booking`` rows on behalf of the
admission service. Database failures are translated into admission errors:
``IntegrityError`` means another writer got there first (``Conflict``), any
other ``DatabaseError`` is ``Internal``.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Iterable, Iterator, List, Tuple

from django.core.exceptions import ValidationError  # type: ignore
from django.db import DatabaseError, IntegrityError  # type: ignore
from django.db.models import Q, QuerySet  # type: ignore

from apps.catalog.services import lock_queryset_if_possible
from shared.domain.value_objects import TimeRange

from .domain.errors import Conflict, Internal, NotFound, ValidationFailed
from .domain.lifecycle import ACTIVE_STATUSES, BookingStatus
from .domain.windows import Slot
from .models import Booking

ACTIVE = Q(status__in=ACTIVE_STATUSES)


def _first_message(error: ValidationError) -> str:
    if hasattr(error, "message_dict"):
        for field, messages in error.message_dict.items():
            if messages:
                prefix = "" if field == "__all__" else f"{field}: "
                return f"{prefix}{messages[0]}"
    return error.messages[0] if error.messages else "Invalid booking."


@contextmanager
def translate_db_errors() -> Iterator[None]:
    try:
        yield
    except IntegrityError as exc:
        raise Conflict("The booking collided with a concurrent write, please retry.") from exc
    except DatabaseError as exc:
        raise Internal(f"Booking store error: {exc}") from exc


class BookingStore:
    """Durable booking collection with the overlap queries admission needs."""

    def base_queryset(self) -> QuerySet:
        return Booking.objects.select_related("resource", "resource__service")

    def insert(self, booking: Booking) -> Booking:
        """Persist a new booking, rejecting (never coercing) invalid rows."""

        if not booking.booking_code:
            booking.booking_code = Booking.generate_booking_code()
        try:
            booking.full_clean(validate_unique=False, validate_constraints=False)
        except ValidationError as exc:
            raise ValidationFailed(_first_message(exc)) from exc
        with translate_db_errors():
            booking.save(force_insert=True)
        return booking

    def get(self, booking_id: int, *, for_update: bool = False) -> Booking:
        queryset = self.base_queryset()
        if for_update:
            queryset = lock_queryset_if_possible(queryset)
        with translate_db_errors():
            try:
                return queryset.get(pk=booking_id)
            except Booking.DoesNotExist:
                raise NotFound(f"Booking {booking_id} not found.")

    def overlapping(
        self,
        resource_id: int,
        window: TimeRange,
        *,
        exclude_id: int | None = None,
    ) -> QuerySet:
        """Non-cancelled bookings of the resource with start < window.end and end > window.start."""

        queryset = Booking.objects.filter(ACTIVE, resource_id=resource_id).filter(
            start_at__lt=window.end,
            end_at__gt=window.start,
        )
        if exclude_id is not None:
            queryset = queryset.exclude(pk=exclude_id)
        return queryset

    def has_overlap(self, resource_id: int, window: TimeRange, *, exclude_id: int | None = None) -> bool:
        with translate_db_errors():
            return self.overlapping(resource_id, window, exclude_id=exclude_id).exists()

    def slot_taken(self, resource_id: int, slot: Slot, *, exclude_id: int | None = None) -> bool:
        queryset = Booking.objects.filter(
            ACTIVE,
            resource_id=resource_id,
            slot_date=slot.day,
            slot_time=slot.label,
        )
        if exclude_id is not None:
            queryset = queryset.exclude(pk=exclude_id)
        with translate_db_errors():
            return queryset.exists()

    def transition(
        self,
        booking_id: int,
        *,
        from_statuses: Iterable[str],
        from_payment_statuses: Iterable[str] | None = None,
        **changes,
    ) -> bool:
        """Atomic compare-and-set on a single row.

        Applies ``changes`` only if the booking is still in one of
        ``from_statuses`` (and ``from_payment_statuses`` when given). Returns
        whether the row was updated.
        """

        queryset = Booking.objects.filter(pk=booking_id, status__in=list(from_statuses))
        if from_payment_statuses is not None:
            queryset = queryset.filter(payment_status__in=list(from_payment_statuses))
        # update() bypasses auto_now
        changes.setdefault("updated_at", datetime.now())
        with translate_db_errors():
            return queryset.update(**changes) == 1

    def for_resource(self, resource_id: int) -> QuerySet:
        return self.base_queryset().filter(resource_id=resource_id).order_by("-created_at", "-id")

    def for_user(self, user_id: int) -> QuerySet:
        return self.base_queryset().filter(user_id=user_id).order_by("-created_at", "-id")

    def for_guest_token_hash(self, token_hash: str) -> QuerySet:
        return (
            self.base_queryset()
            .filter(user__isnull=True, guest_token_hash=token_hash)
            .order_by("-created_at", "-id")
        )

    def by_transaction_id(self, transaction_id: str) -> Booking:
        if not transaction_id:
            raise NotFound("Transaction id is required.")
        with translate_db_errors():
            booking = self.base_queryset().filter(transaction_id=transaction_id).first()
        if booking is None:
            raise NotFound(f"No booking for transaction {transaction_id!r}.")
        return booking

    def active_ranges(self, resource_id: int) -> List[Tuple[int, TimeRange]]:
        rows = (
            Booking.objects.filter(ACTIVE, resource_id=resource_id)
            .order_by("start_at")
            .values_list("pk", "start_at", "end_at")
        )
        with translate_db_errors():
            return [(pk, TimeRange(start_at, end_at)) for pk, start_at, end_at in rows]

    def finished_confirmed_ids(self, now: datetime) -> List[int]:
        queryset = Booking.objects.filter(
            status=BookingStatus.CONFIRMED.value,
            end_at__lte=now,
        ).values_list("pk", flat=True)
        with translate_db_errors():
            return list(queryset)
