"""
Interval Admission Service

Use cases for reserving resources:
- request_booking: admit and persist a new booking
- update_booking: move a booking / change its party size, re-checked like a new one
- cancel_booking: soft-cancel by the owner
- get_booking, list_bookings_for_resource, list_bookings_for_requester

Admission of a booking for a resource runs in a critical section scoped to
that resource:

    process lock (resource id) ──► transaction.atomic()
        ──► SELECT ... FOR UPDATE on the resource row
        ──► capacity / hours / overlap checks
        ──► insert (partial unique index backs up slot bookings)
    commit ──► domain events published ──► lock released

All failures are typed ``AdmissionError`` subclasses. Nothing here logs.
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Callable

from django.db.models import QuerySet

from apps.catalog import services as catalog
from apps.catalog.domain import BookingMode, ResourceProfile
from apps.catalog.models import Resource
from shared.application.uow import DjangoUnitOfWork
from shared.domain.value_objects import TimeRange

from apps.bookings.domain.errors import (
    AlreadyCancelled,
    CapacityExceeded,
    Conflict,
    Forbidden,
    NotFound,
    OutsideOperatingHours,
    SlotUnavailable,
    ValidationFailed,
)
from apps.bookings.domain.events import BookingCancelled, BookingRequested, BookingRescheduled
from apps.bookings.domain.lifecycle import CHANGEABLE_STATUSES
from apps.bookings.domain.requester import (
    RequesterIdentity,
    hash_guest_token,
    issue_guest_token,
)
from apps.bookings.domain.windows import BookingShape, Slot, requested_shape, wall_clock
from apps.bookings.locks import ResourceLockRegistry, resource_locks
from apps.bookings.models import Booking
from apps.bookings.store import BookingStore, translate_db_errors


@dataclass(frozen=True)
class BookingMetadata:
    """Descriptive booking details that play no part in admission"""
    payment_method: str = ''
    special_requests: str = ''
    source: str = Booking.Source.WEB


def _validate_party_size(party_size) -> int:
    if isinstance(party_size, bool) or not isinstance(party_size, int) or party_size < 1:
        raise ValidationFailed('Party size must be a positive integer.')
    return party_size


def _requester_fields(requester: RequesterIdentity) -> dict:
    """Exactly one of user identity / guest contact"""
    if requester.is_user and requester.guest is not None:
        raise ValidationFailed('A booking is made either by a signed-in user or by a guest, not both.')
    if requester.is_user:
        return {'user_id': requester.user_id}
    if requester.guest is not None:
        return {
            'guest_name': requester.guest.name,
            'guest_email': requester.guest.email,
            'guest_phone': requester.guest.phone,
        }
    raise ValidationFailed('Sign in or provide guest contact details (name and email).')


def is_owner(booking: Booking, requester: RequesterIdentity) -> bool:
    """
    Users own their bookings; guests own a booking by presenting its token

    A user never owns a guest booking and a guest never owns a user booking.
    """
    if not booking.is_guest_booking:
        return requester.is_user and requester.user_id == booking.user_id
    if requester.is_user:
        return False
    return booking.matches_guest_token(requester.guest_token)


def is_host(booking: Booking, requester: RequesterIdentity) -> bool:
    return requester.is_user and booking.resource.service.host_id == requester.user_id


class AdmissionService:
    """
    Decides and records reservations of catalog resources

    ``clock`` returns the current wall-clock time; ``locks`` is the
    per-resource lock registry. Both are injectable for tests.
    """

    def __init__(
        self,
        store: BookingStore | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
        locks: ResourceLockRegistry | None = None,
    ):
        self.store = store or BookingStore()
        self._clock = clock or datetime.now
        self._locks = locks or resource_locks

    def now(self) -> datetime:
        return wall_clock(self._clock())

    # ----- commands -----

    def request_booking(
        self,
        resource_id: int,
        requester: RequesterIdentity,
        *,
        party_size: int,
        start: datetime | None = None,
        end: datetime | None = None,
        slot_date: date | None = None,
        slot_time: time | None = None,
        metadata: BookingMetadata | None = None,
    ) -> Booking:
        """
        Admit and persist a new booking (status pending, payment pending)

        For guest bookings the returned instance carries the plain possession
        token in ``guest_token``; only its digest is stored.
        """
        metadata = metadata or BookingMetadata()
        shape = requested_shape(start, end, slot_date, slot_time)
        _validate_party_size(party_size)
        owner_fields = _requester_fields(requester)
        now = self.now()
        self._ensure_not_past(shape, now)

        guest_token = issue_guest_token() if requester.guest is not None else None

        with self._locks.hold(resource_id):
            with DjangoUnitOfWork() as uow:
                profile = self._load_profile(resource_id)
                window = self._admit(profile, shape, party_size)
                self._ensure_free(profile.resource_id, shape, window)

                price = profile.quote(window, party_size)
                booking = Booking(
                    resource_id=profile.resource_id,
                    start_at=window.start,
                    end_at=window.end,
                    slot_date=shape.day if isinstance(shape, Slot) else None,
                    slot_time=shape.label if isinstance(shape, Slot) else None,
                    party_size=party_size,
                    total_price=price.amount,
                    currency=price.currency,
                    status=Booking.Status.PENDING,
                    payment_status=Booking.PaymentStatus.PENDING,
                    payment_method=metadata.payment_method,
                    special_requests=metadata.special_requests,
                    source=metadata.source,
                    guest_token_hash=hash_guest_token(guest_token) if guest_token else '',
                    **owner_fields,
                )
                booking = self.store.insert(booking)
                catalog.record_booked_range(profile.resource_id, booking.pk, window)

                uow.record(BookingRequested(
                    aggregate_id=booking.pk,
                    occurred_at=now,
                    resource_id=profile.resource_id,
                    start_at=window.start,
                    end_at=window.end,
                    party_size=party_size,
                    total_price=price.amount,
                    currency=price.currency,
                    guest_booking=guest_token is not None,
                ))

        booking.guest_token = guest_token
        return booking

    def update_booking(
        self,
        booking_id: int,
        requester: RequesterIdentity,
        *,
        party_size: int | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        slot_date: date | None = None,
        slot_time: time | None = None,
    ) -> Booking:
        """
        Reschedule a booking and/or change its party size

        The new state goes through the same capacity, hours and overlap
        checks as a new request, ignoring the booking itself. Fields left as
        None keep their current value.
        """
        current = self.store.get(booking_id)
        self._ensure_owner(current, requester)

        moves_range = start is not None or end is not None
        moves_slot = slot_date is not None or slot_time is not None
        if moves_range or moves_slot:
            # a half-given shape of the booking's own kind is completed from the booking
            if moves_range and not moves_slot and not current.is_slot:
                start = current.start_at if start is None else start
                end = current.end_at if end is None else end
            if moves_slot and not moves_range and current.is_slot:
                slot_date = current.slot_date if slot_date is None else slot_date
                slot_time = current.slot_time if slot_time is None else slot_time
            shape = requested_shape(start, end, slot_date, slot_time)
        else:
            shape = current.slot or current.time_range
        party_size = _validate_party_size(current.party_size if party_size is None else party_size)
        now = self.now()

        with self._locks.hold(current.resource_id):
            with DjangoUnitOfWork() as uow:
                booking = self.store.get(booking_id, for_update=True)
                self._ensure_changeable(booking)
                self._ensure_not_past(shape, now)

                profile = self._load_profile(booking.resource_id)
                window = self._admit(profile, shape, party_size)
                self._ensure_free(profile.resource_id, shape, window, exclude_id=booking.pk)

                price = profile.quote(window, party_size)
                updated = self.store.transition(
                    booking.pk,
                    from_statuses=[booking.status],
                    start_at=window.start,
                    end_at=window.end,
                    slot_date=shape.day if isinstance(shape, Slot) else None,
                    slot_time=shape.label if isinstance(shape, Slot) else None,
                    party_size=party_size,
                    total_price=price.amount,
                    currency=price.currency,
                )
                if not updated:
                    raise Conflict('Booking changed while it was being updated, please retry.')
                catalog.record_booked_range(profile.resource_id, booking.pk, window)

                uow.record(BookingRescheduled(
                    aggregate_id=booking.pk,
                    occurred_at=now,
                    resource_id=profile.resource_id,
                    previous_start_at=booking.start_at,
                    previous_end_at=booking.end_at,
                    start_at=window.start,
                    end_at=window.end,
                    party_size=party_size,
                ))

        return self.store.get(booking_id)

    def cancel_booking(self, booking_id: int, requester: RequesterIdentity, *, reason: str = '') -> Booking:
        """
        Soft-cancel a booking: status becomes cancelled, the row stays

        No refund is issued; see the payments app for that.
        """
        current = self.store.get(booking_id)
        self._ensure_owner(current, requester)
        now = self.now()

        with DjangoUnitOfWork() as uow:
            booking = self.store.get(booking_id, for_update=True)
            self._ensure_changeable(booking)

            cancelled = self.store.transition(
                booking.pk,
                from_statuses=CHANGEABLE_STATUSES,
                status=Booking.Status.CANCELLED,
                cancelled_at=now,
                cancellation_reason=(reason or '')[:255],
            )
            if not cancelled:
                if self.store.get(booking.pk).status == Booking.Status.CANCELLED:
                    raise AlreadyCancelled()
                raise Conflict('Booking changed while it was being cancelled, please retry.')
            catalog.drop_booked_range(booking.resource_id, booking.pk)

            uow.record(BookingCancelled(
                aggregate_id=booking.pk,
                occurred_at=now,
                resource_id=booking.resource_id,
                previous_status=booking.status,
                reason=reason or '',
            ))

        return self.store.get(booking_id)

    # ----- queries -----

    def get_booking(self, booking_id: int, requester: RequesterIdentity) -> Booking:
        """The owner and the host of the booked resource may read a booking"""
        booking = self.store.get(booking_id)
        if is_owner(booking, requester) or is_host(booking, requester) or requester.is_staff:
            return booking
        raise Forbidden()

    def list_bookings_for_resource(self, resource_id: int, requester: RequesterIdentity) -> QuerySet:
        """Newest first; only the resource's host (or staff) may list"""
        resource = self._load_resource(resource_id)
        if not requester.is_staff and (
            requester.user_id is None or resource.service.host_id != requester.user_id
        ):
            raise Forbidden('Only the host of this resource can list its bookings.')
        return self.store.for_resource(resource.pk)

    def list_bookings_for_requester(self, requester: RequesterIdentity) -> QuerySet:
        """A user's own bookings, or the guest bookings unlocked by a token"""
        if requester.is_anonymous:
            raise Forbidden('Sign in or present a booking token to list bookings.')
        if requester.is_user:
            return self.store.for_user(requester.user_id)
        if requester.guest_token:
            return self.store.for_guest_token_hash(hash_guest_token(requester.guest_token))
        raise Forbidden('Guest bookings are listed with their booking token.')

    # ----- checks -----

    def _load_resource(self, resource_id: int, *, for_update: bool = False) -> Resource:
        with translate_db_errors():
            try:
                return catalog.load_resource(resource_id, for_update=for_update)
            except Resource.DoesNotExist:
                raise NotFound(f'Resource {resource_id} not found.')

    def _load_profile(self, resource_id: int) -> ResourceProfile:
        return self._load_resource(resource_id, for_update=True).profile()

    @staticmethod
    def _ensure_not_past(shape: BookingShape, now: datetime):
        if shape.start < now:
            raise ValidationFailed('Bookings cannot start in the past.')

    @staticmethod
    def _ensure_owner(booking: Booking, requester: RequesterIdentity):
        if not is_owner(booking, requester):
            raise Forbidden()

    @staticmethod
    def _ensure_changeable(booking: Booking):
        if booking.status == Booking.Status.CANCELLED:
            raise AlreadyCancelled()
        if booking.status not in CHANGEABLE_STATUSES:
            raise ValidationFailed(f'A {booking.status} booking can no longer be changed.')

    @staticmethod
    def _admit(profile: ResourceProfile, shape: BookingShape, party_size: int) -> TimeRange:
        """Resource-side checks; returns the concrete time range the booking occupies"""
        if not profile.is_available:
            raise ValidationFailed('This resource is not available for booking.')

        if profile.booking_mode is BookingMode.SLOT and not isinstance(shape, Slot):
            raise ValidationFailed('This resource is booked by date and time slot.')
        if profile.booking_mode is BookingMode.RANGE and isinstance(shape, Slot):
            raise ValidationFailed('This resource is booked by start and end time.')

        if not profile.accepts_party(party_size):
            raise CapacityExceeded(
                f'Party of {party_size} exceeds the capacity of {profile.capacity_limit}.'
            )

        if isinstance(shape, Slot):
            if not profile.admits_slot(shape.day, shape.label):
                raise OutsideOperatingHours(f'{shape} is outside operating hours.')
            return shape.to_range(profile.slot_length)

        if not profile.admits_range(shape):
            raise OutsideOperatingHours(f'{shape} is outside operating hours.')
        return shape

    def _ensure_free(
        self,
        resource_id: int,
        shape: BookingShape,
        window: TimeRange,
        *,
        exclude_id: int | None = None,
    ):
        if isinstance(shape, Slot):
            taken = self.store.slot_taken(resource_id, shape, exclude_id=exclude_id)
        else:
            taken = self.store.has_overlap(resource_id, window, exclude_id=exclude_id)
        if taken:
            raise SlotUnavailable()
