"""
Booking Payment Sync

Keeps a booking's payment state in line with what the payment gateway
reports:
- confirm_payment: pending -> confirmed, payment paid
- apply_payment_update: gateway webhook status -> payment status
- attach_transaction: remember the gateway's id for a started charge
- record_refund: paid -> refunded for a cancelled booking

Every change is a compare-and-set on the booking row; a lost race surfaces as
``Conflict``.
"""

from datetime import datetime
from typing import Callable

from shared.application.uow import DjangoUnitOfWork

from apps.bookings.domain.errors import Conflict, ValidationFailed
from apps.bookings.domain.events import BookingPaymentUpdated
from apps.bookings.domain.lifecycle import PaymentStatus, map_gateway_status
from apps.bookings.domain.windows import wall_clock
from apps.bookings.models import Booking
from apps.bookings.store import BookingStore

PAYABLE_STATUSES = (Booking.PaymentStatus.PENDING, Booking.PaymentStatus.FAILED)


class BookingPaymentService:

    def __init__(self, store: BookingStore | None = None, *, clock: Callable[[], datetime] | None = None):
        self.store = store or BookingStore()
        self._clock = clock or datetime.now

    def now(self) -> datetime:
        return wall_clock(self._clock())

    def confirm_payment(self, booking_id: int, *, transaction_id: str = '') -> Booking:
        """
        Mark a booking paid

        A pending booking becomes confirmed. A booking cancelled before the
        money arrived stays cancelled but is recorded as paid, so it can be
        refunded. Confirming an already paid booking changes nothing.
        """
        now = self.now()
        with DjangoUnitOfWork() as uow:
            booking = self.store.get(booking_id, for_update=True)
            if booking.payment_status == Booking.PaymentStatus.PAID:
                return booking
            if booking.payment_status == Booking.PaymentStatus.REFUNDED:
                raise ValidationFailed('A refunded booking cannot be paid again.')

            changes = {
                'payment_status': Booking.PaymentStatus.PAID,
                'paid_at': now,
            }
            if transaction_id:
                changes['transaction_id'] = transaction_id
            if booking.status == Booking.Status.PENDING:
                changes['status'] = Booking.Status.CONFIRMED

            updated = self.store.transition(
                booking.pk,
                from_statuses=[booking.status],
                from_payment_statuses=[booking.payment_status],
                **changes,
            )
            if not updated:
                raise Conflict('Booking changed while confirming payment, please retry.')

            uow.record(BookingPaymentUpdated(
                aggregate_id=booking.pk,
                occurred_at=now,
                previous_payment_status=booking.payment_status,
                payment_status=Booking.PaymentStatus.PAID,
                status=changes.get('status', booking.status),
                transaction_id=transaction_id or booking.transaction_id,
            ))

        return self.store.get(booking_id)

    def apply_payment_update(self, external_id: str, new_status: str) -> Booking:
        """
        Apply a gateway status to the booking holding ``external_id``

        Unknown ids raise NotFound. In-flight and unrecognised statuses leave
        the booking untouched.
        """
        booking = self.store.by_transaction_id(external_id)
        target = map_gateway_status(new_status)

        if target is None:
            return booking
        if target is PaymentStatus.PAID:
            return self.confirm_payment(booking.pk)
        if target is PaymentStatus.FAILED:
            return self._set_payment_status(
                booking,
                Booking.PaymentStatus.FAILED,
                allowed_from=[Booking.PaymentStatus.PENDING],
            )
        return self._set_payment_status(
            booking,
            Booking.PaymentStatus.REFUNDED,
            allowed_from=[Booking.PaymentStatus.PAID],
        )

    def attach_transaction(self, booking_id: int, transaction_id: str) -> Booking:
        """Store the gateway id of a charge started for a pending, unpaid booking"""
        updated = self.store.transition(
            booking_id,
            from_statuses=[Booking.Status.PENDING],
            from_payment_statuses=PAYABLE_STATUSES,
            transaction_id=transaction_id,
            payment_status=Booking.PaymentStatus.PENDING,
        )
        if not updated:
            raise Conflict('Booking is no longer awaiting payment.')
        return self.store.get(booking_id)

    def record_refund(self, booking_id: int) -> Booking:
        booking = self.store.get(booking_id)
        return self._set_payment_status(
            booking,
            Booking.PaymentStatus.REFUNDED,
            allowed_from=[Booking.PaymentStatus.PAID],
        )

    def _set_payment_status(self, booking: Booking, payment_status: str, *, allowed_from) -> Booking:
        if booking.payment_status == payment_status or booking.payment_status not in allowed_from:
            return booking

        now = self.now()
        with DjangoUnitOfWork() as uow:
            updated = self.store.transition(
                booking.pk,
                from_statuses=[booking.status],
                from_payment_statuses=[booking.payment_status],
                payment_status=payment_status,
            )
            if not updated:
                raise Conflict('Booking changed while updating payment, please retry.')
            uow.record(BookingPaymentUpdated(
                aggregate_id=booking.pk,
                occurred_at=now,
                previous_payment_status=booking.payment_status,
                payment_status=payment_status,
                status=booking.status,
                transaction_id=booking.transaction_id,
            ))
        return self.store.get(booking.pk)
