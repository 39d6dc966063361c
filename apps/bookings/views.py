"""API views for the booking domain."""

from __future__ import annotations

import logging

from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import generics, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from .application.admission import AdmissionService, BookingMetadata
from .application.payment_sync import BookingPaymentService
from .domain.errors import (
    AdmissionError,
    AlreadyCancelled,
    CapacityExceeded,
    Conflict,
    Forbidden,
    Internal,
    NotFound,
    OutsideOperatingHours,
    SlotUnavailable,
    ValidationFailed,
)
from .domain.requester import GuestContact, RequesterIdentity
from .filters import BookingFilterSet
from .models import Booking
from .serializers import (
    BookingCancelSerializer,
    BookingCreatedSerializer,
    BookingRequestSerializer,
    BookingSerializer,
    BookingUpdateSerializer,
)

logger = logging.getLogger(__name__)

BOOKING_TOKEN_HEADER = "X-Booking-Token"

ERROR_STATUS = {
    ValidationFailed: status.HTTP_400_BAD_REQUEST,
    CapacityExceeded: status.HTTP_400_BAD_REQUEST,
    OutsideOperatingHours: status.HTTP_400_BAD_REQUEST,
    AlreadyCancelled: status.HTTP_400_BAD_REQUEST,
    Forbidden: status.HTTP_403_FORBIDDEN,
    NotFound: status.HTTP_404_NOT_FOUND,
    SlotUnavailable: status.HTTP_409_CONFLICT,
    Conflict: status.HTTP_409_CONFLICT,
    Internal: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def admission_error_response(exc: AdmissionError) -> Response:
    http_status = ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    if http_status >= 500:
        logger.error(f"Booking store failure: {exc.message}", exc_info=exc)
    elif http_status == status.HTTP_409_CONFLICT:
        logger.info(f"Booking rejected ({exc.code}): {exc.message}")
    return Response({"code": exc.code, "detail": exc.message}, status=http_status)


def requester_from_request(request, guest: GuestContact | None = None) -> RequesterIdentity:
    """Identity of the caller: signed-in user and/or guest contact and token."""

    token = request.headers.get(BOOKING_TOKEN_HEADER) or None
    user = request.user
    if user is not None and user.is_authenticated:
        return RequesterIdentity(
            user_id=user.pk,
            guest=guest,
            guest_token=token,
            is_staff=bool(user.is_staff),
        )
    return RequesterIdentity(guest=guest, guest_token=token)


class AdmissionErrorMixin:
    """Turns admission errors raised by the service into JSON responses."""

    def handle_exception(self, exc):  # type: ignore
        if isinstance(exc, AdmissionError):
            return admission_error_response(exc)
        return super().handle_exception(exc)


class BookingViewSet(AdmissionErrorMixin, viewsets.GenericViewSet):
    """Viewset for requesting and managing the caller's bookings.

    Guests authenticate per booking with the token returned on creation,
    sent back in the ``X-Booking-Token`` header.
    """

    queryset = Booking.objects.none()
    serializer_class = BookingSerializer
    permission_classes = [permissions.AllowAny]
    lookup_value_regex = r"\d+"
    filter_backends = [DjangoFilterBackend]
    filterset_class = BookingFilterSet

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return BookingRequestSerializer
        if self.action in ("update", "partial_update"):
            return BookingUpdateSerializer
        if self.action == "cancel":
            return BookingCancelSerializer
        return BookingSerializer

    def get_service(self) -> AdmissionService:
        return AdmissionService()

    def get_queryset(self):  # type: ignore
        if getattr(self, "swagger_fake_view", False):
            return Booking.objects.none()
        return self.get_service().list_bookings_for_requester(requester_from_request(self.request))

    def list(self, request, *args, **kwargs):  # type: ignore
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = BookingSerializer(page, many=True)
            return self.get_paginated_response(serializer.data)
        return Response(BookingSerializer(queryset, many=True).data)

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        guest = None
        if serializer.has_guest_contact():
            guest = GuestContact(
                name=data.get("guest_name", ""),
                email=data.get("guest_email", ""),
                phone=data.get("guest_phone", ""),
            )
        requester = requester_from_request(request, guest=guest)

        booking = self.get_service().request_booking(
            data["resource"],
            requester,
            party_size=data["party_size"],
            metadata=BookingMetadata(
                payment_method=data.get("payment_method", ""),
                special_requests=data.get("special_requests", ""),
                source=data.get("source", Booking.Source.WEB),
            ),
            **serializer.shape_kwargs(),
        )
        logger.info(f"Booking {booking.booking_code} requested for resource {booking.resource_id}")
        return Response(BookingCreatedSerializer(booking).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None, *args, **kwargs):  # type: ignore
        booking = self.get_service().get_booking(int(pk), requester_from_request(request))
        return Response(BookingSerializer(booking).data)

    def update(self, request, pk=None, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = self.get_service().update_booking(
            int(pk),
            requester_from_request(request),
            party_size=serializer.validated_data.get("party_size"),
            **serializer.shape_kwargs(),
        )
        logger.info(f"Booking {booking.booking_code} rescheduled")
        return Response(BookingSerializer(booking).data)

    def partial_update(self, request, pk=None, *args, **kwargs):  # type: ignore
        return self.update(request, pk, *args, **kwargs)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = self.get_service().cancel_booking(
            int(pk),
            requester_from_request(request),
            reason=serializer.validated_data.get("reason", ""),
        )
        logger.info(f"Booking {booking.booking_code} cancelled")
        return Response(BookingSerializer(booking).data)

    @action(detail=True, methods=["post"], permission_classes=[permissions.IsAdminUser])
    def confirm_payment(self, request, pk=None):  # type: ignore
        booking = BookingPaymentService().confirm_payment(int(pk))
        logger.info(f"Payment for booking {booking.booking_code} confirmed by {request.user.pk}")
        return Response(BookingSerializer(booking).data)


class ResourceBookingsView(AdmissionErrorMixin, generics.ListAPIView):
    """Host's view of all bookings of one resource, newest first."""

    serializer_class = BookingSerializer
    permission_classes = [permissions.IsAuthenticated]
    filter_backends = [DjangoFilterBackend]
    filterset_class = BookingFilterSet

    def get_queryset(self):  # type: ignore
        if getattr(self, "swagger_fake_view", False):
            return Booking.objects.none()
        return AdmissionService().list_bookings_for_resource(
            self.kwargs["resource_id"],
            requester_from_request(self.request),
        )
