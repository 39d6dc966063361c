"""Integration tests for booking API endpoints."""

from __future__ import annotations

from django.test import override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.catalog.models import Resource

from .factories import at, make_host, make_resource, make_user, next_monday


class BookingAPITests(APITestCase):
    """Covers creation, conflicts, updates and cancellation of bookings."""

    def setUp(self) -> None:
        self.traveler = make_user("traveler@example.com")
        self.other = make_user("other@example.com")
        self.host = make_host()
        self.resource = make_resource(self.host, hours={"monday": [("09:00", "17:00")]})
        self.day = next_monday()
        self.client.force_authenticate(self.traveler)
        self.list_url = reverse("booking-list")

    def _payload(self, start_hour: int, end_hour: int, **extra) -> dict:
        payload = {
            "resource": self.resource.id,
            "start_at": at(self.day, start_hour).isoformat(),
            "end_at": at(self.day, end_hour).isoformat(),
            "party_size": 2,
        }
        payload.update(extra)
        return payload

    def _create(self, start_hour: int = 10, end_hour: int = 12, **extra):
        response = self.client.post(self.list_url, self._payload(start_hour, end_hour, **extra), format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        return response.data

    def test_user_can_create_booking(self) -> None:
        data = self._create(special_requests="Quiet room please")

        self.assertEqual(data["status"], Booking.Status.PENDING)
        self.assertEqual(data["payment_status"], Booking.PaymentStatus.PENDING)
        self.assertEqual(data["total_price"], "50.00")
        self.assertIsNone(data["guest_token"])
        booking = Booking.objects.get(pk=data["id"])
        self.assertEqual(booking.user, self.traveler)
        self.assertEqual(booking.resource, self.resource)
        self.assertEqual(booking.special_requests, "Quiet room please")

    def test_prevent_double_booking_on_overlap(self) -> None:
        self._create(10, 12)

        conflict_response = self.client.post(self.list_url, self._payload(11, 13), format="json")

        self.assertEqual(conflict_response.status_code, status.HTTP_409_CONFLICT, conflict_response.data)
        self.assertEqual(conflict_response.data["code"], "slot_unavailable")
        self.assertEqual(Booking.objects.count(), 1)

    def test_back_to_back_bookings_are_allowed(self) -> None:
        self._create(10, 12)
        self._create(12, 14)

        self.assertEqual(Booking.objects.count(), 2)

    def test_admission_errors_map_to_codes(self) -> None:
        cases = [
            (self._payload(10, 12, party_size=5), status.HTTP_400_BAD_REQUEST, "capacity_exceeded"),
            (self._payload(16, 18), status.HTTP_400_BAD_REQUEST, "outside_operating_hours"),
            (self._payload(12, 10), status.HTTP_400_BAD_REQUEST, "validation_failed"),
            (self._payload(10, 12, resource=999_999), status.HTTP_404_NOT_FOUND, "not_found"),
        ]
        for payload, expected_status, code in cases:
            with self.subTest(code=code):
                response = self.client.post(self.list_url, payload, format="json")
                self.assertEqual(response.status_code, expected_status, response.data)
                self.assertEqual(response.data["code"], code)
                self.assertIn("detail", response.data)

    def test_malformed_payload_is_rejected_by_serializer(self) -> None:
        response = self.client.post(self.list_url, {"resource": "abc", "party_size": 2}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("resource", response.data)

    def test_slot_booking(self) -> None:
        table = make_resource(
            self.host,
            name="Table 4",
            kind=Resource.Kind.TABLE,
            booking_mode=Resource.BookingMode.SLOT,
            slot_minutes=90,
            hours={"monday": [("18:00", "22:00")]},
        )
        payload = {
            "resource": table.id,
            "slot_date": self.day.isoformat(),
            "slot_time": "19:30",
            "party_size": 2,
        }

        first = self.client.post(self.list_url, payload, format="json")
        second = self.client.post(self.list_url, payload, format="json")

        self.assertEqual(first.status_code, status.HTTP_201_CREATED, first.data)
        self.assertEqual(first.data["slot_time"], "19:30")
        self.assertEqual(first.data["end_at"], at(self.day, 21).isoformat())
        self.assertEqual(second.status_code, status.HTTP_409_CONFLICT)

    def test_list_shows_only_own_bookings(self) -> None:
        mine = self._create(10, 11)
        self.client.force_authenticate(self.other)
        self._create(12, 13)
        self.client.force_authenticate(self.traveler)

        response = self.client.get(self.list_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item["id"] for item in response.data["results"]], [mine["id"]])

    def test_list_filters_by_status(self) -> None:
        first = self._create(10, 11)
        self._create(12, 13)
        self.client.post(reverse("booking-cancel", args=[first["id"]]), {}, format="json")

        response = self.client.get(self.list_url, {"status": "cancelled"})

        self.assertEqual([item["id"] for item in response.data["results"]], [first["id"]])

    def test_retrieve_is_limited_to_owner_and_host(self) -> None:
        data = self._create()
        detail_url = reverse("booking-detail", args=[data["id"]])

        self.assertEqual(self.client.get(detail_url).status_code, status.HTTP_200_OK)

        self.client.force_authenticate(self.host)
        self.assertEqual(self.client.get(detail_url).status_code, status.HTTP_200_OK)

        self.client.force_authenticate(self.other)
        response = self.client.get(detail_url)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["code"], "forbidden")

    def test_owner_can_reschedule(self) -> None:
        data = self._create(10, 12)
        detail_url = reverse("booking-detail", args=[data["id"]])

        response = self.client.patch(
            detail_url,
            {"start_at": at(self.day, 13).isoformat(), "end_at": at(self.day, 15).isoformat()},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["start_at"], at(self.day, 13).isoformat())
        self.assertEqual(response.data["party_size"], 2)

    def test_patch_with_only_end_extends_booking(self) -> None:
        data = self._create(10, 12)

        response = self.client.patch(
            reverse("booking-detail", args=[data["id"]]),
            {"end_at": at(self.day, 13).isoformat()},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["start_at"], at(self.day, 10).isoformat())
        self.assertEqual(response.data["end_at"], at(self.day, 13).isoformat())

    def test_patch_with_only_slot_time_moves_slot(self) -> None:
        table = make_resource(
            self.host,
            booking_mode=Resource.BookingMode.SLOT,
            slot_minutes=60,
            hours={"monday": [("18:00", "22:00")]},
        )
        created = self.client.post(
            self.list_url,
            {"resource": table.id, "slot_date": self.day.isoformat(), "slot_time": "19:00", "party_size": 2},
            format="json",
        ).data

        response = self.client.patch(
            reverse("booking-detail", args=[created["id"]]),
            {"slot_time": "20:30"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["slot_date"], self.day.isoformat())
        self.assertEqual(response.data["slot_time"], "20:30")
        self.assertEqual(response.data["end_at"], at(self.day, 21, 30).isoformat())

    @override_settings(TIME_ZONE="Asia/Kathmandu")
    def test_offsets_are_read_as_local_wall_clock(self) -> None:
        local = self.client.post(
            self.list_url,
            {
                "resource": self.resource.id,
                "start_at": f"{self.day.isoformat()}T10:00:00+05:45",
                "end_at": f"{self.day.isoformat()}T12:00:00+05:45",
                "party_size": 2,
            },
            format="json",
        )
        self.assertEqual(local.status_code, status.HTTP_201_CREATED, local.data)
        self.assertEqual(local.data["start_at"], at(self.day, 10).isoformat())
        self.assertEqual(local.data["end_at"], at(self.day, 12).isoformat())

        utc = self.client.post(
            self.list_url,
            {
                "resource": self.resource.id,
                "start_at": f"{self.day.isoformat()}T07:15:00Z",
                "end_at": f"{self.day.isoformat()}T08:15:00Z",
                "party_size": 2,
            },
            format="json",
        )
        self.assertEqual(utc.status_code, status.HTTP_201_CREATED, utc.data)
        self.assertEqual(utc.data["start_at"], at(self.day, 13).isoformat())

        naive = self.client.post(self.list_url, self._payload(15, 16), format="json")
        self.assertEqual(naive.status_code, status.HTTP_201_CREATED, naive.data)
        self.assertEqual(naive.data["start_at"], at(self.day, 15).isoformat())

    def test_reschedule_into_taken_range_conflicts(self) -> None:
        data = self._create(10, 12)
        self._create(13, 15)

        response = self.client.patch(
            reverse("booking-detail", args=[data["id"]]),
            {"start_at": at(self.day, 12).isoformat(), "end_at": at(self.day, 14).isoformat()},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_owner_can_cancel_booking(self) -> None:
        data = self._create()
        cancel_url = reverse("booking-cancel", args=[data["id"]])

        response = self.client.post(cancel_url, {"reason": "Plans changed"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        booking = Booking.objects.get(id=data["id"])
        self.assertEqual(booking.status, Booking.Status.CANCELLED)
        self.assertEqual(booking.cancellation_reason, "Plans changed")

        again = self.client.post(cancel_url, {}, format="json")
        self.assertEqual(again.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(again.data["code"], "already_cancelled")

    def test_other_user_cannot_cancel(self) -> None:
        data = self._create()
        self.client.force_authenticate(self.other)

        response = self.client.post(reverse("booking-cancel", args=[data["id"]]), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(Booking.objects.get(id=data["id"]).status, Booking.Status.PENDING)

    def test_unknown_booking_is_not_found(self) -> None:
        response = self.client.get(reverse("booking-detail", args=[424242]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["code"], "not_found")


class GuestBookingAPITests(APITestCase):
    def setUp(self) -> None:
        self.resource = make_resource(make_host())
        self.day = next_monday()
        self.list_url = reverse("booking-list")

    def _guest_payload(self, **extra) -> dict:
        payload = {
            "resource": self.resource.id,
            "start_at": at(self.day, 10).isoformat(),
            "end_at": at(self.day, 12).isoformat(),
            "party_size": 2,
            "guest_name": "Asha Rai",
            "guest_email": "asha@example.com",
            "guest_phone": "+9779800000000",
        }
        payload.update(extra)
        return payload

    def test_guest_booking_returns_token_once(self) -> None:
        response = self.client.post(self.list_url, self._guest_payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        token = response.data["guest_token"]
        self.assertTrue(token)
        self.assertIsNone(response.data["user"])

        detail_url = reverse("booking-detail", args=[response.data["id"]])
        self.assertEqual(self.client.get(detail_url).status_code, status.HTTP_403_FORBIDDEN)

        detail = self.client.get(detail_url, HTTP_X_BOOKING_TOKEN=token)
        self.assertEqual(detail.status_code, status.HTTP_200_OK)
        self.assertNotIn("guest_token", detail.data)

    def test_guest_lists_and_cancels_with_token(self) -> None:
        created = self.client.post(self.list_url, self._guest_payload(), format="json").data
        token = created["guest_token"]

        listing = self.client.get(self.list_url, HTTP_X_BOOKING_TOKEN=token)
        self.assertEqual([item["id"] for item in listing.data["results"]], [created["id"]])

        wrong = self.client.post(
            reverse("booking-cancel", args=[created["id"]]), {}, format="json", HTTP_X_BOOKING_TOKEN="nope"
        )
        self.assertEqual(wrong.status_code, status.HTTP_403_FORBIDDEN)

        response = self.client.post(
            reverse("booking-cancel", args=[created["id"]]), {}, format="json", HTTP_X_BOOKING_TOKEN=token
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], Booking.Status.CANCELLED)

    def test_guest_needs_valid_email(self) -> None:
        response = self.client.post(self.list_url, self._guest_payload(guest_email=""), format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "validation_failed")

        response = self.client.post(self.list_url, self._guest_payload(guest_email="asha"), format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_anonymous_without_contact_is_rejected(self) -> None:
        payload = {
            "resource": self.resource.id,
            "start_at": at(self.day, 10).isoformat(),
            "end_at": at(self.day, 12).isoformat(),
            "party_size": 2,
        }

        response = self.client.post(self.list_url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "validation_failed")

    def test_signed_in_user_with_guest_contact_is_rejected(self) -> None:
        self.client.force_authenticate(make_user("traveler@example.com"))

        response = self.client.post(self.list_url, self._guest_payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Booking.objects.exists())

    def test_anonymous_listing_is_forbidden(self) -> None:
        response = self.client.get(self.list_url)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class HostAndStaffAPITests(APITestCase):
    def setUp(self) -> None:
        self.host = make_host()
        self.traveler = make_user("traveler@example.com")
        self.staff = make_user("staff@example.com", role="admin", is_staff=True)
        self.resource = make_resource(self.host)
        self.day = next_monday()
        self.client.force_authenticate(self.traveler)
        self.booking_ids = [
            self.client.post(
                reverse("booking-list"),
                {
                    "resource": self.resource.id,
                    "start_at": at(self.day, hour).isoformat(),
                    "end_at": at(self.day, hour + 1).isoformat(),
                    "party_size": 1,
                },
                format="json",
            ).data["id"]
            for hour in (9, 11)
        ]
        self.resource_url = reverse("resource-bookings", args=[self.resource.id])

    def test_host_lists_resource_bookings_newest_first(self) -> None:
        self.client.force_authenticate(self.host)

        response = self.client.get(self.resource_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item["id"] for item in response.data["results"]], list(reversed(self.booking_ids)))

    def test_traveler_cannot_list_resource_bookings(self) -> None:
        response = self.client.get(self.resource_url)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["code"], "forbidden")

    def test_resource_listing_requires_authentication(self) -> None:
        self.client.force_authenticate(None)

        response = self.client.get(self.resource_url)

        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))

    def test_unknown_resource_listing_is_not_found(self) -> None:
        self.client.force_authenticate(self.host)

        response = self.client.get(reverse("resource-bookings", args=[999_999]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_staff_confirms_payment(self) -> None:
        url = reverse("booking-confirm-payment", args=[self.booking_ids[0]])

        self.assertEqual(self.client.post(url).status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.staff)
        response = self.client.post(url)

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], Booking.Status.CONFIRMED)
        self.assertEqual(response.data["payment_status"], Booking.PaymentStatus.PAID)
        self.assertIsNotNone(response.data["paid_at"])
