"""URL routing for the booking domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import BookingViewSet, ResourceBookingsView

router = DefaultRouter()
router.register(r"bookings", BookingViewSet, basename="booking")

urlpatterns = [
    path("", include(router.urls)),
    path(
        "resources/<int:resource_id>/bookings/",
        ResourceBookingsView.as_view(),
        name="resource-bookings",
    ),
]
