"""URL routing for the booking domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import AdminBookingViewSet, BookingViewSet, HostelBookingViewSet

router = DefaultRouter()
router.register(r"bookings", BookingViewSet, basename="booking")
router.register(r"admin/bookings", AdminBookingViewSet, basename="admin-booking")
router.register(r"hostel-bookings", HostelBookingViewSet, basename="hostel-booking")

urlpatterns = [
    path("", include(router.urls)),
]
