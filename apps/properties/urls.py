"""URL routing for cabins, seats and hostel inventory."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import (
    CabinViewSet,
    HostelBedViewSet,
    HostelRoomViewSet,
    HostelViewSet,
    RoomSharingOptionViewSet,
    SeatViewSet,
)

router = DefaultRouter()
router.register(r"cabins", CabinViewSet, basename="cabin")
router.register(r"seats", SeatViewSet, basename="seat")
router.register(r"hostels", HostelViewSet, basename="hostel")
router.register(r"hostel-rooms", HostelRoomViewSet, basename="hostel-room")
router.register(r"sharing-options", RoomSharingOptionViewSet, basename="sharing-option")
router.register(r"hostel-beds", HostelBedViewSet, basename="hostel-bed")

urlpatterns = [
    path("", include(router.urls)),
]
