"""API views for cabins, seats and hostel inventory.

Listings are public. Writes are allowed to admins, to staff of the
vendor that owns the listing and, for hostel inventory, to the hostel
manager assigned to the hostel. Vendor staff only ever see their own
vendor's inventory.
"""

from __future__ import annotations

import logging

from django.db import transaction  # type: ignore
from rest_framework import status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.exceptions import PermissionDenied  # type: ignore
from rest_framework.filters import OrderingFilter  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore

from apps.bookings.services import available_beds, cabin_seat_availability, check_seat_availability
from apps.users.permissions import IsInventoryManagerOrReadOnly, is_platform_admin, is_vendor_staff
from shared.api.mixins import EnvelopeResponseMixin
from shared.api.responses import api_error, api_response

from .filters import CabinFilterSet, HostelBedFilterSet, HostelFilterSet
from .models import Cabin, Hostel, HostelBed, HostelRoom, RoomSharingOption, Seat
from .serializers import (
    BulkBedItemSerializer,
    BulkBedRoomSerializer,
    BulkSeatUpdateItemSerializer,
    CabinSerializer,
    DateRangeSerializer,
    HostelBedSerializer,
    HostelRoomSerializer,
    HostelSerializer,
    OptionalDateRangeSerializer,
    RoomSharingOptionSerializer,
    SeatSerializer,
)

logger = logging.getLogger(__name__)


class InventoryViewSet(EnvelopeResponseMixin, viewsets.ModelViewSet):
    """
    Shared scoping for inventory viewsets.

    ``vendor_field`` is the lookup from the model to its vendor and
    ``manager_field`` (hostel inventory only) to the hostel manager.
    """

    permission_classes = [IsInventoryManagerOrReadOnly]
    vendor_field = "vendor"
    manager_field: str | None = None

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        user = self.request.user
        if is_platform_admin(user):
            return qs
        if is_vendor_staff(user):
            vendor = user.get_vendor()
            return qs.filter(**{self.vendor_field: vendor}) if vendor else qs.none()
        if self.manager_field and user.is_authenticated and user.is_hostel_manager():
            if self.request.method not in ("GET", "HEAD", "OPTIONS"):
                return qs.filter(**{self.manager_field: user})
        return qs

    def check_parent_access(self, parent) -> None:  # type: ignore
        """Reject writes attaching children to inventory the user does not manage."""
        if not self.check_object_permissions_for(parent):
            raise PermissionDenied("You do not manage this listing.")

    def check_object_permissions_for(self, obj) -> bool:  # type: ignore
        permission = IsInventoryManagerOrReadOnly()
        return permission.has_object_permission(self.request, self, obj)


class CabinViewSet(InventoryViewSet):
    queryset = Cabin.objects.select_related("vendor")
    serializer_class = CabinSerializer
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_class = CabinFilterSet
    ordering_fields = ["price", "created_at", "average_rating", "cabin_code"]

    def perform_create(self, serializer):  # type: ignore
        user = self.request.user
        extra = {"created_by": user}
        if not is_platform_admin(user):
            extra["vendor"] = user.get_vendor()
        cabin = serializer.save(**extra)
        logger.info(f"Cabin {cabin.cabin_code} created by user {user.pk}")

    def perform_update(self, serializer):  # type: ignore
        if not is_platform_admin(self.request.user):
            serializer.save(vendor=self.request.user.get_vendor())
            return
        serializer.save()

    @action(detail=True, methods=["get"])
    def seats(self, request, pk=None):  # type: ignore
        cabin = self.get_object()
        seats = cabin.seats.all().order_by("number")
        return api_response(SeatSerializer(seats, many=True).data, count=len(seats))

    @action(detail=True, methods=["get"], url_path="seat-availability", url_name="seat-availability")
    def seat_availability(self, request, pk=None):  # type: ignore
        cabin = self.get_object()
        dates = DateRangeSerializer(data=request.query_params)
        dates.is_valid(raise_exception=True)
        seats = cabin_seat_availability(cabin, dates.validated_data["start_date"], dates.validated_data["end_date"])
        return api_response(seats, count=len(seats))


class SeatViewSet(InventoryViewSet):
    queryset = Seat.objects.select_related("cabin")
    serializer_class = SeatSerializer
    vendor_field = "cabin__vendor"
    filterset_fields = ["cabin", "is_available", "floor"]

    def perform_create(self, serializer):  # type: ignore
        self.check_parent_access(serializer.validated_data["cabin"])
        serializer.save()

    def perform_update(self, serializer):  # type: ignore
        cabin = serializer.validated_data.get("cabin")
        if cabin is not None:
            self.check_parent_access(cabin)
        serializer.save()

    @action(detail=False, methods=["post"], url_path="bulk-create", url_name="bulk-create")
    def bulk_create(self, request):  # type: ignore
        seats = request.data.get("seats")
        if not isinstance(seats, list) or not seats:
            return api_error("Please provide an array of seats")

        items = SeatSerializer(data=seats, many=True)
        items.is_valid(raise_exception=True)

        cabins = {item["cabin"].pk: item["cabin"] for item in items.validated_data}
        for cabin in cabins.values():
            self.check_parent_access(cabin)

        keys = [(item["cabin"].pk, item["number"]) for item in items.validated_data]
        if len(set(keys)) != len(keys):
            return api_error("Seat numbers must be unique within the cabin")

        with transaction.atomic():
            created = items.save()
        logger.info(f"{len(created)} seats created in cabins {sorted(cabins)}")
        return api_response(
            SeatSerializer(created, many=True).data,
            f"{len(created)} seats created successfully",
            status.HTTP_201_CREATED,
            count=len(created),
        )

    @action(detail=False, methods=["post"], url_path="bulk-update", url_name="bulk-update")
    def bulk_update(self, request):  # type: ignore
        """Apply ``[{id, updates}]`` to seats; one failure rolls the whole batch back."""
        entries = request.data.get("seats")
        if not isinstance(entries, list) or not entries:
            return api_error("Please provide an array of seats")

        items = BulkSeatUpdateItemSerializer(data=entries, many=True)
        items.is_valid(raise_exception=True)

        scope = self.get_queryset()
        updated = []
        try:
            with transaction.atomic():
                for item in items.validated_data:
                    seat = scope.filter(pk=item["id"]).first()
                    if seat is None:
                        raise Seat.DoesNotExist(f"Seat with ID {item['id']} not found")
                    self.check_parent_access(seat.cabin)

                    serializer = SeatSerializer(seat, data=item["updates"], partial=True)
                    serializer.is_valid(raise_exception=True)
                    cabin = serializer.validated_data.get("cabin")
                    if cabin is not None:
                        self.check_parent_access(cabin)
                    updated.append(serializer.save())
        except Seat.DoesNotExist as e:
            return api_error(str(e), status.HTTP_404_NOT_FOUND)

        logger.info(f"{len(updated)} seats updated by {request.user.pk}")
        return api_response(
            SeatSerializer(updated, many=True).data,
            f"{len(updated)} seats updated successfully",
            count=len(updated),
        )

    @action(detail=True, methods=["get", "post"], url_path="check-availability", url_name="check-availability")
    def check_availability(self, request, pk=None):  # type: ignore
        seat = self.get_object()
        source = request.data if request.method == "POST" else request.query_params
        dates = DateRangeSerializer(data=source)
        dates.is_valid(raise_exception=True)

        is_available, conflicts = check_seat_availability(
            seat,
            dates.validated_data["start_date"],
            dates.validated_data["end_date"],
        )
        return api_response(
            {
                "seat_id": seat.id,
                "is_available": is_available,
                "conflicting_bookings": [
                    {
                        "booking_id": booking.booking_id,
                        "start_date": booking.start_date,
                        "end_date": booking.end_date,
                    }
                    for booking in conflicts
                ],
            }
        )


class HostelViewSet(InventoryViewSet):
    queryset = Hostel.objects.select_related("vendor", "manager")
    serializer_class = HostelSerializer
    manager_field = "manager"
    filterset_class = HostelFilterSet

    def perform_create(self, serializer):  # type: ignore
        user = self.request.user
        extra = {}
        if is_vendor_staff(user) and not is_platform_admin(user):
            extra["vendor"] = user.get_vendor()
        elif user.is_hostel_manager():
            extra["manager"] = user
        hostel = serializer.save(**extra)
        logger.info(f"Hostel {hostel.hostel_code} created by user {user.pk}")


class HostelRoomViewSet(InventoryViewSet):
    queryset = HostelRoom.objects.select_related("hostel").prefetch_related("sharing_options")
    serializer_class = HostelRoomSerializer
    vendor_field = "hostel__vendor"
    manager_field = "hostel__manager"
    filterset_fields = ["hostel", "category", "is_active"]

    def perform_create(self, serializer):  # type: ignore
        self.check_parent_access(serializer.validated_data["hostel"])
        serializer.save()

    @action(detail=True, methods=["get"], url_path="available-beds", url_name="available-beds")
    def available_beds(self, request, pk=None):  # type: ignore
        room = self.get_object()
        dates = OptionalDateRangeSerializer(data=request.query_params)
        dates.is_valid(raise_exception=True)
        beds = available_beds(room, dates.validated_data.get("start_date"), dates.validated_data.get("end_date"))
        return api_response(HostelBedSerializer(beds, many=True).data, count=len(beds))


class RoomSharingOptionViewSet(InventoryViewSet):
    queryset = RoomSharingOption.objects.select_related("room__hostel")
    serializer_class = RoomSharingOptionSerializer
    vendor_field = "room__hostel__vendor"
    manager_field = "room__hostel__manager"
    filterset_fields = ["room", "sharing_type"]

    def perform_create(self, serializer):  # type: ignore
        self.check_parent_access(serializer.validated_data["room"])
        serializer.save()


class HostelBedViewSet(InventoryViewSet):
    queryset = HostelBed.objects.select_related("room__hostel", "sharing_option")
    serializer_class = HostelBedSerializer
    vendor_field = "room__hostel__vendor"
    manager_field = "room__hostel__manager"
    filterset_class = HostelBedFilterSet

    def perform_create(self, serializer):  # type: ignore
        self.check_parent_access(serializer.validated_data["room"])
        serializer.save()

    @action(detail=True, methods=["post", "patch"], url_path="set-status", url_name="set-status")
    def set_status(self, request, pk=None):  # type: ignore
        bed = self.get_object()
        is_available = request.data.get("is_available")
        if not isinstance(is_available, bool):
            return api_error("is_available must be a boolean value")

        bed.is_available = is_available
        if is_available:
            bed.current_booking = None
            bed.reserved_until = None
        bed.save(update_fields=["is_available", "current_booking", "reserved_until", "updated_at"])
        return api_response(HostelBedSerializer(bed).data, "Bed status updated")

    @action(detail=False, methods=["post"], url_path="bulk-create", url_name="bulk-create")
    def bulk_create(self, request):  # type: ignore
        room_id = request.data.get("room")
        beds = request.data.get("beds")
        if not isinstance(beds, list) or not beds:
            return api_error("Invalid beds data")

        target = BulkBedRoomSerializer(data={"room": room_id})
        if not target.is_valid():
            if target.errors["room"][0].code == "does_not_exist":
                return api_error("Room not found", status.HTTP_404_NOT_FOUND)
            return api_error("Invalid room id")
        room = target.validated_data["room"]
        self.check_parent_access(room)

        items = BulkBedItemSerializer(data=beds, many=True)
        items.is_valid(raise_exception=True)

        numbers = [item["number"] for item in items.validated_data]
        taken = set(HostelBed.objects.filter(room=room, number__in=numbers).values_list("number", flat=True))
        if taken or len(set(numbers)) != len(numbers):
            return api_error("Bed numbers must be unique within the room")

        with transaction.atomic():
            created = HostelBed.objects.bulk_create(
                [HostelBed(room=room, **item) for item in items.validated_data]
            )
        logger.info(f"{len(created)} beds created in room {room.pk}")
        return api_response(
            HostelBedSerializer(created, many=True).data,
            f"{len(created)} beds created successfully",
            status.HTTP_201_CREATED,
        )
