"""API views for the booking domain."""

from __future__ import annotations

import logging

from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore

from apps.coupons.services import CouponValidationError
from apps.users.permissions import IsAdminOrVendorStaff, is_platform_admin, is_vendor_staff, restrict_to_vendor
from shared.api.mixins import EnvelopeResponseMixin
from shared.api.responses import api_error, api_response

from .filters import BookingFilterSet, HostelBookingFilterSet
from .models import Booking, HostelBooking
from .serializers import (
    BedReservationSerializer,
    BookingCreateSerializer,
    BookingRenewSerializer,
    BookingSerializer,
    HostelBookingSerializer,
    ProcessPaymentSerializer,
)
from .services import (
    BedReservationRequest,
    BookingError,
    BookingRequest,
    booking_history,
    cancel_booking,
    cancel_hostel_booking,
    complete_booking_payment,
    confirm_hostel_payment,
    create_booking,
    current_bookings,
    expire_reservation_if_due,
    renew_booking,
    reserve_bed,
    user_booking_report,
)

logger = logging.getLogger(__name__)


class IsBookingStakeholder(permissions.BasePermission):
    """The student who booked, staff of the owning vendor and admins."""

    def has_object_permission(self, request, view, obj) -> bool:  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return False
        if is_platform_admin(user):
            return True
        if is_vendor_staff(user):
            vendor = user.get_vendor()
            return vendor is not None and obj.vendor_id == vendor.id
        if hasattr(user, "is_hostel_manager") and user.is_hostel_manager() and isinstance(obj, HostelBooking):
            return obj.hostel.manager_id == user.id
        return obj.user_id == user.id


class BookingViewSet(
    EnvelopeResponseMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Seat bookings of the current user (or of the vendor for vendor staff)."""

    queryset = Booking.objects.select_related("cabin", "seat", "user", "vendor")
    serializer_class = BookingSerializer
    permission_classes = [permissions.IsAuthenticated, IsBookingStakeholder]
    filterset_fields = ["status", "payment_status", "cabin"]

    def get_queryset(self):  # type: ignore
        user = self.request.user
        qs = super().get_queryset()
        if is_platform_admin(user):
            return qs
        if is_vendor_staff(user):
            return restrict_to_vendor(qs, user)
        return qs.filter(user=user)

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            booking = create_booking(
                request.user,
                BookingRequest(
                    cabin=data["cabin"],
                    seat=data["seat"],
                    start_date=data["start_date"],
                    end_date=data["end_date"],
                    total_price=data["total_price"],
                    months=data["months"],
                    coupon_code=data["coupon_code"],
                ),
            )
        except (BookingError, CouponValidationError) as e:
            return api_error(str(e))

        return api_response(
            BookingSerializer(booking).data,
            "Booking created successfully",
            status.HTTP_201_CREATED,
        )

    @action(detail=False, methods=["get"])
    def current(self, request):  # type: ignore
        bookings = current_bookings(request.user)
        return api_response(BookingSerializer(bookings, many=True).data, count=len(bookings))

    @action(detail=False, methods=["get"])
    def history(self, request):  # type: ignore
        bookings = booking_history(request.user)
        return api_response(BookingSerializer(bookings, many=True).data, count=len(bookings))

    @action(detail=False, methods=["get"])
    def report(self, request):  # type: ignore
        return api_response(user_booking_report(request.user))

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()
        try:
            cancel_booking(booking)
        except BookingError as e:
            return api_error(str(e))
        return api_response(BookingSerializer(booking).data, "Booking cancelled successfully")

    @action(detail=True, methods=["post"])
    def renew(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()
        serializer = BookingRenewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            renew_booking(
                booking,
                data["new_end_date"],
                data.get("additional_months"),
                renewed_by=request.user,
            )
        except BookingError as e:
            return api_error(str(e))
        return api_response(BookingSerializer(booking).data, "Booking renewed successfully")

    @action(detail=True, methods=["post"], url_path="process-payment", url_name="process-payment")
    def process_payment(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()
        if booking.payment_status == Booking.PaymentStatus.COMPLETED:
            return api_error("Booking is already paid")
        if not booking.is_active:
            return api_error("Booking is cancelled or expired")

        serializer = ProcessPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        complete_booking_payment(booking, serializer.validated_data["payment_id"])
        logger.info(f"Booking {booking.booking_id} marked paid by user {request.user.pk}")
        return api_response(BookingSerializer(booking).data, "Payment processed successfully")


class AdminBookingViewSet(EnvelopeResponseMixin, viewsets.ReadOnlyModelViewSet):
    """Booking listing for the admin panel; vendor staff see their vendor's bookings only."""

    queryset = Booking.objects.select_related("cabin", "seat", "user", "vendor")
    serializer_class = BookingSerializer
    permission_classes = [IsAdminOrVendorStaff]
    filterset_class = BookingFilterSet

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        if is_platform_admin(self.request.user):
            return qs
        return restrict_to_vendor(qs, self.request.user)


class HostelBookingViewSet(
    EnvelopeResponseMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Hostel bed reservations and their payment lifecycle."""

    queryset = HostelBooking.objects.select_related("hostel", "room", "bed", "user", "vendor")
    serializer_class = HostelBookingSerializer
    permission_classes = [permissions.IsAuthenticated, IsBookingStakeholder]
    filterset_class = HostelBookingFilterSet

    def get_queryset(self):  # type: ignore
        user = self.request.user
        qs = super().get_queryset()
        if is_platform_admin(user):
            return qs
        if is_vendor_staff(user):
            return restrict_to_vendor(qs, user)
        if hasattr(user, "is_hostel_manager") and user.is_hostel_manager():
            return qs.filter(hostel__manager=user)
        return qs.filter(user=user)

    @action(detail=False, methods=["post"])
    def reserve(self, request):  # type: ignore
        serializer = BedReservationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            booking = reserve_bed(
                request.user,
                BedReservationRequest(
                    bed=data["bed"],
                    start_date=data["start_date"],
                    booking_duration=data["booking_duration"],
                    duration_count=data["duration_count"],
                    end_date=data.get("end_date"),
                ),
            )
        except BookingError as e:
            return api_error(str(e))

        return api_response(
            HostelBookingSerializer(booking).data,
            "Bed reserved successfully",
            status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=["get", "post"], url_path="check-expiry", url_name="check-expiry")
    def check_expiry(self, request, pk=None):  # type: ignore
        booking: HostelBooking = self.get_object()
        expired = expire_reservation_if_due(booking)
        return api_response(
            {"expired": expired, "booking": HostelBookingSerializer(booking).data},
            "Reservation expired" if expired else "Reservation is still valid",
        )

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        booking: HostelBooking = self.get_object()
        try:
            cancel_hostel_booking(booking)
        except BookingError as e:
            return api_error(str(e))
        return api_response(HostelBookingSerializer(booking).data, "Booking cancelled successfully")

    @action(detail=True, methods=["post"], url_path="confirm-payment", url_name="confirm-payment")
    def confirm_payment(self, request, pk=None):  # type: ignore
        booking: HostelBooking = self.get_object()
        if expire_reservation_if_due(booking):
            return api_error("Reservation has expired")
        if booking.payment_status == HostelBooking.PaymentStatus.COMPLETED:
            return api_error("Booking is already paid")

        serializer = ProcessPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            confirm_hostel_payment(booking, serializer.validated_data["payment_id"])
        except BookingError as e:
            return api_error(str(e))
        return api_response(HostelBookingSerializer(booking).data, "Payment confirmed successfully")
