"""Serializers for cabin and hostel bookings."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.properties.models import Cabin, HostelBed, Seat

from .models import Booking, HostelBooking


class BookingSerializer(serializers.ModelSerializer):
    cabin_name = serializers.CharField(source="cabin.name", read_only=True)
    cabin_code = serializers.CharField(source="cabin.cabin_code", read_only=True)
    seat_number = serializers.IntegerField(source="seat.number", read_only=True)
    user_email = serializers.EmailField(source="user.email", read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "booking_id",
            "user",
            "user_email",
            "cabin",
            "cabin_name",
            "cabin_code",
            "seat",
            "seat_number",
            "vendor",
            "start_date",
            "end_date",
            "months",
            "seat_price",
            "original_price",
            "discount_amount",
            "total_price",
            "coupon_code",
            "status",
            "payment_status",
            "commission_amount",
            "net_revenue",
            "razorpay_order_id",
            "razorpay_payment_id",
            "payment_date",
            "renewal_history",
            "cancelled_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BookingCreateSerializer(serializers.Serializer):
    """Input of ``POST /api/bookings/``; the booking itself is created by the service layer."""

    cabin = serializers.PrimaryKeyRelatedField(queryset=Cabin.objects.all())
    seat = serializers.PrimaryKeyRelatedField(queryset=Seat.objects.all())
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    total_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    months = serializers.IntegerField(min_value=1, required=False, default=1)
    coupon_code = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):  # type: ignore
        if attrs["end_date"] < attrs["start_date"]:
            raise serializers.ValidationError({"end_date": "End date must not be before start date."})
        return attrs


class BookingRenewSerializer(serializers.Serializer):
    new_end_date = serializers.DateField()
    additional_months = serializers.IntegerField(min_value=1, required=False)


class ProcessPaymentSerializer(serializers.Serializer):
    payment_id = serializers.CharField(required=False, allow_blank=True, default="")


class HostelBookingSerializer(serializers.ModelSerializer):
    hostel_name = serializers.CharField(source="hostel.name", read_only=True)
    room_number = serializers.CharField(source="room.room_number", read_only=True)
    bed_number = serializers.IntegerField(source="bed.number", read_only=True)

    class Meta:
        model = HostelBooking
        fields = [
            "id",
            "booking_id",
            "user",
            "hostel",
            "hostel_name",
            "room",
            "room_number",
            "bed",
            "bed_number",
            "sharing_option",
            "vendor",
            "start_date",
            "end_date",
            "booking_duration",
            "duration_count",
            "total_price",
            "status",
            "payment_status",
            "reserved_until",
            "razorpay_order_id",
            "razorpay_payment_id",
            "payment_date",
            "cancelled_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BedReservationSerializer(serializers.Serializer):
    bed = serializers.PrimaryKeyRelatedField(queryset=HostelBed.objects.select_related("room__hostel"))
    start_date = serializers.DateField()
    end_date = serializers.DateField(required=False)
    booking_duration = serializers.ChoiceField(
        choices=HostelBooking.Duration.choices,
        default=HostelBooking.Duration.MONTHLY,
    )
    duration_count = serializers.IntegerField(min_value=1, default=1)

    def validate(self, attrs):  # type: ignore
        end_date = attrs.get("end_date")
        if end_date and end_date < attrs["start_date"]:
            raise serializers.ValidationError({"end_date": "End date must not be before start date."})
        return attrs
