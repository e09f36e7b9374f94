"""Serializers for the finance domain (transactions, deposits, checkout)."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import DepositRefund, Transaction


class TransactionSerializer(serializers.ModelSerializer):
    booking_reference = serializers.SerializerMethodField()

    class Meta:
        model = Transaction
        fields = [
            "id",
            "transaction_id",
            "user",
            "booking",
            "hostel_booking",
            "booking_reference",
            "booking_type",
            "transaction_type",
            "amount",
            "currency",
            "status",
            "razorpay_order_id",
            "razorpay_payment_id",
            "additional_months",
            "previous_end_date",
            "new_end_date",
            "applied_coupon",
            "vendor",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "transaction_id",
            "user",
            "booking",
            "hostel_booking",
            "booking_type",
            "vendor",
            "razorpay_order_id",
            "razorpay_payment_id",
            "created_at",
            "updated_at",
        ]

    def get_booking_reference(self, obj: Transaction) -> str | None:
        target = obj.target_booking
        return target.booking_id if target else None


class TransactionCreateSerializer(serializers.Serializer):
    """Manual transaction entry by admins (e.g. renewals paid at the desk)."""

    booking_id = serializers.CharField()
    booking_type = serializers.ChoiceField(choices=Transaction.BookingType.choices)
    transaction_type = serializers.ChoiceField(choices=Transaction.TransactionType.choices)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    currency = serializers.CharField(max_length=3, required=False, default="INR")
    status = serializers.ChoiceField(
        choices=Transaction.Status.choices,
        required=False,
        default=Transaction.Status.PENDING,
    )
    additional_months = serializers.IntegerField(required=False, min_value=1)
    new_end_date = serializers.DateField(required=False)

    def validate(self, attrs):  # type: ignore
        if attrs["transaction_type"] == Transaction.TransactionType.RENEWAL:
            if attrs["booking_type"] != Transaction.BookingType.CABIN:
                raise serializers.ValidationError("Renewals are only supported for cabin bookings")
            if not attrs.get("new_end_date"):
                raise serializers.ValidationError({"new_end_date": "This field is required for renewals."})
        return attrs


class TransactionStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Transaction.Status.choices)


class DepositRefundSerializer(serializers.ModelSerializer):
    booking_reference = serializers.CharField(source="booking.booking_id", read_only=True)
    cabin_name = serializers.CharField(source="cabin.name", read_only=True)
    seat_number = serializers.IntegerField(source="seat.number", read_only=True)
    user_email = serializers.EmailField(source="user.email", read_only=True)

    class Meta:
        model = DepositRefund
        fields = [
            "id",
            "booking",
            "booking_reference",
            "user",
            "user_email",
            "cabin",
            "cabin_name",
            "seat",
            "seat_number",
            "vendor",
            "key_deposit",
            "is_key_deposit_paid",
            "key_deposit_refunded",
            "refund_date",
            "refund_amount",
            "refund_reason",
            "refund_method",
            "transaction_id",
            "end_date",
            "status",
            "payment_status",
            "processed_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class RefundRequestSerializer(serializers.Serializer):
    refund_amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    refund_reason = serializers.CharField(required=False, allow_blank=True, default="")
    refund_method = serializers.ChoiceField(
        choices=DepositRefund.RefundMethod.choices,
        required=False,
        default=DepositRefund.RefundMethod.BANK_TRANSFER,
    )
    transaction_id = serializers.CharField(required=False, allow_blank=True, default="")


class BulkRefundSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
    refund_reason = serializers.CharField(required=False, allow_blank=True, default="")
    refund_method = serializers.ChoiceField(
        choices=DepositRefund.RefundMethod.choices,
        required=False,
        default=DepositRefund.RefundMethod.BANK_TRANSFER,
    )


BOOKING_TYPE_CHOICES = Transaction.BookingType.choices


class CreateOrderSerializer(serializers.Serializer):
    booking_id = serializers.CharField()
    booking_type = serializers.ChoiceField(choices=BOOKING_TYPE_CHOICES, default=Transaction.BookingType.CABIN)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=1, required=False)
    currency = serializers.CharField(max_length=3, required=False)


class VerifyPaymentSerializer(serializers.Serializer):
    razorpay_order_id = serializers.CharField()
    razorpay_payment_id = serializers.CharField()
    razorpay_signature = serializers.CharField()
    booking_id = serializers.CharField()
    booking_type = serializers.ChoiceField(choices=BOOKING_TYPE_CHOICES, default=Transaction.BookingType.CABIN)

