from django.contrib import admin  # type: ignore

from .models import DepositRefund, Transaction


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = (
        "transaction_id",
        "user",
        "booking_type",
        "transaction_type",
        "amount",
        "status",
        "created_at",
    )
    list_filter = ("status", "transaction_type", "booking_type")
    search_fields = ("transaction_id", "razorpay_order_id", "razorpay_payment_id", "user__email")
    raw_id_fields = ("user", "booking", "hostel_booking", "applied_coupon", "vendor")


@admin.register(DepositRefund)
class DepositRefundAdmin(admin.ModelAdmin):
    list_display = (
        "booking",
        "user",
        "key_deposit",
        "is_key_deposit_paid",
        "key_deposit_refunded",
        "status",
        "end_date",
    )
    list_filter = ("status", "payment_status", "key_deposit_refunded", "refund_method")
    search_fields = ("booking__booking_id", "user__email", "transaction_id")
    raw_id_fields = ("booking", "user", "cabin", "seat", "vendor", "processed_by")
