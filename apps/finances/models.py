"""Financial domain models for InhaleStays."""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.bookings.models import generate_reference


def default_key_deposit() -> Decimal:
    return Decimal(str(settings.DEFAULT_KEY_DEPOSIT))


class Transaction(models.Model):
    """Money movement for a cabin or hostel booking (payment, renewal, refund)."""

    class BookingType(models.TextChoices):
        CABIN = "cabin", _("Cabin")
        HOSTEL = "hostel", _("Hostel")

    class TransactionType(models.TextChoices):
        BOOKING = "booking", _("Booking")
        RENEWAL = "renewal", _("Renewal")
        CANCELLATION = "cancellation", _("Cancellation")
        REFUND = "refund", _("Refund")

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        COMPLETED = "completed", _("Completed")
        FAILED = "failed", _("Failed")
        CANCELLED = "cancelled", _("Cancelled")

    transaction_id = models.CharField(max_length=32, unique=True, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="transactions",
    )
    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="transactions",
    )
    hostel_booking = models.ForeignKey(
        "bookings.HostelBooking",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="transactions",
    )
    booking_type = models.CharField(max_length=10, choices=BookingType.choices, default=BookingType.CABIN)
    transaction_type = models.CharField(
        max_length=20,
        choices=TransactionType.choices,
        default=TransactionType.BOOKING,
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="INR")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    razorpay_order_id = models.CharField(max_length=64, blank=True)
    razorpay_payment_id = models.CharField(max_length=64, blank=True)
    razorpay_signature = models.CharField(max_length=128, blank=True)
    additional_months = models.PositiveSmallIntegerField(null=True, blank=True)
    previous_end_date = models.DateField(null=True, blank=True)
    new_end_date = models.DateField(null=True, blank=True)
    applied_coupon = models.ForeignKey(
        "coupons.Coupon",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="transactions",
    )
    vendor = models.ForeignKey(
        "users.Vendor",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="transactions",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Transaction")
        verbose_name_plural = _("Transactions")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["razorpay_order_id"]),
            models.Index(fields=["status", "transaction_type"]),
        ]

    def __str__(self) -> str:
        return f"{self.transaction_id} ({self.transaction_type}, {self.status})"

    def save(self, *args, **kwargs):  # type: ignore
        if self._state.adding and not self.transaction_id:
            self.transaction_id = generate_reference("TXN")
        super().save(*args, **kwargs)

    @property
    def target_booking(self):  # type: ignore
        return self.booking if self.booking_type == self.BookingType.CABIN else self.hostel_booking

    def mark_completed(self, payment_id: str = "", signature: str = "") -> None:
        self.status = self.Status.COMPLETED
        if payment_id:
            self.razorpay_payment_id = payment_id
        if signature:
            self.razorpay_signature = signature
        self.save(update_fields=["status", "razorpay_payment_id", "razorpay_signature", "updated_at"])

    def mark_failed(self) -> None:
        self.status = self.Status.FAILED
        self.save(update_fields=["status", "updated_at"])


class DepositRefund(models.Model):
    """Refundable key deposit collected with a seat booking."""

    class Status(models.TextChoices):
        ACTIVE = "active", _("Active")
        EXPIRED = "expired", _("Expired")
        REFUNDED = "refunded", _("Refunded")

    class PaymentStatus(models.TextChoices):
        PENDING = "pending", _("Pending")
        PAID = "paid", _("Paid")
        REFUNDED = "refunded", _("Refunded")

    class RefundMethod(models.TextChoices):
        BANK_TRANSFER = "bank_transfer", _("Bank transfer")
        UPI = "upi", _("UPI")
        CASH = "cash", _("Cash")
        RAZORPAY = "razorpay", _("Razorpay")

    booking = models.OneToOneField(
        "bookings.Booking",
        on_delete=models.CASCADE,
        related_name="deposit",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="deposits",
    )
    cabin = models.ForeignKey("properties.Cabin", on_delete=models.CASCADE, related_name="deposits")
    seat = models.ForeignKey("properties.Seat", on_delete=models.CASCADE, related_name="deposits")
    vendor = models.ForeignKey(
        "users.Vendor",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="deposits",
    )
    key_deposit = models.DecimalField(max_digits=10, decimal_places=2, default=default_key_deposit)
    is_key_deposit_paid = models.BooleanField(default=False)
    key_deposit_refunded = models.BooleanField(default=False)
    refund_date = models.DateTimeField(null=True, blank=True)
    refund_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    refund_reason = models.TextField(blank=True)
    refund_method = models.CharField(max_length=20, choices=RefundMethod.choices, blank=True)
    transaction_id = models.CharField(max_length=64, blank=True)
    end_date = models.DateField()
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    processed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="processed_refunds",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Key deposit")
        verbose_name_plural = _("Key deposits")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "key_deposit_refunded"]),
        ]

    def __str__(self) -> str:
        return f"Deposit {self.key_deposit} for booking {self.booking_id} ({self.status})"

    def mark_paid(self) -> None:
        self.is_key_deposit_paid = True
        self.payment_status = self.PaymentStatus.PAID
        self.status = self.Status.ACTIVE
        self.save(update_fields=["is_key_deposit_paid", "payment_status", "status", "updated_at"])

    def mark_refunded(
        self,
        amount: Decimal,
        reason: str = "",
        method: str = "",
        transaction_id: str = "",
        processed_by=None,  # type: ignore
    ) -> None:
        self.key_deposit_refunded = True
        self.refund_amount = amount
        self.refund_reason = reason
        self.refund_method = method
        self.transaction_id = transaction_id
        self.refund_date = timezone.now()
        self.processed_by = processed_by
        self.status = self.Status.REFUNDED
        self.payment_status = self.PaymentStatus.REFUNDED
        self.save(
            update_fields=[
                "key_deposit_refunded",
                "refund_amount",
                "refund_reason",
                "refund_method",
                "transaction_id",
                "refund_date",
                "processed_by",
                "status",
                "payment_status",
                "updated_at",
            ]
        )
