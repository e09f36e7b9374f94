"""Booking domain models for InhaleStays."""

from __future__ import annotations

import random
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


def generate_reference(prefix: str) -> str:
    """Human readable id ``PREFIX-YYMMDD-HHMMSS-NNNN`` (local time, random suffix)."""

    now = timezone.localtime()
    return f"{prefix}-{now:%y%m%d}-{now:%H%M%S}-{random.randint(1000, 9999)}"


class Booking(models.Model):
    """Seat booking in a reading-room cabin, usually for whole months."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        COMPLETED = "completed", _("Completed")
        CANCELLED = "cancelled", _("Cancelled")
        EXPIRED = "expired", _("Expired")

    class PaymentStatus(models.TextChoices):
        PENDING = "pending", _("Pending")
        COMPLETED = "completed", _("Completed")
        FAILED = "failed", _("Failed")
        CANCELLED = "cancelled", _("Cancelled")

    booking_id = models.CharField(max_length=32, unique=True, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    cabin = models.ForeignKey(
        "properties.Cabin",
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    seat = models.ForeignKey(
        "properties.Seat",
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    vendor = models.ForeignKey(
        "users.Vendor",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bookings",
    )
    start_date = models.DateField()
    end_date = models.DateField()
    months = models.PositiveSmallIntegerField(default=1)
    seat_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text=_("Monthly seat price fixed at booking time."),
    )
    original_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    applied_coupon = models.ForeignKey(
        "coupons.Coupon",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bookings",
    )
    coupon_code = models.CharField(max_length=32, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    display = models.BooleanField(
        default=True,
        help_text=_("Hidden from the student's current bookings once an unpaid booking goes stale."),
    )
    commission_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    net_revenue = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    razorpay_order_id = models.CharField(max_length=64, blank=True)
    razorpay_payment_id = models.CharField(max_length=64, blank=True)
    payment_date = models.DateTimeField(null=True, blank=True)
    renewal_history = models.JSONField(default=list, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now, editable=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_date__gte=models.F("start_date")),
                name="booking_valid_dates",
            ),
        ]
        indexes = [
            models.Index(fields=["seat", "start_date", "end_date"]),
            models.Index(fields=["payment_status", "created_at"]),
            models.Index(fields=["status", "end_date"]),
        ]

    def __str__(self) -> str:
        return f"Booking {self.booking_id} for seat {self.seat_id}"

    def clean(self) -> None:
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError(_("End date must not be before start date."))

    def save(self, *args, **kwargs):  # type: ignore
        if self._state.adding and not self.booking_id:
            self.booking_id = generate_reference("CABIN")
        super().save(*args, **kwargs)

    def mark_paid(self, payment_id: str = "") -> None:
        self.payment_status = self.PaymentStatus.COMPLETED
        self.status = self.Status.COMPLETED
        self.payment_date = timezone.now()
        if payment_id:
            self.razorpay_payment_id = payment_id
        self.save(update_fields=["payment_status", "status", "payment_date", "razorpay_payment_id", "updated_at"])

    def mark_cancelled(self) -> None:
        self.payment_status = self.PaymentStatus.CANCELLED
        self.status = self.Status.CANCELLED
        self.cancelled_at = timezone.now()
        self.save(update_fields=["payment_status", "status", "cancelled_at", "updated_at"])

    @property
    def is_active(self) -> bool:
        return self.status not in (self.Status.CANCELLED, self.Status.EXPIRED)


class HostelBooking(models.Model):
    """Bed booking in a hostel, priced per day, week or month."""

    class Status(models.TextChoices):
        RESERVED = "reserved", _("Reserved, awaiting payment")
        PENDING = "pending", _("Pending")
        CONFIRMED = "confirmed", _("Confirmed")
        CANCELLED = "cancelled", _("Cancelled")
        EXPIRED = "expired", _("Expired")

    class PaymentStatus(models.TextChoices):
        PENDING = "pending", _("Pending")
        COMPLETED = "completed", _("Completed")
        FAILED = "failed", _("Failed")
        CANCELLED = "cancelled", _("Cancelled")

    class Duration(models.TextChoices):
        DAILY = "daily", _("Daily")
        WEEKLY = "weekly", _("Weekly")
        MONTHLY = "monthly", _("Monthly")

    booking_id = models.CharField(max_length=32, unique=True, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="hostel_bookings",
    )
    hostel = models.ForeignKey("properties.Hostel", on_delete=models.CASCADE, related_name="bookings")
    room = models.ForeignKey("properties.HostelRoom", on_delete=models.CASCADE, related_name="bookings")
    bed = models.ForeignKey("properties.HostelBed", on_delete=models.CASCADE, related_name="bookings")
    sharing_option = models.ForeignKey(
        "properties.RoomSharingOption",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bookings",
    )
    vendor = models.ForeignKey(
        "users.Vendor",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="hostel_bookings",
    )
    start_date = models.DateField()
    end_date = models.DateField()
    booking_duration = models.CharField(max_length=10, choices=Duration.choices, default=Duration.MONTHLY)
    duration_count = models.PositiveSmallIntegerField(default=1)
    total_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.RESERVED)
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    reserved_until = models.DateTimeField(null=True, blank=True)
    razorpay_order_id = models.CharField(max_length=64, blank=True)
    razorpay_payment_id = models.CharField(max_length=64, blank=True)
    payment_date = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now, editable=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Hostel booking")
        verbose_name_plural = _("Hostel bookings")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["bed", "start_date", "end_date"]),
            models.Index(fields=["status", "reserved_until"]),
        ]

    def __str__(self) -> str:
        return f"Hostel booking {self.booking_id} for bed {self.bed_id}"

    def save(self, *args, **kwargs):  # type: ignore
        if self._state.adding and not self.booking_id:
            self.booking_id = generate_reference("HOSTEL")
        super().save(*args, **kwargs)

    def reservation_expired(self) -> bool:
        return bool(
            self.status == self.Status.RESERVED
            and self.payment_status != self.PaymentStatus.COMPLETED
            and self.reserved_until
            and timezone.now() > self.reserved_until
        )

    def mark_paid(self, payment_id: str = "") -> None:
        self.payment_status = self.PaymentStatus.COMPLETED
        self.status = self.Status.CONFIRMED
        self.payment_date = timezone.now()
        self.reserved_until = None
        if payment_id:
            self.razorpay_payment_id = payment_id
        self.save(
            update_fields=[
                "payment_status",
                "status",
                "payment_date",
                "reserved_until",
                "razorpay_payment_id",
                "updated_at",
            ]
        )
