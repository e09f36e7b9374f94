"""Coupon models.

Coupons give a percentage or fixed discount on a booking. They can be
global, limited to one vendor's listings, or generated as referral
coupons that a student shares with friends.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Coupon(models.Model):
    class DiscountType(models.TextChoices):
        PERCENTAGE = "percentage", _("Percentage")
        FIXED = "fixed", _("Fixed amount")

    class ApplicableFor(models.TextChoices):
        CABIN = "cabin", _("Cabin bookings")
        HOSTEL = "hostel", _("Hostel bookings")
        ALL = "all", _("All bookings")

    class Scope(models.TextChoices):
        GLOBAL = "global", _("Global")
        VENDOR = "vendor", _("Vendor")
        USER_REFERRAL = "user_referral", _("User referral")

    class ReferralType(models.TextChoices):
        USER_GENERATED = "user_generated", _("Generated by a user")
        ADMIN_GENERATED = "admin_generated", _("Generated by an admin")

    code = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    discount_type = models.CharField(max_length=20, choices=DiscountType.choices)
    value = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    max_discount_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        help_text=_("Cap for percentage discounts."),
    )
    min_order_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    applicable_for = models.CharField(max_length=10, choices=ApplicableFor.choices, default=ApplicableFor.ALL)
    scope = models.CharField(max_length=20, choices=Scope.choices, default=Scope.GLOBAL)
    vendor = models.ForeignKey(
        "users.Vendor",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="coupons",
    )
    is_referral_coupon = models.BooleanField(default=False)
    referral_type = models.CharField(max_length=20, choices=ReferralType.choices, blank=True)
    generated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="referral_coupons",
    )
    usage_limit = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text=_("Total redemptions allowed; empty means unlimited."),
    )
    usage_count = models.PositiveIntegerField(default=0)
    user_usage_limit = models.PositiveIntegerField(default=1)
    start_date = models.DateTimeField(default=timezone.now)
    end_date = models.DateTimeField()
    is_active = models.BooleanField(default=True)
    first_time_user_only = models.BooleanField(default=False)
    specific_users = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        blank=True,
        related_name="targeted_coupons",
    )
    exclude_users = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        blank=True,
        related_name="excluded_coupons",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_coupons",
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="updated_coupons",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Coupon")
        verbose_name_plural = _("Coupons")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["is_active", "start_date", "end_date"]),
        ]

    def __str__(self) -> str:
        return self.code

    def save(self, *args, **kwargs):  # type: ignore
        self.code = self.code.strip().upper()
        super().save(*args, **kwargs)

    @property
    def is_exhausted(self) -> bool:
        return self.usage_limit is not None and self.usage_count >= self.usage_limit

    def is_within_window(self, moment=None) -> bool:  # type: ignore
        moment = moment or timezone.now()
        return self.start_date <= moment <= self.end_date


class CouponUsage(models.Model):
    """How many times a user redeemed a coupon and on which booking last."""

    coupon = models.ForeignKey(Coupon, on_delete=models.CASCADE, related_name="usages")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="coupon_usages",
    )
    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="coupon_usages",
    )
    usage_count = models.PositiveIntegerField(default=0)
    used_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = _("Coupon usage")
        verbose_name_plural = _("Coupon usages")
        constraints = [
            models.UniqueConstraint(fields=["coupon", "user"], name="unique_coupon_usage_per_user"),
        ]

    def __str__(self) -> str:
        return f"{self.coupon_id} used {self.usage_count}x by {self.user_id}"
