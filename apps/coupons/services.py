"""Coupon validation, discount calculation and usage bookkeeping."""

from __future__ import annotations

import logging
import random
import re
import string
from dataclasses import dataclass
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from django.db import transaction  # type: ignore
from django.db.models import F, Q  # type: ignore
from django.utils import timezone  # type: ignore

from .models import Coupon, CouponUsage

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from apps.properties.models import Cabin
    from apps.users.models import CustomUser

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

REFERRAL_DISCOUNT_PERCENT = Decimal("10")
REFERRAL_MAX_DISCOUNT = Decimal("500")
REFERRAL_MIN_ORDER = Decimal("1000")
REFERRAL_USAGE_LIMIT = 10
REFERRAL_VALID_DAYS = 90


class CouponValidationError(Exception):
    """Raised when a coupon cannot be applied; the message is shown to the user."""


class ReferralCouponExistsError(Exception):
    """Raised when a user asks for a second active referral coupon."""


@dataclass(frozen=True)
class AppliedCoupon:
    coupon: Coupon
    original_amount: Decimal
    discount: Decimal
    final_amount: Decimal


def calculate_discount(coupon: Coupon, amount: Decimal) -> tuple[Decimal, Decimal]:
    """Return ``(discount, final_amount)`` for ``amount``."""

    amount = Decimal(amount)
    if coupon.discount_type == Coupon.DiscountType.PERCENTAGE:
        discount = amount * coupon.value / Decimal("100")
        if coupon.max_discount_amount is not None and discount > coupon.max_discount_amount:
            discount = coupon.max_discount_amount
    else:
        discount = coupon.value

    discount = min(discount, amount).quantize(CENT, rounding=ROUND_HALF_UP)
    final_amount = max(Decimal("0"), amount - discount).quantize(CENT, rounding=ROUND_HALF_UP)
    return discount, final_amount


def _user_usage_count(coupon: Coupon, user) -> int:  # type: ignore
    usage = CouponUsage.objects.filter(coupon=coupon, user=user).only("usage_count").first()
    return usage.usage_count if usage else 0


def _has_completed_booking(user) -> bool:  # type: ignore
    from apps.bookings.models import Booking, HostelBooking  # Local import to prevent circular dependency

    return (
        Booking.objects.filter(user=user, payment_status=Booking.PaymentStatus.COMPLETED).exists()
        or HostelBooking.objects.filter(user=user, payment_status=HostelBooking.PaymentStatus.COMPLETED).exists()
    )


def validate_coupon(
    code: str,
    user: "CustomUser",
    amount: Decimal,
    booking_type: str = Coupon.ApplicableFor.CABIN,
    cabin: "Cabin | None" = None,
) -> Coupon:
    """Return the coupon for ``code`` or raise ``CouponValidationError`` on the first failed rule."""

    normalized = (code or "").strip().upper()
    coupon = Coupon.objects.filter(code=normalized, is_active=True).first()
    if coupon is None:
        raise CouponValidationError("Invalid coupon code")

    if not coupon.is_within_window():
        raise CouponValidationError("Coupon has expired or is not yet active")

    if coupon.scope == Coupon.Scope.VENDOR and coupon.vendor_id:
        if cabin is None or cabin.vendor_id != coupon.vendor_id:
            raise CouponValidationError("Coupon is not valid for this cabin")

    if coupon.applicable_for not in (Coupon.ApplicableFor.ALL, booking_type):
        raise CouponValidationError(f"Coupon is not applicable for {booking_type} bookings")

    amount = Decimal(amount)
    if amount < coupon.min_order_amount:
        raise CouponValidationError(f"Minimum order amount of {coupon.min_order_amount} required")

    if coupon.is_exhausted:
        raise CouponValidationError("Coupon usage limit exceeded")

    if coupon.exclude_users.filter(pk=user.pk).exists():
        raise CouponValidationError("You are not eligible for this coupon")

    if coupon.specific_users.exists() and not coupon.specific_users.filter(pk=user.pk).exists():
        raise CouponValidationError("This coupon is not available for your account")

    if coupon.first_time_user_only and _has_completed_booking(user):
        raise CouponValidationError("This coupon is only valid for first-time users")

    if _user_usage_count(coupon, user) >= coupon.user_usage_limit:
        raise CouponValidationError("You have already used this coupon the maximum number of times")

    return coupon


def apply_coupon(
    code: str,
    user: "CustomUser",
    amount: Decimal,
    booking_type: str = Coupon.ApplicableFor.CABIN,
    cabin: "Cabin | None" = None,
) -> AppliedCoupon:
    coupon = validate_coupon(code, user, amount, booking_type, cabin)
    discount, final_amount = calculate_discount(coupon, amount)
    return AppliedCoupon(
        coupon=coupon,
        original_amount=Decimal(amount),
        discount=discount,
        final_amount=final_amount,
    )


@transaction.atomic
def record_usage(coupon: Coupon, user, booking=None) -> None:  # type: ignore
    Coupon.objects.filter(pk=coupon.pk).update(usage_count=F("usage_count") + 1)
    usage, created = CouponUsage.objects.get_or_create(
        coupon=coupon,
        user=user,
        defaults={"usage_count": 1, "booking": booking},
    )
    if not created:
        CouponUsage.objects.filter(pk=usage.pk).update(
            usage_count=F("usage_count") + 1,
            booking=booking,
            used_at=timezone.now(),
        )
    logger.info(f"Coupon {coupon.code} used by user {user.pk}")


@transaction.atomic
def revert_usage(coupon: Coupon, user) -> None:  # type: ignore
    """Undo one redemption, e.g. when the booking it paid for is cancelled."""

    Coupon.objects.filter(pk=coupon.pk, usage_count__gt=0).update(usage_count=F("usage_count") - 1)
    CouponUsage.objects.filter(coupon=coupon, user=user, usage_count__gt=0).update(
        usage_count=F("usage_count") - 1
    )
    logger.info(f"Coupon {coupon.code} usage reverted for user {user.pk}")


def _referral_code_for(user) -> str:  # type: ignore
    letters = re.sub(r"[^A-Z]", "", (user.first_name or user.username or "").upper())[:4] or "USER"
    alphabet = string.ascii_uppercase + string.digits
    while True:
        code = letters + "".join(random.choices(alphabet, k=4))
        if not Coupon.objects.filter(code=code).exists():
            return code


@transaction.atomic
def generate_referral_coupon(user) -> Coupon:  # type: ignore
    if Coupon.objects.filter(generated_by=user, is_referral_coupon=True, is_active=True).exists():
        raise ReferralCouponExistsError("You already have an active referral coupon")

    now = timezone.now()
    coupon = Coupon.objects.create(
        code=_referral_code_for(user),
        name=f"Referral from {user.display_name}",
        description="Share with friends to give them a discount on their first seat booking.",
        discount_type=Coupon.DiscountType.PERCENTAGE,
        value=REFERRAL_DISCOUNT_PERCENT,
        max_discount_amount=REFERRAL_MAX_DISCOUNT,
        min_order_amount=REFERRAL_MIN_ORDER,
        applicable_for=Coupon.ApplicableFor.CABIN,
        scope=Coupon.Scope.USER_REFERRAL,
        is_referral_coupon=True,
        referral_type=Coupon.ReferralType.USER_GENERATED,
        generated_by=user,
        usage_limit=REFERRAL_USAGE_LIMIT,
        user_usage_limit=1,
        start_date=now,
        end_date=now + timedelta(days=REFERRAL_VALID_DAYS),
        created_by=user,
    )
    # The owner cannot redeem their own referral coupon
    coupon.exclude_users.add(user)
    logger.info(f"Referral coupon {coupon.code} generated for user {user.pk}")
    return coupon


def available_coupons(user, booking_type: str | None = None):  # type: ignore
    """Coupons the user could still redeem right now."""

    now = timezone.now()
    qs = (
        Coupon.objects.filter(is_active=True, start_date__lte=now, end_date__gte=now)
        .filter(Q(usage_limit__isnull=True) | Q(usage_count__lt=F("usage_limit")))
        .exclude(exclude_users=user)
        .filter(Q(specific_users__isnull=True) | Q(specific_users=user))
        .distinct()
    )
    if booking_type:
        qs = qs.filter(applicable_for__in=[Coupon.ApplicableFor.ALL, booking_type])

    first_booking_done = _has_completed_booking(user)
    usage_by_coupon = dict(
        CouponUsage.objects.filter(user=user).values_list("coupon_id", "usage_count")
    )
    result = []
    for coupon in qs:
        if coupon.first_time_user_only and first_booking_done:
            continue
        if usage_by_coupon.get(coupon.pk, 0) >= coupon.user_usage_limit:
            continue
        result.append(coupon)
    return result
