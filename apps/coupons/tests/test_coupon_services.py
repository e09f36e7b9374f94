"""Tests for coupon validation and discount rules."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from apps.bookings.models import Booking
from apps.coupons.models import Coupon, CouponUsage
from apps.coupons.services import (
    CouponValidationError,
    ReferralCouponExistsError,
    available_coupons,
    calculate_discount,
    generate_referral_coupon,
    record_usage,
    revert_usage,
    validate_coupon,
)
from apps.properties.models import Cabin, Seat
from apps.users.models import User, Vendor

pytestmark = pytest.mark.django_db


@pytest.fixture
def student():
    return User.objects.create_user(
        email="saver@example.com",
        phone="+919855555551",
        password="Password123",
        first_name="Meera",
    )


def _coupon(**extra) -> Coupon:  # type: ignore
    fields = {
        "code": "SAVE10",
        "name": "Save ten",
        "discount_type": Coupon.DiscountType.PERCENTAGE,
        "value": Decimal("10"),
        "end_date": timezone.now() + timedelta(days=30),
    }
    fields.update(extra)
    return Coupon.objects.create(**fields)


def test_percentage_discount_is_capped():
    coupon = Coupon(
        code="BIG",
        discount_type=Coupon.DiscountType.PERCENTAGE,
        value=Decimal("50"),
        max_discount_amount=Decimal("200"),
    )
    assert calculate_discount(coupon, Decimal("1000")) == (Decimal("200.00"), Decimal("800.00"))


def test_fixed_discount_never_exceeds_amount():
    coupon = Coupon(code="FLAT", discount_type=Coupon.DiscountType.FIXED, value=Decimal("500"))
    assert calculate_discount(coupon, Decimal("300")) == (Decimal("300.00"), Decimal("0.00"))


def test_codes_are_matched_case_insensitively(student):
    coupon = _coupon()
    assert validate_coupon("  save10 ", student, Decimal("1000")) == coupon


@pytest.mark.parametrize(
    ("extra", "message"),
    [
        ({"is_active": False}, "Invalid coupon code"),
        ({"end_date": timezone.now() - timedelta(days=1), "start_date": timezone.now() - timedelta(days=5)},
         "Coupon has expired or is not yet active"),
        ({"applicable_for": Coupon.ApplicableFor.HOSTEL}, "Coupon is not applicable for cabin bookings"),
        ({"min_order_amount": Decimal("5000")}, "Minimum order amount of 5000.00 required"),
        ({"usage_limit": 2, "usage_count": 2}, "Coupon usage limit exceeded"),
    ],
)
def test_validation_rules(student, extra, message):
    _coupon(**extra)
    with pytest.raises(CouponValidationError) as exc:
        validate_coupon("SAVE10", student, Decimal("1000"))
    assert str(exc.value) == message


def test_vendor_coupon_only_valid_for_vendor_cabins(student):
    vendor = Vendor.objects.create(
        business_name="Own Rooms",
        contact_person="Owner",
        email="own@example.com",
        phone="+919855555552",
    )
    _coupon(scope=Coupon.Scope.VENDOR, vendor=vendor)
    own_cabin = Cabin.objects.create(name="Own", description="Own", price=Decimal("1000"), vendor=vendor)
    other_cabin = Cabin.objects.create(name="Other", description="Other", price=Decimal("1000"))

    assert validate_coupon("SAVE10", student, Decimal("1000"), cabin=own_cabin).vendor == vendor
    with pytest.raises(CouponValidationError, match="Coupon is not valid for this cabin"):
        validate_coupon("SAVE10", student, Decimal("1000"), cabin=other_cabin)


def test_excluded_and_specific_users(student):
    other = User.objects.create_user(email="vip@example.com", phone="+919855555553", password="Password123")
    coupon = _coupon()
    coupon.specific_users.add(other)

    with pytest.raises(CouponValidationError, match="not available for your account"):
        validate_coupon("SAVE10", student, Decimal("1000"))

    coupon.exclude_users.add(student)
    with pytest.raises(CouponValidationError, match="not eligible"):
        validate_coupon("SAVE10", student, Decimal("1000"))


def test_first_time_user_only(student):
    _coupon(first_time_user_only=True)
    cabin = Cabin.objects.create(name="Hall", description="Hall", price=Decimal("1000"))
    seat = Seat.objects.create(cabin=cabin, number=1, price=Decimal("1000"))
    today = timezone.localdate()
    Booking.objects.create(
        user=student,
        cabin=cabin,
        seat=seat,
        start_date=today,
        end_date=today,
        payment_status=Booking.PaymentStatus.COMPLETED,
        status=Booking.Status.COMPLETED,
    )

    with pytest.raises(CouponValidationError, match="first-time users"):
        validate_coupon("SAVE10", student, Decimal("1000"))


def test_per_user_limit_and_revert(student):
    coupon = _coupon(user_usage_limit=1)
    record_usage(coupon, student)

    with pytest.raises(CouponValidationError, match="maximum number of times"):
        validate_coupon("SAVE10", student, Decimal("1000"))

    revert_usage(coupon, student)
    coupon.refresh_from_db()
    assert coupon.usage_count == 0
    assert CouponUsage.objects.get(coupon=coupon, user=student).usage_count == 0
    assert validate_coupon("SAVE10", student, Decimal("1000")) == coupon


def test_revert_never_goes_negative(student):
    coupon = _coupon()
    revert_usage(coupon, student)
    coupon.refresh_from_db()
    assert coupon.usage_count == 0


def test_referral_coupon_is_generated_once(student):
    coupon = generate_referral_coupon(student)

    assert coupon.code.startswith("MEER")
    assert coupon.is_referral_coupon
    assert coupon.scope == Coupon.Scope.USER_REFERRAL
    assert coupon.exclude_users.filter(pk=student.pk).exists()
    with pytest.raises(ReferralCouponExistsError):
        generate_referral_coupon(student)


def test_available_coupons_skip_used_and_exhausted(student):
    usable = _coupon(code="OPEN")
    used = _coupon(code="USED")
    _coupon(code="GONE", usage_limit=1, usage_count=1)
    _coupon(code="HOSTELONLY", applicable_for=Coupon.ApplicableFor.HOSTEL)
    record_usage(used, student)

    codes = [coupon.code for coupon in available_coupons(student, Coupon.ApplicableFor.CABIN)]
    assert codes == [usable.code]
