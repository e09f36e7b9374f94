"""Serializers for coupons."""

from __future__ import annotations

from decimal import Decimal

from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import serializers  # type: ignore

from apps.properties.models import Cabin

from .models import Coupon

User = get_user_model()


class CouponSerializer(serializers.ModelSerializer):
    specific_users = serializers.PrimaryKeyRelatedField(
        many=True, queryset=User.objects.all(), required=False
    )
    exclude_users = serializers.PrimaryKeyRelatedField(
        many=True, queryset=User.objects.all(), required=False
    )

    class Meta:
        model = Coupon
        fields = [
            "id",
            "code",
            "name",
            "description",
            "discount_type",
            "value",
            "max_discount_amount",
            "min_order_amount",
            "applicable_for",
            "scope",
            "vendor",
            "is_referral_coupon",
            "referral_type",
            "generated_by",
            "usage_limit",
            "usage_count",
            "user_usage_limit",
            "start_date",
            "end_date",
            "is_active",
            "first_time_user_only",
            "specific_users",
            "exclude_users",
            "created_by",
            "updated_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "is_referral_coupon",
            "referral_type",
            "generated_by",
            "usage_count",
            "created_by",
            "updated_by",
            "created_at",
            "updated_at",
        ]

    def validate_code(self, value: str) -> str:
        code = value.strip().upper()
        qs = Coupon.objects.filter(code=code)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("Coupon code already exists")
        return code

    def validate(self, attrs):  # type: ignore
        discount_type = attrs.get("discount_type", getattr(self.instance, "discount_type", None))
        value = attrs.get("value", getattr(self.instance, "value", None))
        if discount_type == Coupon.DiscountType.PERCENTAGE and value is not None and value > Decimal("100"):
            raise serializers.ValidationError({"value": "Percentage discount cannot exceed 100"})
        start = attrs.get("start_date", getattr(self.instance, "start_date", None))
        end = attrs.get("end_date", getattr(self.instance, "end_date", None))
        if start and end and end <= start:
            raise serializers.ValidationError({"end_date": "End date must be after start date"})
        scope = attrs.get("scope", getattr(self.instance, "scope", Coupon.Scope.GLOBAL))
        vendor = attrs.get("vendor", getattr(self.instance, "vendor", None))
        if scope == Coupon.Scope.VENDOR and vendor is None:
            raise serializers.ValidationError({"vendor": "Vendor coupons need a vendor"})
        return attrs


class CouponPublicSerializer(serializers.ModelSerializer):
    """What a student sees about a coupon they can use."""

    class Meta:
        model = Coupon
        fields = [
            "code",
            "name",
            "description",
            "discount_type",
            "value",
            "max_discount_amount",
            "min_order_amount",
            "applicable_for",
            "end_date",
        ]


class CouponCheckSerializer(serializers.Serializer):
    code = serializers.CharField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0"))
    booking_type = serializers.ChoiceField(
        choices=[Coupon.ApplicableFor.CABIN, Coupon.ApplicableFor.HOSTEL],
        default=Coupon.ApplicableFor.CABIN,
    )
    cabin = serializers.PrimaryKeyRelatedField(queryset=Cabin.objects.all(), required=False, allow_null=True)
