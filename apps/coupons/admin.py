"""Admin registration for coupons."""

from __future__ import annotations

from django.contrib import admin

from .models import Coupon, CouponUsage


class CouponUsageInline(admin.TabularInline):
    model = CouponUsage
    extra = 0
    readonly_fields = ("user", "booking", "usage_count", "used_at")


@admin.register(Coupon)
class CouponAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "discount_type",
        "value",
        "scope",
        "vendor",
        "usage_count",
        "usage_limit",
        "start_date",
        "end_date",
        "is_active",
    )
    list_filter = ("discount_type", "scope", "applicable_for", "is_active", "is_referral_coupon")
    search_fields = ("code", "name", "vendor__business_name")
    readonly_fields = ("usage_count", "created_at", "updated_at")
    filter_horizontal = ("specific_users", "exclude_users")
    inlines = [CouponUsageInline]
