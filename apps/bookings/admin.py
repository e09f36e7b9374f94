"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin  # type: ignore

from .models import Booking, HostelBooking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "booking_id",
        "cabin",
        "seat",
        "user",
        "status",
        "payment_status",
        "start_date",
        "end_date",
        "total_price",
        "created_at",
    )
    list_filter = ("status", "payment_status", "display", "start_date", "end_date")
    search_fields = ("booking_id", "cabin__name", "user__email", "coupon_code")
    raw_id_fields = ("user", "cabin", "seat", "vendor", "applied_coupon")
    readonly_fields = (
        "booking_id",
        "created_at",
        "updated_at",
        "renewal_history",
        "commission_amount",
        "net_revenue",
    )


@admin.register(HostelBooking)
class HostelBookingAdmin(admin.ModelAdmin):
    list_display = (
        "booking_id",
        "hostel",
        "room",
        "bed",
        "user",
        "status",
        "payment_status",
        "start_date",
        "end_date",
        "reserved_until",
    )
    list_filter = ("status", "payment_status", "booking_duration")
    search_fields = ("booking_id", "hostel__name", "user__email")
    raw_id_fields = ("user", "hostel", "room", "bed", "sharing_option", "vendor")
    readonly_fields = ("booking_id", "created_at", "updated_at")
