"""Admin registrations for cabins and hostel inventory."""

from __future__ import annotations

from django.contrib import admin  # type: ignore

from .models import Cabin, Hostel, HostelBed, HostelRoom, RoomSharingOption, Seat


class SeatInline(admin.TabularInline):
    model = Seat
    extra = 0


@admin.register(Cabin)
class CabinAdmin(admin.ModelAdmin):
    list_display = ("cabin_code", "name", "category", "price", "vendor", "is_active", "is_booking_active")
    list_filter = ("category", "is_active", "is_booking_active", "locker_available")
    search_fields = ("cabin_code", "name", "city")
    readonly_fields = ("cabin_code", "average_rating", "review_count", "created_at", "updated_at")
    inlines = [SeatInline]


@admin.register(Seat)
class SeatAdmin(admin.ModelAdmin):
    list_display = ("cabin", "number", "floor", "price", "is_available")
    list_filter = ("is_available",)
    search_fields = ("cabin__name", "cabin__cabin_code")


class HostelRoomInline(admin.TabularInline):
    model = HostelRoom
    extra = 0


@admin.register(Hostel)
class HostelAdmin(admin.ModelAdmin):
    list_display = ("hostel_code", "name", "city", "gender", "vendor", "manager", "is_active")
    list_filter = ("gender", "stay_type", "is_active")
    search_fields = ("hostel_code", "name", "city")
    readonly_fields = ("hostel_code", "average_rating", "review_count", "created_at", "updated_at")
    inlines = [HostelRoomInline]


@admin.register(HostelRoom)
class HostelRoomAdmin(admin.ModelAdmin):
    list_display = ("hostel", "room_number", "name", "category", "base_price", "max_capacity", "is_active")
    list_filter = ("category", "is_active")


@admin.register(RoomSharingOption)
class RoomSharingOptionAdmin(admin.ModelAdmin):
    list_display = ("room", "sharing_type", "capacity", "price", "available")


@admin.register(HostelBed)
class HostelBedAdmin(admin.ModelAdmin):
    list_display = ("room", "number", "bed_type", "price", "is_available", "current_booking", "reserved_until")
    list_filter = ("bed_type", "is_available")
    raw_id_fields = ("current_booking",)
