"""Inventory models for InhaleStays.

Two kinds of bookable inventory are listed on the platform:

* reading-room cabins, each made of individually bookable seats;
* hostels, split into rooms with sharing options and beds.

Both belong to a ``Vendor`` which is used to scope what vendor staff may
see and change.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


def _next_sequence(model, field: str, prefix: str) -> int:  # type: ignore
    """Next number for codes like ``INSRR-07`` based on the highest issued one."""

    codes = model.objects.filter(**{f"{field}__startswith": prefix}).values_list(field, flat=True)
    numbers = []
    for code in codes:
        suffix = code[len(prefix):]
        if suffix.isdigit():
            numbers.append(int(suffix))
    return max(numbers, default=0) + 1


class Cabin(models.Model):
    """Reading room with bookable seats."""

    class Category(models.TextChoices):
        STANDARD = "standard", _("Standard")
        PREMIUM = "premium", _("Premium")
        LUXURY = "luxury", _("Luxury")

    CODE_PREFIX = "INSRR-"

    cabin_code = models.CharField(max_length=20, unique=True, editable=False)
    name = models.CharField(max_length=50)
    description = models.TextField(max_length=500)
    category = models.CharField(max_length=20, choices=Category.choices, default=Category.STANDARD)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text=_("Default monthly seat price."),
    )
    capacity = models.PositiveIntegerField(default=1)
    amenities = models.JSONField(default=list, blank=True)
    address = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    key_deposit = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal(settings.DEFAULT_KEY_DEPOSIT),
        help_text=_("Refundable key deposit collected with every booking."),
    )
    locker_available = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    is_booking_active = models.BooleanField(default=True)
    vendor = models.ForeignKey(
        "users.Vendor",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="cabins",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_cabins",
    )
    average_rating = models.DecimalField(max_digits=3, decimal_places=2, default=Decimal("0.00"))
    review_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Cabin")
        verbose_name_plural = _("Cabins")
        ordering = ["cabin_code"]

    def __str__(self) -> str:
        return f"{self.name} ({self.cabin_code})"

    def save(self, *args, **kwargs):  # type: ignore
        if not self.cabin_code:
            seq = _next_sequence(Cabin, "cabin_code", self.CODE_PREFIX)
            self.cabin_code = f"{self.CODE_PREFIX}{seq:02d}"
        super().save(*args, **kwargs)

    @property
    def owning_vendor_id(self) -> int | None:
        return self.vendor_id


class Seat(models.Model):
    """A single seat inside a cabin."""

    cabin = models.ForeignKey(Cabin, on_delete=models.CASCADE, related_name="seats")
    number = models.PositiveIntegerField()
    floor = models.CharField(max_length=20, blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, help_text=_("Monthly price."))
    is_available = models.BooleanField(
        default=True,
        help_text=_("Manual switch; a seat that is switched off is never bookable."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Seat")
        verbose_name_plural = _("Seats")
        ordering = ["cabin_id", "number"]
        constraints = [
            models.UniqueConstraint(fields=["cabin", "number"], name="unique_seat_number_per_cabin"),
        ]

    def __str__(self) -> str:
        return f"Seat {self.number} in {self.cabin_id}"

    @property
    def owning_vendor_id(self) -> int | None:
        return self.cabin.vendor_id


class Hostel(models.Model):
    """Hostel listing made of rooms and beds."""

    class Gender(models.TextChoices):
        MALE = "male", _("Male")
        FEMALE = "female", _("Female")
        CO_ED = "co-ed", _("Co-ed")

    class StayType(models.TextChoices):
        SHORT = "short", _("Short term")
        LONG = "long", _("Long term")
        BOTH = "both", _("Short and long term")

    CODE_PREFIX = "HSTL-"

    hostel_code = models.CharField(max_length=20, unique=True, editable=False)
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    address = models.CharField(max_length=255)
    city = models.CharField(max_length=100)
    state = models.CharField(max_length=100, blank=True)
    gender = models.CharField(max_length=10, choices=Gender.choices, default=Gender.CO_ED)
    stay_type = models.CharField(max_length=10, choices=StayType.choices, default=StayType.BOTH)
    amenities = models.JSONField(default=list, blank=True)
    contact_phone = models.CharField(max_length=20, blank=True)
    vendor = models.ForeignKey(
        "users.Vendor",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="hostels",
    )
    manager = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="managed_hostels",
    )
    is_active = models.BooleanField(default=True)
    average_rating = models.DecimalField(max_digits=3, decimal_places=2, default=Decimal("0.00"))
    review_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Hostel")
        verbose_name_plural = _("Hostels")
        ordering = ["name"]

    def __str__(self) -> str:
        return f"{self.name} ({self.hostel_code})"

    def save(self, *args, **kwargs):  # type: ignore
        if not self.hostel_code:
            seq = _next_sequence(Hostel, "hostel_code", self.CODE_PREFIX)
            self.hostel_code = f"{self.CODE_PREFIX}{seq:04d}"
        super().save(*args, **kwargs)

    @property
    def owning_vendor_id(self) -> int | None:
        return self.vendor_id

    @property
    def owning_manager_id(self) -> int | None:
        return self.manager_id


class HostelRoom(models.Model):
    class Category(models.TextChoices):
        STANDARD = "standard", _("Standard")
        PREMIUM = "premium", _("Premium")
        LUXURY = "luxury", _("Luxury")

    hostel = models.ForeignKey(Hostel, on_delete=models.CASCADE, related_name="rooms")
    name = models.CharField(max_length=50)
    room_number = models.CharField(max_length=20)
    description = models.TextField(max_length=1000, blank=True)
    floor = models.CharField(max_length=20)
    category = models.CharField(max_length=20, choices=Category.choices, default=Category.STANDARD)
    base_price = models.DecimalField(max_digits=10, decimal_places=2)
    max_capacity = models.PositiveIntegerField()
    amenities = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Hostel room")
        verbose_name_plural = _("Hostel rooms")
        ordering = ["hostel_id", "room_number"]
        constraints = [
            models.UniqueConstraint(fields=["hostel", "room_number"], name="unique_room_number_per_hostel"),
        ]

    def __str__(self) -> str:
        return f"Room {self.room_number} ({self.hostel_id})"

    @property
    def owning_vendor_id(self) -> int | None:
        return self.hostel.vendor_id

    @property
    def owning_manager_id(self) -> int | None:
        return self.hostel.manager_id


class RoomSharingOption(models.Model):
    """Price tier of a room by how many people share it."""

    class SharingType(models.TextChoices):
        PRIVATE = "private", _("Private")
        TWO = "2-sharing", _("2 sharing")
        THREE = "3-sharing", _("3 sharing")
        FOUR = "4-sharing", _("4 sharing")
        FIVE = "5-sharing", _("5 sharing")
        SIX = "6-sharing", _("6 sharing")
        EIGHT = "8-sharing", _("8 sharing")

    room = models.ForeignKey(HostelRoom, on_delete=models.CASCADE, related_name="sharing_options")
    sharing_type = models.CharField(max_length=20, choices=SharingType.choices)
    capacity = models.PositiveIntegerField()
    price = models.DecimalField(max_digits=10, decimal_places=2, help_text=_("Daily price per bed."))
    available = models.PositiveIntegerField(default=0, help_text=_("Beds currently free in this tier."))

    class Meta:
        verbose_name = _("Room sharing option")
        verbose_name_plural = _("Room sharing options")
        ordering = ["room_id", "capacity"]

    def __str__(self) -> str:
        return f"{self.get_sharing_type_display()} in room {self.room_id}"

    @property
    def owning_vendor_id(self) -> int | None:
        return self.room.hostel.vendor_id

    @property
    def owning_manager_id(self) -> int | None:
        return self.room.hostel.manager_id


class HostelBed(models.Model):
    class BedType(models.TextChoices):
        SINGLE = "single", _("Single")
        DOUBLE = "double", _("Double")
        BUNK = "bunk", _("Bunk")

    class State(models.TextChoices):
        AVAILABLE = "available", _("Available")
        OCCUPIED = "occupied", _("Occupied")
        UNAVAILABLE = "unavailable", _("Unavailable")

    room = models.ForeignKey(HostelRoom, on_delete=models.CASCADE, related_name="beds")
    sharing_option = models.ForeignKey(
        RoomSharingOption,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="beds",
    )
    number = models.PositiveIntegerField()
    bed_type = models.CharField(max_length=10, choices=BedType.choices, default=BedType.SINGLE)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    amenities = models.JSONField(default=list, blank=True)
    is_available = models.BooleanField(default=True)
    current_booking = models.ForeignKey(
        "bookings.HostelBooking",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    reserved_until = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Hostel bed")
        verbose_name_plural = _("Hostel beds")
        ordering = ["room_id", "number"]
        constraints = [
            models.UniqueConstraint(fields=["room", "number"], name="unique_bed_number_per_room"),
        ]

    def __str__(self) -> str:
        return f"Bed {self.number} in room {self.room_id}"

    @property
    def status(self) -> str:
        if not self.is_available and self.current_booking_id:
            return self.State.OCCUPIED
        if not self.is_available:
            return self.State.UNAVAILABLE
        return self.State.AVAILABLE

    @property
    def owning_vendor_id(self) -> int | None:
        return self.room.hostel.vendor_id

    @property
    def owning_manager_id(self) -> int | None:
        return self.room.hostel.manager_id

    def occupy(self, booking) -> None:  # type: ignore
        self.is_available = False
        self.current_booking = booking
        self.reserved_until = booking.reserved_until
        self.save(update_fields=["is_available", "current_booking", "reserved_until", "updated_at"])

    def release(self) -> None:
        self.is_available = True
        self.current_booking = None
        self.reserved_until = None
        self.save(update_fields=["is_available", "current_booking", "reserved_until", "updated_at"])
