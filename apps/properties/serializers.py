"""Serializers for the properties domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Cabin, Hostel, HostelBed, HostelRoom, RoomSharingOption, Seat


class SeatSerializer(serializers.ModelSerializer):
    class Meta:
        model = Seat
        fields = ["id", "cabin", "number", "floor", "price", "is_available", "created_at", "updated_at"]
        read_only_fields = ["created_at", "updated_at"]

    def validate(self, attrs):  # type: ignore
        cabin = attrs.get("cabin") or getattr(self.instance, "cabin", None)
        number = attrs.get("number", getattr(self.instance, "number", None))
        if cabin is not None and number is not None:
            clash = Seat.objects.filter(cabin=cabin, number=number)
            if self.instance is not None:
                clash = clash.exclude(pk=self.instance.pk)
            if clash.exists():
                raise serializers.ValidationError({"number": "Seat number already exists in this cabin."})
        return attrs


class BulkSeatUpdateItemSerializer(serializers.Serializer):
    id = serializers.IntegerField(min_value=1)
    updates = serializers.DictField()


class CabinSerializer(serializers.ModelSerializer):
    seat_count = serializers.IntegerField(source="seats.count", read_only=True)
    vendor_name = serializers.CharField(source="vendor.business_name", read_only=True, default=None)

    class Meta:
        model = Cabin
        fields = [
            "id",
            "cabin_code",
            "name",
            "description",
            "category",
            "price",
            "capacity",
            "amenities",
            "address",
            "city",
            "key_deposit",
            "locker_available",
            "is_active",
            "is_booking_active",
            "vendor",
            "vendor_name",
            "seat_count",
            "average_rating",
            "review_count",
            "created_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "cabin_code",
            "average_rating",
            "review_count",
            "created_by",
            "created_at",
            "updated_at",
        ]

    def validate_amenities(self, value):  # type: ignore
        if not isinstance(value, list):
            raise serializers.ValidationError("Amenities must be a list.")
        return value


class RoomSharingOptionSerializer(serializers.ModelSerializer):
    class Meta:
        model = RoomSharingOption
        fields = ["id", "room", "sharing_type", "capacity", "price", "available"]

    def validate(self, attrs):  # type: ignore
        capacity = attrs.get("capacity", getattr(self.instance, "capacity", 0))
        available = attrs.get("available", getattr(self.instance, "available", 0))
        if available > capacity:
            raise serializers.ValidationError({"available": "Available beds cannot exceed capacity."})
        return attrs


class HostelBedSerializer(serializers.ModelSerializer):
    status = serializers.CharField(read_only=True)

    class Meta:
        model = HostelBed
        fields = [
            "id",
            "room",
            "sharing_option",
            "number",
            "bed_type",
            "price",
            "amenities",
            "is_available",
            "status",
            "current_booking",
            "reserved_until",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["current_booking", "reserved_until", "created_at", "updated_at"]

    def validate(self, attrs):  # type: ignore
        room = attrs.get("room") or getattr(self.instance, "room", None)
        option = attrs.get("sharing_option")
        if option is not None and room is not None and option.room_id != room.id:
            raise serializers.ValidationError({"sharing_option": "Sharing option belongs to another room."})
        return attrs


class BulkBedItemSerializer(serializers.Serializer):
    number = serializers.IntegerField(min_value=1)
    bed_type = serializers.ChoiceField(choices=HostelBed.BedType.choices, default=HostelBed.BedType.SINGLE)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    sharing_option = serializers.PrimaryKeyRelatedField(
        queryset=RoomSharingOption.objects.all(),
        required=False,
        allow_null=True,
    )
    amenities = serializers.ListField(child=serializers.CharField(), required=False, default=list)


class BulkBedRoomSerializer(serializers.Serializer):
    room = serializers.PrimaryKeyRelatedField(queryset=HostelRoom.objects.select_related("hostel"))


class HostelRoomSerializer(serializers.ModelSerializer):
    sharing_options = RoomSharingOptionSerializer(many=True, read_only=True)

    class Meta:
        model = HostelRoom
        fields = [
            "id",
            "hostel",
            "name",
            "room_number",
            "description",
            "floor",
            "category",
            "base_price",
            "max_capacity",
            "amenities",
            "is_active",
            "sharing_options",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]


class HostelSerializer(serializers.ModelSerializer):
    room_count = serializers.IntegerField(source="rooms.count", read_only=True)

    class Meta:
        model = Hostel
        fields = [
            "id",
            "hostel_code",
            "name",
            "description",
            "address",
            "city",
            "state",
            "gender",
            "stay_type",
            "amenities",
            "contact_phone",
            "vendor",
            "manager",
            "is_active",
            "average_rating",
            "review_count",
            "room_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["hostel_code", "average_rating", "review_count", "created_at", "updated_at"]


class DateRangeSerializer(serializers.Serializer):
    start_date = serializers.DateField()
    end_date = serializers.DateField()

    def validate(self, attrs):  # type: ignore
        if attrs["end_date"] < attrs["start_date"]:
            raise serializers.ValidationError({"end_date": "End date must not be before start date."})
        return attrs


class OptionalDateRangeSerializer(serializers.Serializer):
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
