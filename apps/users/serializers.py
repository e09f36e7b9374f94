"""Serializers for user and vendor endpoints."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import serializers  # type: ignore

from .models import PHONE_VALIDATOR, Vendor

User = get_user_model()


class VendorShortSerializer(serializers.ModelSerializer):
    class Meta:
        model = Vendor
        fields = ["id", "vendor_code", "business_name"]


class UserSerializer(serializers.ModelSerializer):
    """Profile as returned by auth and admin endpoints."""

    vendor = VendorShortSerializer(read_only=True)
    phone = serializers.CharField(validators=[PHONE_VALIDATOR], required=False, allow_null=True)

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "username",
            "first_name",
            "last_name",
            "phone",
            "gender",
            "role",
            "vendor",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "email",
            "role",
            "vendor",
            "is_active",
            "created_at",
            "updated_at",
        ]


class AdminUserSerializer(UserSerializer):
    """Admins may change roles, vendor affiliation and activation."""

    vendor_id = serializers.PrimaryKeyRelatedField(
        source="vendor",
        queryset=Vendor.objects.all(),
        required=False,
        allow_null=True,
        write_only=True,
    )

    class Meta(UserSerializer.Meta):
        fields = UserSerializer.Meta.fields + ["vendor_id"]
        read_only_fields = ["id", "email", "vendor", "created_at", "updated_at"]


class VendorSerializer(serializers.ModelSerializer):
    owner_email = serializers.ReadOnlyField(source="owner.email")

    class Meta:
        model = Vendor
        fields = [
            "id",
            "vendor_code",
            "business_name",
            "contact_person",
            "email",
            "phone",
            "address",
            "owner",
            "owner_email",
            "status",
            "commission_percentage",
            "payout_cycle",
            "is_active",
            "approved_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "vendor_code",
            "owner_email",
            "status",
            "approved_at",
            "created_at",
            "updated_at",
        ]
