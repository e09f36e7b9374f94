"""User and vendor management API views."""

from __future__ import annotations

import logging

from django.contrib.auth import get_user_model  # type: ignore
from django.db import transaction  # type: ignore
from django.utils import timezone  # type: ignore
from rest_framework import mixins, permissions, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore

from shared.api.mixins import EnvelopeResponseMixin
from shared.api.responses import api_error, api_response

from .models import Vendor
from .permissions import IsAdminOrVendorStaff, IsAdminRole, is_platform_admin
from .serializers import AdminUserSerializer, VendorSerializer

User = get_user_model()

logger = logging.getLogger(__name__)


class UserViewSet(
    EnvelopeResponseMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    """Admin management of platform users (listing, role changes, deactivation)."""

    serializer_class = AdminUserSerializer
    queryset = User.objects.select_related("vendor").all()
    permission_classes = [IsAdminRole]
    filterset_fields = ["role", "is_active", "vendor"]


class VendorViewSet(EnvelopeResponseMixin, viewsets.ModelViewSet):
    """
    Vendors (tenants).

    Admins manage every vendor; vendor staff can only read and update
    the profile of their own vendor. Commission settings are admin-only.
    """

    serializer_class = VendorSerializer
    queryset = Vendor.objects.select_related("owner").all()
    filterset_fields = ["status", "is_active"]

    def get_permissions(self):  # type: ignore
        if self.action in {"list", "retrieve", "update", "partial_update"}:
            return [IsAdminOrVendorStaff()]
        return [IsAdminRole()]

    def get_queryset(self):  # type: ignore
        user = self.request.user
        qs = super().get_queryset()
        if is_platform_admin(user):
            return qs
        vendor = user.get_vendor()
        return qs.filter(pk=vendor.pk) if vendor else qs.none()

    def perform_update(self, serializer):  # type: ignore
        if not is_platform_admin(self.request.user):
            serializer.validated_data.pop("commission_percentage", None)
            serializer.validated_data.pop("owner", None)
            serializer.validated_data.pop("is_active", None)
        serializer.save()

    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):  # type: ignore
        vendor: Vendor = self.get_object()  # type: ignore
        if vendor.status == Vendor.Status.APPROVED:
            return api_error("Vendor is already approved")

        with transaction.atomic():
            vendor.status = Vendor.Status.APPROVED
            vendor.approved_at = timezone.now()
            vendor.save(update_fields=["status", "approved_at", "updated_at"])
            if vendor.owner and vendor.owner.role != User.RoleChoices.VENDOR:
                vendor.owner.role = User.RoleChoices.VENDOR
                vendor.owner.save(update_fields=["role"])

        logger.info(f"Vendor {vendor.vendor_code} approved by {request.user.email}")
        return api_response(VendorSerializer(vendor).data, "Vendor approved")

    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):  # type: ignore
        vendor: Vendor = self.get_object()  # type: ignore
        vendor.status = Vendor.Status.REJECTED
        vendor.save(update_fields=["status", "updated_at"])
        return api_response(VendorSerializer(vendor).data, "Vendor rejected")
