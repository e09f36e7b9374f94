"""Coupon API views."""

from __future__ import annotations

import logging

from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore

from apps.users.permissions import IsAdminOrVendorStaff, is_platform_admin, restrict_to_vendor
from shared.api.mixins import EnvelopeResponseMixin
from shared.api.responses import api_error, api_response

from .models import Coupon
from .serializers import CouponCheckSerializer, CouponPublicSerializer, CouponSerializer
from .services import (
    CouponValidationError,
    ReferralCouponExistsError,
    apply_coupon,
    available_coupons,
    generate_referral_coupon,
)

logger = logging.getLogger(__name__)


class CouponViewSet(EnvelopeResponseMixin, viewsets.ModelViewSet):
    """
    Coupon management for admins and vendors plus the student-facing
    ``validate``, ``apply``, ``available`` and ``referral`` endpoints.
    """

    queryset = Coupon.objects.select_related("vendor", "generated_by").prefetch_related(
        "specific_users", "exclude_users"
    )
    serializer_class = CouponSerializer
    filterset_fields = ["is_active", "scope", "applicable_for", "discount_type", "vendor"]

    STUDENT_ACTIONS = {"validate", "apply", "available", "referral"}

    def get_permissions(self):  # type: ignore
        if self.action in self.STUDENT_ACTIONS:
            return [permissions.IsAuthenticated()]
        return [IsAdminOrVendorStaff()]

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        user = self.request.user
        if is_platform_admin(user):
            return qs
        return restrict_to_vendor(qs, user)

    def perform_create(self, serializer):  # type: ignore
        user = self.request.user
        extra = {"created_by": user}
        if not is_platform_admin(user):
            # Vendor coupons are always bound to the vendor creating them
            extra.update(vendor=user.get_vendor(), scope=Coupon.Scope.VENDOR)
        serializer.save(**extra)

    def perform_update(self, serializer):  # type: ignore
        extra = {"updated_by": self.request.user}
        if not is_platform_admin(self.request.user):
            extra.update(vendor=self.request.user.get_vendor(), scope=Coupon.Scope.VENDOR)
        serializer.save(**extra)

    def _check(self, request):  # type: ignore
        serializer = CouponCheckSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        return apply_coupon(
            data["code"],
            request.user,
            data["amount"],
            data["booking_type"],
            data.get("cabin"),
        )

    @action(detail=False, methods=["post"])
    def validate(self, request):  # type: ignore
        try:
            applied = self._check(request)
        except CouponValidationError as exc:
            return api_error(str(exc))
        return api_response(
            {
                "coupon": CouponPublicSerializer(applied.coupon).data,
                "discount_amount": applied.discount,
                "final_amount": applied.final_amount,
            },
            "Coupon is valid",
        )

    @action(detail=False, methods=["post"])
    def apply(self, request):  # type: ignore
        try:
            applied = self._check(request)
        except CouponValidationError as exc:
            return api_error(str(exc))
        return api_response(
            {
                "code": applied.coupon.code,
                "original_amount": applied.original_amount,
                "discount_amount": applied.discount,
                "final_amount": applied.final_amount,
            },
            "Coupon applied successfully",
        )

    @action(detail=False, methods=["get"])
    def available(self, request):  # type: ignore
        coupons = available_coupons(request.user, request.query_params.get("booking_type"))
        data = CouponPublicSerializer(coupons, many=True).data
        return api_response(data, count=len(data))

    @action(detail=False, methods=["get", "post"])
    def referral(self, request):  # type: ignore
        if request.method == "GET":
            coupon = Coupon.objects.filter(
                generated_by=request.user,
                is_referral_coupon=True,
                is_active=True,
            ).first()
            if coupon is None:
                return api_error("No referral coupon found", status.HTTP_404_NOT_FOUND)
            return api_response(CouponSerializer(coupon).data)

        try:
            coupon = generate_referral_coupon(request.user)
        except ReferralCouponExistsError as exc:
            return api_error(str(exc))
        return api_response(
            CouponSerializer(coupon).data,
            "Referral coupon generated successfully",
            status.HTTP_201_CREATED,
        )
