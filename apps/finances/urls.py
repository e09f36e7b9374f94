"""URL routing for the finance domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import DepositRefundViewSet, PaymentViewSet, TransactionViewSet

router = DefaultRouter()
router.register(r"payments", PaymentViewSet, basename="payment")
router.register(r"transactions", TransactionViewSet, basename="transaction")
router.register(r"deposits", DepositRefundViewSet, basename="deposit")

urlpatterns = [
    path("", include(router.urls)),
]
