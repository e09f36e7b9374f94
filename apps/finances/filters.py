"""FilterSet definitions for transactions and key deposits."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import DepositRefund, Transaction


class TransactionFilterSet(django_filters.FilterSet):
    created_from = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    created_to = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")

    class Meta:
        model = Transaction
        fields = ["status", "transaction_type", "booking_type", "vendor", "booking", "hostel_booking"]


class DepositRefundFilterSet(django_filters.FilterSet):
    refunded = django_filters.BooleanFilter(field_name="key_deposit_refunded")
    cabin = django_filters.NumberFilter(field_name="cabin_id")

    class Meta:
        model = DepositRefund
        fields = ["status", "payment_status", "refund_method", "vendor"]
