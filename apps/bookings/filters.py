"""FilterSet definitions for booking listings."""

from __future__ import annotations

import django_filters  # type: ignore
from django.db.models import Q  # type: ignore

from .models import Booking, HostelBooking


class BookingFilterSet(django_filters.FilterSet):
    """Filters of the admin booking listing."""

    start_from = django_filters.DateFilter(field_name="start_date", lookup_expr="gte")
    start_to = django_filters.DateFilter(field_name="start_date", lookup_expr="lte")
    end_from = django_filters.DateFilter(field_name="end_date", lookup_expr="gte")
    end_to = django_filters.DateFilter(field_name="end_date", lookup_expr="lte")
    search = django_filters.CharFilter(method="filter_search")

    class Meta:
        model = Booking
        fields = ["status", "payment_status", "cabin", "seat", "vendor", "user"]

    def filter_search(self, queryset, name, value):  # type: ignore
        if not value:
            return queryset
        return queryset.filter(
            Q(booking_id__icontains=value) | Q(user__email__icontains=value) | Q(coupon_code__iexact=value)
        )


class HostelBookingFilterSet(django_filters.FilterSet):
    start_from = django_filters.DateFilter(field_name="start_date", lookup_expr="gte")
    start_to = django_filters.DateFilter(field_name="start_date", lookup_expr="lte")

    class Meta:
        model = HostelBooking
        fields = ["status", "payment_status", "hostel", "room", "bed", "booking_duration"]
