"""FilterSet definitions for cabin and hostel listings."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import Cabin, Hostel, HostelBed


class CabinFilterSet(django_filters.FilterSet):
    """FilterSet for Cabin used by the public listing and the admin panel."""

    city = django_filters.CharFilter(field_name="city", lookup_expr="icontains")
    price_min = django_filters.NumberFilter(field_name="price", lookup_expr="gte")
    price_max = django_filters.NumberFilter(field_name="price", lookup_expr="lte")
    search = django_filters.CharFilter(field_name="name", lookup_expr="icontains")

    class Meta:
        model = Cabin
        fields = [
            "category",
            "is_booking_active",
            "is_active",
            "locker_available",
            "vendor",
        ]


class HostelFilterSet(django_filters.FilterSet):
    city = django_filters.CharFilter(field_name="city", lookup_expr="icontains")
    state = django_filters.CharFilter(field_name="state", lookup_expr="icontains")

    class Meta:
        model = Hostel
        fields = ["gender", "stay_type", "is_active", "vendor", "manager"]


class HostelBedFilterSet(django_filters.FilterSet):
    hostel = django_filters.NumberFilter(field_name="room__hostel_id")

    class Meta:
        model = HostelBed
        fields = ["room", "sharing_option", "bed_type", "is_available"]
