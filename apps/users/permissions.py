"""Role checks and vendor data scoping shared by every API."""

from __future__ import annotations

from rest_framework import permissions  # type: ignore


def is_platform_admin(user) -> bool:  # type: ignore
    if not user or not user.is_authenticated:
        return False
    if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
        return True
    return hasattr(user, "is_admin_role") and user.is_admin_role()


def is_vendor_staff(user) -> bool:  # type: ignore
    if not user or not user.is_authenticated:
        return False
    return hasattr(user, "is_vendor_staff") and user.is_vendor_staff()


def restrict_to_vendor(queryset, user, field: str = "vendor"):  # type: ignore
    """Limit ``queryset`` to rows of the vendor the user works for."""

    vendor = user.get_vendor()
    if vendor is None:
        return queryset.none()
    return queryset.filter(**{field: vendor})


class IsAdminRole(permissions.BasePermission):
    """Platform admins and super admins only."""

    def has_permission(self, request, view) -> bool:  # type: ignore
        return is_platform_admin(request.user)


class IsAdminOrVendorStaff(permissions.BasePermission):
    """Admins, vendors and vendor employees."""

    def has_permission(self, request, view) -> bool:  # type: ignore
        return is_platform_admin(request.user) or is_vendor_staff(request.user)


class IsAdminOrReadOnly(permissions.BasePermission):
    """Anyone may read, only admins write."""

    def has_permission(self, request, view) -> bool:  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        return is_platform_admin(request.user)


class IsInventoryManagerOrReadOnly(permissions.BasePermission):
    """
    Public read access to listings; writes by admins, vendor staff
    and hostel managers. Object writes are further limited to the
    owning vendor (or the assigned hostel manager).
    """

    def has_permission(self, request, view) -> bool:  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        user = request.user
        if is_platform_admin(user) or is_vendor_staff(user):
            return True
        return bool(user and user.is_authenticated and user.is_hostel_manager())

    def has_object_permission(self, request, view, obj) -> bool:  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        user = request.user
        if is_platform_admin(user):
            return True
        vendor_id = getattr(obj, "owning_vendor_id", None)
        if is_vendor_staff(user):
            vendor = user.get_vendor()
            return vendor is not None and vendor_id == vendor.id
        manager_id = getattr(obj, "owning_manager_id", None)
        return manager_id is not None and manager_id == user.id
