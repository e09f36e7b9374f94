"""API views for analytics.

Dashboard counters and revenue figures for admins, limited to the
vendor's own data for vendor staff.
"""

from __future__ import annotations

from decimal import Decimal

from django.db import models  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.bookings.models import Booking, HostelBooking
from apps.finances.models import DepositRefund, Transaction
from apps.users.permissions import IsAdminOrVendorStaff, is_platform_admin
from shared.api.responses import api_response

ZERO = Decimal('0.00')
REVENUE_TRANSACTION_TYPES = [Transaction.TransactionType.BOOKING, Transaction.TransactionType.RENEWAL]


def _scoped(queryset, user, field: str = 'vendor'):  # type: ignore
    if is_platform_admin(user):
        return queryset
    vendor = user.get_vendor()
    if vendor is None:
        return queryset.none()
    return queryset.filter(**{field: vendor})


def _status_counts(queryset) -> dict[str, int]:  # type: ignore
    rows = queryset.values('status').annotate(total=models.Count('id'))
    return {row['status']: row['total'] for row in rows}


class DashboardAnalyticsView(APIView):
    """Return booking, revenue and deposit statistics for the admin dashboard."""

    permission_classes = [IsAdminOrVendorStaff]

    def get(self, request, format=None):  # type: ignore
        user = request.user
        booking_qs = _scoped(Booking.objects.all(), user)
        hostel_qs = _scoped(HostelBooking.objects.all(), user)
        transaction_qs = _scoped(
            Transaction.objects.filter(
                status=Transaction.Status.COMPLETED,
                transaction_type__in=REVENUE_TRANSACTION_TYPES,
            ),
            user,
        )
        deposit_qs = _scoped(DepositRefund.objects.all(), user)

        paid_bookings = booking_qs.filter(payment_status=Booking.PaymentStatus.COMPLETED)
        totals = paid_bookings.aggregate(
            commission=models.Sum('commission_amount'),
            net_revenue=models.Sum('net_revenue'),
        )
        active_deposits = deposit_qs.filter(status=DepositRefund.Status.ACTIVE, is_key_deposit_paid=True)

        return api_response(
            {
                'bookings': {
                    'total': booking_qs.count(),
                    'by_status': _status_counts(booking_qs),
                },
                'hostel_bookings': {
                    'total': hostel_qs.count(),
                    'by_status': _status_counts(hostel_qs),
                },
                'revenue': transaction_qs.aggregate(total=models.Sum('amount')).get('total') or ZERO,
                'commission': totals['commission'] or ZERO,
                'net_revenue': totals['net_revenue'] or ZERO,
                'active_deposits': {
                    'count': active_deposits.count(),
                    'amount': active_deposits.aggregate(total=models.Sum('key_deposit')).get('total') or ZERO,
                },
            }
        )


class VendorRevenueView(APIView):
    """Per-vendor totals over paid cabin bookings."""

    permission_classes = [IsAdminOrVendorStaff]

    def get(self, request, format=None):  # type: ignore
        bookings = _scoped(
            Booking.objects.filter(payment_status=Booking.PaymentStatus.COMPLETED, vendor__isnull=False),
            request.user,
        )
        rows = (
            bookings.values('vendor_id', 'vendor__vendor_code', 'vendor__business_name')
            .annotate(
                bookings=models.Count('id'),
                total_revenue=models.Sum('total_price'),
                commission=models.Sum('commission_amount'),
                net_revenue=models.Sum('net_revenue'),
            )
            .order_by('-total_revenue')
        )
        data = [
            {
                'vendor_id': row['vendor_id'],
                'vendor_code': row['vendor__vendor_code'],
                'business_name': row['vendor__business_name'],
                'bookings': row['bookings'],
                'total_revenue': row['total_revenue'] or ZERO,
                'commission': row['commission'] or ZERO,
                'net_revenue': row['net_revenue'] or ZERO,
            }
            for row in rows
        ]
        return api_response(data, count=len(data))
