"""URL routing for analytics endpoints."""

from django.urls import path  # type: ignore

from .views import DashboardAnalyticsView, VendorRevenueView


urlpatterns = [
    # Do not prefix with 'analytics/' here; the prefix is defined in config.urls
    path('dashboard/', DashboardAnalyticsView.as_view(), name='analytics-dashboard'),
    path('vendor-revenue/', VendorRevenueView.as_view(), name='analytics-vendor-revenue'),
]
