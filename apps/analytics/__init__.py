"""Analytics app package.

Read-only aggregates over bookings, transactions and deposits for the
admin dashboard and vendor revenue reports.
"""
