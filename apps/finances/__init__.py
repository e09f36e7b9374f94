"""Finances app package.

Razorpay checkout, booking transactions and refundable key deposits.
"""
