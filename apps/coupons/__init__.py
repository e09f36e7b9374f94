"""Coupons app: discount codes, referral coupons and redemption tracking."""
