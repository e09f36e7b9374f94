"""
Razorpay Payment Gateway Integration

Orders are created through the Razorpay REST API with basic auth
(key id / key secret). Payments made in the checkout are confirmed by
checking the signature Razorpay returns to the browser, and again by
the signed webhook Razorpay calls once a payment is captured or fails.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import uuid
from decimal import ROUND_HALF_UP, Decimal

import requests
from django.conf import settings  # type: ignore

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30


class RazorpayError(Exception):
    """Raised when Razorpay rejects a request or cannot be reached."""


def _credentials() -> tuple[str, str]:
    return (
        getattr(settings, "RAZORPAY_KEY_ID", ""),
        getattr(settings, "RAZORPAY_KEY_SECRET", ""),
    )


def _base_url() -> str:
    return getattr(settings, "RAZORPAY_API_BASE_URL", "https://api.razorpay.com/v1/")


def to_paise(amount: Decimal | float | int | str) -> int:
    """Razorpay takes amounts in the smallest currency unit."""

    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def create_order(amount: Decimal, currency: str = "INR", receipt: str = "", notes: dict | None = None) -> dict:
    """
    Create an order for the checkout.

    Args:
        amount: Amount in rupees
        currency: ISO currency code
        receipt: Our reference shown in the Razorpay dashboard

    Returns:
        dict: Razorpay order (``id``, ``amount`` in paise, ``currency``, ``receipt``, ``status``)
    """
    key_id, key_secret = _credentials()
    payload = {
        "amount": to_paise(amount),
        "currency": currency,
        "receipt": receipt,
        "payment_capture": 1,
        "notes": notes or {},
    }
    logger.info(f"Creating Razorpay order for {receipt}, amount {amount} {currency}")

    # Local development without keys
    if settings.DEBUG and not key_id:
        logger.warning("Using emulated Razorpay orders (DEBUG mode without API key)")
        return {
            "id": f"order_{uuid.uuid4().hex[:14]}",
            "entity": "order",
            "amount": payload["amount"],
            "currency": currency,
            "receipt": receipt,
            "status": "created",
            "notes": payload["notes"],
        }

    if not key_id or not key_secret:
        raise RazorpayError("Razorpay credentials are not configured")

    try:
        response = requests.post(
            f"{_base_url()}orders",
            json=payload,
            auth=(key_id, key_secret),
            timeout=REQUEST_TIMEOUT,
        )
        response.raise_for_status()
        order = response.json()
    except requests.exceptions.RequestException as e:
        logger.error(f"Razorpay order request failed: {e}")
        raise RazorpayError(f"Could not create Razorpay order: {e}") from e

    if "error" in order:
        message = order["error"].get("description", "Unknown error")
        logger.error(f"Razorpay returned an error: {message}")
        raise RazorpayError(message)

    logger.info(f"Razorpay order {order.get('id')} created")
    return order


def fetch_payment(payment_id: str) -> dict:
    """Fetch a payment from Razorpay to check its current status."""

    key_id, key_secret = _credentials()
    if settings.DEBUG and not key_id:
        return {"id": payment_id, "entity": "payment", "status": "captured"}

    if not key_id or not key_secret:
        raise RazorpayError("Razorpay credentials are not configured")

    try:
        response = requests.get(
            f"{_base_url()}payments/{payment_id}",
            auth=(key_id, key_secret),
            timeout=REQUEST_TIMEOUT,
        )
        response.raise_for_status()
        return response.json()
    except requests.exceptions.RequestException as e:
        logger.error(f"Razorpay payment fetch failed for {payment_id}: {e}")
        raise RazorpayError(f"Could not fetch Razorpay payment: {e}") from e


def generate_signature(order_id: str, payment_id: str, secret: str | None = None) -> str:
    """HMAC-SHA256 of ``order_id|payment_id`` with the key secret, hex encoded."""

    key = secret if secret is not None else _credentials()[1]
    message = f"{order_id}|{payment_id}".encode()
    return hmac.new(key.encode(), message, hashlib.sha256).hexdigest()


def verify_signature(order_id: str, payment_id: str, signature: str) -> bool:
    if not order_id or not payment_id or not signature:
        return False
    expected = generate_signature(order_id, payment_id)
    return hmac.compare_digest(expected, signature)


def verify_webhook_signature(body: bytes, signature: str) -> bool:
    """
    Check the ``X-Razorpay-Signature`` header of a webhook call.

    Razorpay signs the raw request body with the webhook secret; the key
    secret is used when no separate webhook secret is configured.
    """
    secret = getattr(settings, "RAZORPAY_WEBHOOK_SECRET", "") or _credentials()[1]
    if not secret or not signature:
        return False
    expected = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature)
