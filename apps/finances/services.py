"""Payment, renewal and key deposit services."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from django.conf import settings  # type: ignore
from django.db import transaction  # type: ignore
from django.db.models import Count, Q, Sum  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.models import Booking, HostelBooking
from apps.bookings.services import (
    SEAT_UNAVAILABLE_MESSAGE,
    BookingError,
    SeatUnavailableError,
    complete_booking_payment,
    confirm_hostel_payment,
    expire_reservation_if_due,
    renew_booking,
    seat_conflicts,
)

from . import razorpay_service
from .models import DepositRefund, Transaction

logger = logging.getLogger(__name__)


class PaymentError(Exception):
    """Raised when a payment cannot be started or confirmed."""


class RefundError(Exception):
    """Raised when a key deposit refund is not allowed."""


class TransactionError(Exception):
    """Raised when a transaction cannot be processed in its current state."""


# ---------------------------------------------------------------------------
# Razorpay checkout
# ---------------------------------------------------------------------------

def find_booking(booking_type: str, identifier: Any, user=None):  # type: ignore
    """Look a booking up by primary key or reference, optionally only among ``user``'s own."""

    model = HostelBooking if booking_type == Transaction.BookingType.HOSTEL else Booking
    lookup = Q(booking_id=str(identifier))
    if str(identifier).isdigit():
        lookup |= Q(pk=int(identifier))
    qs = model.objects.filter(lookup)
    if user is not None:
        qs = qs.filter(user=user)
    booking = qs.select_related("user").first()
    if booking is None:
        raise model.DoesNotExist("Booking not found")
    return booking


def _ensure_payable(booking) -> None:  # type: ignore
    if isinstance(booking, HostelBooking) and expire_reservation_if_due(booking):
        raise PaymentError("Reservation has expired")
    if booking.payment_status == booking.PaymentStatus.COMPLETED:
        raise PaymentError("Booking is already paid")
    if booking.status in (booking.Status.CANCELLED, booking.Status.EXPIRED):
        raise PaymentError("Booking is cancelled or expired")


def create_payment_order(
    booking,  # type: ignore
    amount: Decimal | None = None,
    currency: str | None = None,
) -> tuple[dict, Transaction]:
    """Open a Razorpay order for ``booking`` and record a pending transaction."""

    _ensure_payable(booking)
    booking_type = (
        Transaction.BookingType.HOSTEL if isinstance(booking, HostelBooking) else Transaction.BookingType.CABIN
    )
    amount = Decimal(amount) if amount is not None else booking.total_price
    currency = currency or settings.DEFAULT_CURRENCY

    try:
        order = razorpay_service.create_order(
            amount,
            currency,
            receipt=booking.booking_id,
            notes={"booking_id": booking.booking_id, "booking_type": booking_type},
        )
    except razorpay_service.RazorpayError as e:
        raise PaymentError(str(e)) from e

    with transaction.atomic():
        booking.razorpay_order_id = order["id"]
        booking.save(update_fields=["razorpay_order_id", "updated_at"])
        txn = Transaction.objects.create(
            user=booking.user,
            booking=booking if booking_type == Transaction.BookingType.CABIN else None,
            hostel_booking=booking if booking_type == Transaction.BookingType.HOSTEL else None,
            booking_type=booking_type,
            transaction_type=Transaction.TransactionType.BOOKING,
            amount=amount,
            currency=currency,
            razorpay_order_id=order["id"],
            applied_coupon=getattr(booking, "applied_coupon", None),
            vendor=booking.vendor,
        )

    logger.info(f"Payment order {order['id']} opened for {booking.booking_id} ({txn.transaction_id})")
    return order, txn


def _reject_if_closed(booking, order_id: str) -> None:  # type: ignore
    """
    Refuse to settle a booking that is paid, cancelled or expired.

    A payment that arrives after the booking was rolled back or expired
    leaves its pending transaction failed so it shows up for a refund.
    """
    try:
        _ensure_payable(booking)
    except PaymentError:
        if booking.payment_status != booking.PaymentStatus.COMPLETED:
            Transaction.objects.filter(
                razorpay_order_id=order_id,
                status=Transaction.Status.PENDING,
            ).update(status=Transaction.Status.FAILED, updated_at=timezone.now())
            logger.warning(f"Payment for order {order_id} arrived after {booking.booking_id} was closed")
        raise


def _settle_payment(booking, txn, order_id: str, payment_id: str, signature: str = ""):  # type: ignore
    """Mark ``booking`` paid and ``txn`` completed; the confirmation is queued after commit."""
    from apps.notifications.tasks import send_booking_confirmation  # Local import to prevent circular dependency

    is_hostel = isinstance(booking, HostelBooking)
    with transaction.atomic():
        try:
            if is_hostel:
                confirm_hostel_payment(booking, payment_id)
            else:
                # The seat may have been taken while the payment was not counted as pending
                conflicts = (
                    seat_conflicts(booking.seat, booking.start_date, booking.end_date, exclude_booking_id=booking.pk)
                    .select_for_update()
                )
                if conflicts.exists():
                    raise SeatUnavailableError(SEAT_UNAVAILABLE_MESSAGE)
                complete_booking_payment(booking, payment_id)
        except BookingError as e:
            raise PaymentError(str(e)) from e

        if txn is None:
            txn = Transaction.objects.create(
                user=booking.user,
                booking=None if is_hostel else booking,
                hostel_booking=booking if is_hostel else None,
                booking_type=Transaction.BookingType.HOSTEL if is_hostel else Transaction.BookingType.CABIN,
                amount=booking.total_price,
                currency=settings.DEFAULT_CURRENCY,
                razorpay_order_id=order_id,
                vendor=booking.vendor,
            )
        txn.mark_completed(payment_id, signature)

        booking_type = txn.booking_type
        transaction.on_commit(lambda: send_booking_confirmation.delay(booking_type, booking.pk))

    logger.info(f"Payment {payment_id} settled for {booking.booking_id} ({txn.transaction_id})")
    return txn


def verify_payment(booking, order_id: str, payment_id: str, signature: str):  # type: ignore
    """
    Confirm a checkout payment.

    The signature must match ``order_id|payment_id`` and the booking must
    still be open; on success the booking is marked paid, its key deposit
    activated, the transaction completed and a confirmation e-mail is
    queued after commit.
    """
    if not razorpay_service.verify_signature(order_id, payment_id, signature):
        logger.warning(f"Invalid Razorpay signature for order {order_id}")
        raise PaymentError("Invalid payment signature")
    if booking.razorpay_order_id and booking.razorpay_order_id != order_id:
        raise PaymentError("Order does not belong to this booking")
    _reject_if_closed(booking, order_id)

    txn = Transaction.objects.filter(razorpay_order_id=order_id).first()
    _settle_payment(booking, txn, order_id, payment_id, signature)
    return booking


# ---------------------------------------------------------------------------
# Razorpay webhook
# ---------------------------------------------------------------------------

WEBHOOK_CAPTURED_EVENTS = ("payment.captured", "order.paid")


def _webhook_entity(payload: dict, name: str) -> dict:
    return (payload.get(name) or {}).get("entity") or {}


def handle_webhook_event(event: str, payload: dict) -> str:
    """
    Apply a Razorpay webhook event to the matching booking transaction.

    ``payment.captured`` and ``order.paid`` settle the booking like a
    verified checkout, ``payment.failed`` fails the pending transaction
    and ``payment.authorized`` is settled only once Razorpay reports the
    payment as captured.

    Returns:
        str: "settled", "failed", "rejected", "duplicate" or "ignored"
    """
    payment = _webhook_entity(payload, "payment")
    payment_id = payment.get("id", "")
    order_id = payment.get("order_id") or _webhook_entity(payload, "order").get("id", "")

    if event == "payment.authorized":
        try:
            payment = razorpay_service.fetch_payment(payment_id)
        except razorpay_service.RazorpayError as e:
            raise PaymentError(str(e)) from e
        if payment.get("status") != "captured":
            return "ignored"
        event = "payment.captured"

    if event not in WEBHOOK_CAPTURED_EVENTS and event != "payment.failed":
        logger.info(f"Unhandled Razorpay webhook event {event}")
        return "ignored"

    lookup = Q()
    if order_id:
        lookup |= Q(razorpay_order_id=order_id)
    if payment_id:
        lookup |= Q(razorpay_payment_id=payment_id)
    if not lookup:
        return "ignored"
    txn = (
        Transaction.objects.filter(lookup, transaction_type=Transaction.TransactionType.BOOKING)
        .order_by("-created_at")
        .first()
    )
    booking = txn.target_booking if txn is not None else None
    if booking is None:
        logger.info(f"No booking transaction for Razorpay order {order_id} / payment {payment_id}")
        return "ignored"

    if event == "payment.failed":
        if txn.status != Transaction.Status.PENDING:
            return "ignored"
        txn.razorpay_payment_id = payment_id
        txn.status = Transaction.Status.FAILED
        txn.save(update_fields=["razorpay_payment_id", "status", "updated_at"])
        type(booking).objects.filter(pk=booking.pk, payment_status=booking.PaymentStatus.PENDING).update(
            payment_status=booking.PaymentStatus.FAILED,
            updated_at=timezone.now(),
        )
        logger.info(f"Payment {payment_id} failed for {booking.booking_id}")
        return "failed"

    if txn.status == Transaction.Status.COMPLETED or booking.payment_status == booking.PaymentStatus.COMPLETED:
        return "duplicate"
    try:
        _reject_if_closed(booking, order_id)
        _settle_payment(booking, txn, order_id, payment_id)
    except PaymentError as e:
        logger.warning(f"Webhook payment {payment_id} not applied to {booking.booking_id}: {e}")
        return "rejected"
    return "settled"


def payment_status(booking) -> dict:  # type: ignore
    if isinstance(booking, HostelBooking):
        transactions = Transaction.objects.filter(hostel_booking=booking)
    else:
        transactions = Transaction.objects.filter(booking=booking)
    latest = transactions.order_by("-created_at").first()
    return {
        "booking_id": booking.booking_id,
        "status": booking.status,
        "payment_status": booking.payment_status,
        "amount": booking.total_price,
        "razorpay_order_id": booking.razorpay_order_id,
        "razorpay_payment_id": booking.razorpay_payment_id,
        "payment_date": booking.payment_date,
        "transaction_id": latest.transaction_id if latest else None,
    }


# ---------------------------------------------------------------------------
# Renewals
# ---------------------------------------------------------------------------

@transaction.atomic
def process_renewal(txn: Transaction, renewed_by=None) -> Booking:  # type: ignore
    """Extend the cabin booking of a completed renewal transaction."""

    if txn.transaction_type != Transaction.TransactionType.RENEWAL:
        raise TransactionError("Transaction is not a renewal")
    if txn.status != Transaction.Status.COMPLETED:
        raise TransactionError("Renewal transaction is not completed")
    if txn.booking is None or not txn.new_end_date:
        raise TransactionError("Renewal transaction has no booking or new end date")

    booking = txn.booking
    if txn.previous_end_date is None:
        txn.previous_end_date = booking.end_date
        txn.save(update_fields=["previous_end_date", "updated_at"])

    try:
        return renew_booking(booking, txn.new_end_date, txn.additional_months, renewed_by=renewed_by)
    except BookingError as e:
        raise TransactionError(str(e)) from e


# ---------------------------------------------------------------------------
# Key deposits
# ---------------------------------------------------------------------------

@transaction.atomic
def process_refund(
    deposit: DepositRefund,
    refund_amount: Decimal | None = None,
    refund_reason: str = "",
    refund_method: str = "",
    transaction_id: str = "",
    processed_by=None,  # type: ignore
) -> DepositRefund:
    if deposit.key_deposit_refunded:
        raise RefundError("Deposit has already been refunded")
    amount = Decimal(refund_amount) if refund_amount is not None else deposit.key_deposit
    if amount < 0 or amount > deposit.key_deposit:
        raise RefundError("Refund amount must be between 0 and the key deposit")

    deposit.mark_refunded(
        amount,
        reason=refund_reason,
        method=refund_method,
        transaction_id=transaction_id,
        processed_by=processed_by,
    )
    Transaction.objects.create(
        user=deposit.user,
        booking=deposit.booking,
        booking_type=Transaction.BookingType.CABIN,
        transaction_type=Transaction.TransactionType.REFUND,
        amount=amount,
        currency=settings.DEFAULT_CURRENCY,
        status=Transaction.Status.COMPLETED,
        vendor=deposit.vendor,
    )
    logger.info(f"Key deposit of booking {deposit.booking_id} refunded ({amount})")
    return deposit


def bulk_refund(deposits, **refund_kwargs) -> dict:  # type: ignore
    """Refund each deposit in full; already refunded ones are skipped."""

    processed, skipped = [], []
    for deposit in deposits:
        try:
            process_refund(deposit, **refund_kwargs)
        except RefundError as e:
            skipped.append({"id": deposit.pk, "reason": str(e)})
            continue
        processed.append(deposit.pk)

    logger.info(f"Bulk refund finished: {len(processed)} processed, {len(skipped)} skipped")
    return {
        "processed": len(processed),
        "skipped": len(skipped),
        "processed_ids": processed,
        "skipped_details": skipped,
    }


def deposit_statistics(queryset) -> dict:  # type: ignore
    totals = queryset.aggregate(
        total_deposits=Count("id"),
        total_amount=Sum("key_deposit"),
        active=Count("id", filter=Q(status=DepositRefund.Status.ACTIVE)),
        expired=Count("id", filter=Q(status=DepositRefund.Status.EXPIRED)),
        refunded=Count("id", filter=Q(status=DepositRefund.Status.REFUNDED)),
        refunded_amount=Sum("refund_amount", filter=Q(key_deposit_refunded=True)),
        pending_refunds=Count(
            "id",
            filter=Q(
                status=DepositRefund.Status.EXPIRED,
                key_deposit_refunded=False,
                payment_status=DepositRefund.PaymentStatus.PAID,
            ),
        ),
    )
    totals["total_amount"] = totals["total_amount"] or Decimal("0.00")
    totals["refunded_amount"] = totals["refunded_amount"] or Decimal("0.00")
    return totals
