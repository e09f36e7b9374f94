"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging
import time
from datetime import timedelta

from celery import shared_task  # type: ignore
from django.conf import settings  # type: ignore
from django.db import transaction  # type: ignore
from django.utils import timezone  # type: ignore

from apps.coupons.services import revert_usage

from .models import Booking, HostelBooking
from .services import expire_reservation_if_due

logger = logging.getLogger(__name__)

# Pause between two full rollback batches
ROLLBACK_BATCH_PAUSE = 0.05


# ============================================================================
# PERIODIC TASKS (run by Celery Beat and once when a worker starts)
# ============================================================================

@shared_task(name="bookings.expire_completed_bookings")
def expire_completed_bookings() -> dict[str, int]:
    """
    Expire paid bookings whose period is over and free their seats.

    Finds bookings with ``end_date`` before today that were paid and
    are not expired yet, marks them expired and expires their key
    deposits. Unpaid bookings older than 24 hours are hidden from the
    student's current bookings.

    Runs every 10 minutes.

    Returns:
        dict: {"expired": expired bookings, "hidden": hidden unpaid bookings}
    """
    from apps.finances.models import DepositRefund  # Local import to prevent circular dependency

    today = timezone.localdate()
    now = timezone.now()

    with transaction.atomic():
        expired_ids = list(
            Booking.objects.filter(
                end_date__lt=today,
                payment_status=Booking.PaymentStatus.COMPLETED,
            )
            .exclude(status=Booking.Status.EXPIRED)
            .values_list("id", flat=True)
        )
        expired_count = 0
        if expired_ids:
            expired_count = Booking.objects.filter(id__in=expired_ids).update(
                status=Booking.Status.EXPIRED,
                updated_at=now,
            )
            DepositRefund.objects.filter(booking_id__in=expired_ids).exclude(
                status=DepositRefund.Status.REFUNDED
            ).update(
                is_key_deposit_paid=False,
                status=DepositRefund.Status.EXPIRED,
                updated_at=now,
            )

    stale_before = now - timedelta(hours=settings.BOOKING_HIDE_UNPAID_AFTER_HOURS)
    hidden_count = (
        Booking.objects.filter(created_at__lt=stale_before, display=True)
        .exclude(payment_status=Booking.PaymentStatus.COMPLETED)
        .update(display=False, updated_at=now)
    )

    if expired_count or hidden_count:
        logger.info(f"Expired {expired_count} finished bookings, hid {hidden_count} stale unpaid bookings")

    return {"expired": expired_count, "hidden": hidden_count}


def _rollback_batch(batch_ids: list[int], now) -> int:  # type: ignore
    """Fail and cancel one batch of unpaid bookings, giving back their coupons."""
    from apps.finances.models import DepositRefund  # Local import to prevent circular dependency

    with transaction.atomic():
        updated = Booking.objects.filter(
            id__in=batch_ids,
            payment_status=Booking.PaymentStatus.PENDING,
        ).update(
            payment_status=Booking.PaymentStatus.FAILED,
            status=Booking.Status.CANCELLED,
            cancelled_at=now,
            updated_at=now,
        )
        for booking in (
            Booking.objects.filter(
                id__in=batch_ids,
                applied_coupon__isnull=False,
                payment_status=Booking.PaymentStatus.FAILED,
                cancelled_at=now,
            )
            .select_related("applied_coupon", "user")
        ):
            revert_usage(booking.applied_coupon, booking.user)
        DepositRefund.objects.filter(booking_id__in=batch_ids).update(
            status=DepositRefund.Status.EXPIRED,
            updated_at=now,
        )
    return updated


@shared_task(name="bookings.rollback_unpaid_bookings")
def rollback_unpaid_bookings() -> dict[str, int]:
    """
    Cancel bookings left unpaid for longer than the payment window.

    Bookings with pending payment created more than
    ``BOOKING_UNPAID_TIMEOUT_MINUTES`` ago are switched to
    ``failed``/``cancelled`` in batches, which frees their seats.
    Processing stops on a short batch or when the time budget is used up.

    Runs every minute.

    Returns:
        dict: {"rolled_back": number of cancelled bookings, "batches": batches processed}
    """
    batch_size = settings.BOOKING_ROLLBACK_BATCH_SIZE
    time_budget = settings.BOOKING_ROLLBACK_TIME_BUDGET
    started = time.monotonic()
    now = timezone.now()
    cutoff = now - timedelta(minutes=settings.BOOKING_UNPAID_TIMEOUT_MINUTES)

    rolled_back = 0
    batches = 0
    while True:
        if time.monotonic() - started >= time_budget:
            logger.warning(
                f"Unpaid booking rollback stopped after {time_budget}s time limit "
                f"({rolled_back} bookings rolled back)"
            )
            break

        batch_ids = list(
            Booking.objects.filter(
                payment_status=Booking.PaymentStatus.PENDING,
                created_at__lt=cutoff,
            )
            .order_by("created_at")
            .values_list("id", flat=True)[:batch_size]
        )
        if not batch_ids:
            break

        try:
            rolled_back += _rollback_batch(batch_ids, now)
        except Exception as e:
            logger.error(f"Error rolling back unpaid bookings batch: {e}", exc_info=True)
            break
        batches += 1

        if len(batch_ids) < batch_size:
            break
        time.sleep(ROLLBACK_BATCH_PAUSE)

    if rolled_back:
        logger.info(f"Rolled back {rolled_back} unpaid bookings in {batches} batches")

    return {"rolled_back": rolled_back, "batches": batches}


@shared_task(name="bookings.release_expired_bed_reservations")
def release_expired_bed_reservations() -> dict[str, int]:
    """Expire hostel reservations whose hold timed out and free their beds."""

    released = 0
    due = HostelBooking.objects.filter(
        status=HostelBooking.Status.RESERVED,
        reserved_until__lt=timezone.now(),
    ).select_related("bed")

    for booking in due:
        try:
            if expire_reservation_if_due(booking):
                released += 1
        except Exception as e:
            logger.error(f"Error releasing reservation {booking.booking_id}: {e}", exc_info=True)

    if released:
        logger.info(f"Released {released} expired bed reservations")

    return {"released": released}
