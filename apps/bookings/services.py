"""Domain services for booking workflows.

Seat and bed availability, booking creation with coupons and deposits,
cancellation, renewal and hostel bed reservations.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, TYPE_CHECKING

from django.conf import settings  # type: ignore
from django.db import transaction  # type: ignore
from django.db.models import F, Q, Sum  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore
from django.utils import timezone  # type: ignore

from apps.coupons.models import Coupon
from apps.coupons.services import apply_coupon, record_usage, revert_usage

from .models import Booking, HostelBooking

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from apps.properties.models import Cabin, HostelBed, Seat

logger = logging.getLogger(__name__)

SEAT_UNAVAILABLE_MESSAGE = "The selected seat is not available for selected period"
BED_UNAVAILABLE_MESSAGE = "Bed is not available"

# Pending bookings hold the seat until they are paid or rolled back
SEAT_BLOCKING_PAYMENT_STATUSES: Iterable[str] = (
    Booking.PaymentStatus.COMPLETED,
    Booking.PaymentStatus.PENDING,
)

HOSTEL_PRICE_MULTIPLIERS = {
    HostelBooking.Duration.DAILY: 1,
    HostelBooking.Duration.WEEKLY: 6,
    HostelBooking.Duration.MONTHLY: 25,
}


class BookingError(Exception):
    """Raised when a booking request is invalid for the current booking state."""


class SeatUnavailableError(BookingError):
    """Raised when a seat is switched off or already booked for the requested dates."""


class BedUnavailableError(BookingError):
    """Raised when a hostel bed cannot be reserved."""


def _lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


# ---------------------------------------------------------------------------
# Seat availability
# ---------------------------------------------------------------------------

def seat_conflicts(seat: "Seat", start_date: date, end_date: date, *, exclude_booking_id=None):
    """Bookings holding ``seat`` on any day of the inclusive ``start_date..end_date`` range."""

    overlapping_filter = Q(start_date__lte=end_date) & Q(end_date__gte=start_date)
    qs = (
        Booking.objects.filter(seat=seat, payment_status__in=SEAT_BLOCKING_PAYMENT_STATUSES)
        .exclude(status=Booking.Status.CANCELLED)
        .filter(overlapping_filter)
    )
    if exclude_booking_id is not None:
        qs = qs.exclude(pk=exclude_booking_id)
    return qs


def check_seat_availability(
    seat: "Seat",
    start_date: date,
    end_date: date,
    *,
    exclude_booking_id=None,
) -> tuple[bool, list[Booking]]:
    conflicts = list(seat_conflicts(seat, start_date, end_date, exclude_booking_id=exclude_booking_id))
    return seat.is_available and not conflicts, conflicts


def ensure_seat_is_available(
    seat: "Seat",
    start_date: date,
    end_date: date,
    *,
    exclude_booking_id=None,
) -> None:
    if not seat.is_available:
        raise SeatUnavailableError(SEAT_UNAVAILABLE_MESSAGE)

    bookings_qs = _lock_queryset_if_possible(
        seat_conflicts(seat, start_date, end_date, exclude_booking_id=exclude_booking_id)
    )
    if bookings_qs.exists():
        raise SeatUnavailableError(SEAT_UNAVAILABLE_MESSAGE)


def cabin_seat_availability(cabin: "Cabin", start_date: date, end_date: date) -> list[dict]:
    """Availability of every seat of ``cabin`` for the range, in one query for the bookings."""

    busy_seat_ids = set(
        Booking.objects.filter(
            cabin=cabin,
            payment_status__in=SEAT_BLOCKING_PAYMENT_STATUSES,
            start_date__lte=end_date,
            end_date__gte=start_date,
        )
        .exclude(status=Booking.Status.CANCELLED)
        .values_list("seat_id", flat=True)
    )
    return [
        {
            "seat_id": seat.id,
            "number": seat.number,
            "price": seat.price,
            "is_available": seat.is_available and seat.id not in busy_seat_ids,
        }
        for seat in cabin.seats.all().order_by("number")
    ]


# ---------------------------------------------------------------------------
# Cabin bookings
# ---------------------------------------------------------------------------

@dataclass
class BookingRequest:
    cabin: "Cabin"
    seat: "Seat"
    start_date: date
    end_date: date
    total_price: Decimal
    months: int = 1
    coupon_code: str = ""


@transaction.atomic
def create_booking(user, request: BookingRequest) -> Booking:  # type: ignore
    """
    Create a pending seat booking.

    Raises ``SeatUnavailableError`` on overlap, ``CouponValidationError``
    for a rejected coupon and ``BookingError`` for inconsistent input.
    """
    from apps.finances.models import DepositRefund  # Local import to prevent circular dependency

    cabin, seat = request.cabin, request.seat
    if seat.cabin_id != cabin.id:
        raise BookingError("Seat does not belong to the selected cabin")
    if not cabin.is_active or not cabin.is_booking_active:
        raise BookingError("Bookings are currently disabled for this cabin")
    if request.end_date < request.start_date:
        raise BookingError("End date must not be before start date")

    ensure_seat_is_available(seat, request.start_date, request.end_date)

    original_price = Decimal(request.total_price)
    discount = Decimal("0.00")
    final_price = original_price
    coupon: Coupon | None = None
    if request.coupon_code:
        applied = apply_coupon(request.coupon_code, user, original_price, Coupon.ApplicableFor.CABIN, cabin)
        coupon, discount, final_price = applied.coupon, applied.discount, applied.final_amount

    commission, net_revenue = Decimal("0.00"), final_price
    if cabin.vendor is not None:
        commission, net_revenue = cabin.vendor.calculate_commission(final_price)

    booking = Booking.objects.create(
        user=user,
        cabin=cabin,
        seat=seat,
        vendor=cabin.vendor,
        start_date=request.start_date,
        end_date=request.end_date,
        months=max(1, request.months),
        seat_price=seat.price,
        original_price=original_price,
        discount_amount=discount,
        total_price=final_price,
        applied_coupon=coupon,
        coupon_code=coupon.code if coupon else "",
        commission_amount=commission,
        net_revenue=net_revenue,
    )

    DepositRefund.objects.create(
        booking=booking,
        user=user,
        cabin=cabin,
        seat=seat,
        vendor=cabin.vendor,
        key_deposit=cabin.key_deposit,
        end_date=request.end_date,
    )

    if coupon is not None:
        record_usage(coupon, user, booking)

    logger.info(f"Booking {booking.booking_id} created for seat {seat.number} of {cabin.cabin_code}")
    return booking


@transaction.atomic
def cancel_booking(booking: Booking) -> Booking:
    from apps.finances.models import DepositRefund

    if booking.status in (Booking.Status.CANCELLED, Booking.Status.EXPIRED):
        raise BookingError("Booking is already cancelled or expired")

    if booking.applied_coupon_id:
        revert_usage(booking.applied_coupon, booking.user)

    booking.mark_cancelled()
    DepositRefund.objects.filter(booking=booking).update(
        status=DepositRefund.Status.EXPIRED,
        updated_at=timezone.now(),
    )
    logger.info(f"Booking {booking.booking_id} cancelled")
    return booking


def months_between(current_end: date, new_end: date) -> int:
    """Calendar month difference between two end dates, at least 1."""

    diff = (new_end.year - current_end.year) * 12 + (new_end.month - current_end.month)
    return max(1, diff)


@transaction.atomic
def renew_booking(
    booking: Booking,
    new_end_date: date,
    additional_months: int | None = None,
    renewed_by=None,  # type: ignore
) -> Booking:
    """Extend a booking to ``new_end_date`` charging the seat's monthly price per added month."""
    from apps.finances.models import DepositRefund

    if booking.status in (Booking.Status.CANCELLED, Booking.Status.EXPIRED):
        raise BookingError("Cancelled or expired bookings cannot be renewed")
    if new_end_date <= booking.end_date:
        raise BookingError("New end date must be after the current end date")

    # The extension must not run into another booking of the same seat
    ensure_seat_is_available(
        booking.seat,
        booking.end_date + timedelta(days=1),
        new_end_date,
        exclude_booking_id=booking.pk,
    )

    months = additional_months or months_between(booking.end_date, new_end_date)
    additional_amount = booking.seat.price * months
    previous_end_date = booking.end_date
    previous_total = booking.total_price

    booking.renewal_history = list(booking.renewal_history or []) + [
        {
            "previous_end_date": previous_end_date.isoformat(),
            "new_end_date": new_end_date.isoformat(),
            "additional_months": months,
            "additional_amount": str(additional_amount),
            "previous_amount": str(previous_total),
            "renewed_at": timezone.now().isoformat(),
            "renewed_by": getattr(renewed_by, "pk", None),
        }
    ]
    booking.end_date = new_end_date
    booking.months = booking.months + months
    booking.total_price = previous_total + additional_amount
    if booking.vendor is not None:
        booking.commission_amount, booking.net_revenue = booking.vendor.calculate_commission(booking.total_price)
    else:
        booking.net_revenue = booking.total_price
    booking.save(
        update_fields=[
            "renewal_history",
            "end_date",
            "months",
            "total_price",
            "commission_amount",
            "net_revenue",
            "updated_at",
        ]
    )

    DepositRefund.objects.filter(booking=booking).update(end_date=new_end_date, updated_at=timezone.now())
    logger.info(f"Booking {booking.booking_id} renewed until {new_end_date} (+{months} months)")
    return booking


@transaction.atomic
def complete_booking_payment(booking: Booking, payment_id: str = "") -> Booking:
    """Mark a cabin booking paid and activate its key deposit."""
    from apps.finances.models import DepositRefund

    booking.mark_paid(payment_id)
    deposit = DepositRefund.objects.filter(booking=booking).first()
    if deposit is not None:
        deposit.mark_paid()
    return booking


def current_bookings(user):  # type: ignore
    today = timezone.localdate()
    return Booking.objects.filter(
        user=user,
        end_date__gte=today,
        display=True,
        status__in=[Booking.Status.PENDING, Booking.Status.COMPLETED],
    ).select_related("cabin", "seat")


def booking_history(user):  # type: ignore
    return Booking.objects.filter(user=user, end_date__lt=timezone.localdate()).select_related("cabin", "seat")


def user_booking_report(user) -> dict:  # type: ignore
    qs = Booking.objects.filter(user=user)
    completed = qs.filter(payment_status=Booking.PaymentStatus.COMPLETED)
    return {
        "total_bookings": qs.count(),
        "completed_bookings": completed.count(),
        "pending_bookings": qs.filter(payment_status=Booking.PaymentStatus.PENDING).count(),
        "total_spent": completed.aggregate(total=Sum("total_price"))["total"] or Decimal("0.00"),
    }


# ---------------------------------------------------------------------------
# Hostel beds
# ---------------------------------------------------------------------------

def calculate_hostel_price(base_price: Decimal, duration: str, count: int) -> Decimal:
    """Weekly stays are charged 6 days, monthly stays 25 days."""

    multiplier = HOSTEL_PRICE_MULTIPLIERS.get(duration, 1) * count
    return Decimal(base_price) * multiplier


def stay_end_date(start_date: date, duration: str, count: int) -> date:
    days = {HostelBooking.Duration.DAILY: 1, HostelBooking.Duration.WEEKLY: 7}.get(duration, 30)
    return start_date + timedelta(days=days * count - 1)


def bed_conflicts(bed: "HostelBed", start_date: date, end_date: date, *, exclude_booking_id=None):
    qs = (
        HostelBooking.objects.filter(bed=bed, start_date__lte=end_date, end_date__gte=start_date)
        .exclude(status__in=[HostelBooking.Status.CANCELLED, HostelBooking.Status.EXPIRED])
    )
    if exclude_booking_id is not None:
        qs = qs.exclude(pk=exclude_booking_id)
    return qs


def available_beds(room, start_date: date | None = None, end_date: date | None = None):  # type: ignore
    from apps.properties.models import HostelBed

    qs = HostelBed.objects.filter(room=room, is_available=True)
    if start_date and end_date:
        busy = (
            HostelBooking.objects.filter(room=room, start_date__lte=end_date, end_date__gte=start_date)
            .exclude(status__in=[HostelBooking.Status.CANCELLED, HostelBooking.Status.EXPIRED])
            .values_list("bed_id", flat=True)
        )
        qs = qs.exclude(pk__in=busy)
    return qs.order_by("number")


@dataclass
class BedReservationRequest:
    bed: "HostelBed"
    start_date: date
    booking_duration: str = HostelBooking.Duration.MONTHLY
    duration_count: int = 1
    end_date: date | None = None


@transaction.atomic
def reserve_bed(user, request: BedReservationRequest) -> HostelBooking:  # type: ignore
    """Hold a bed for ``BED_RESERVATION_MINUTES`` while the student pays."""
    from apps.properties.models import HostelBed, RoomSharingOption

    bed = _lock_queryset_if_possible(HostelBed.objects.select_related("room__hostel", "sharing_option")).get(
        pk=request.bed.pk
    )
    room = bed.room
    if not room.is_active or not room.hostel.is_active:
        raise BedUnavailableError("Room is not available")
    end_date = request.end_date or stay_end_date(
        request.start_date, request.booking_duration, request.duration_count
    )
    if end_date < request.start_date:
        raise BookingError("End date must not be before start date")
    if not bed.is_available or bed_conflicts(bed, request.start_date, end_date).exists():
        raise BedUnavailableError(BED_UNAVAILABLE_MESSAGE)

    sharing_option = bed.sharing_option
    if sharing_option is not None and sharing_option.available < 1:
        raise BedUnavailableError("Room is not available")

    base_price = sharing_option.price if sharing_option is not None else bed.price
    hostel = room.hostel
    booking = HostelBooking.objects.create(
        user=user,
        hostel=hostel,
        room=room,
        bed=bed,
        sharing_option=sharing_option,
        vendor=hostel.vendor,
        start_date=request.start_date,
        end_date=end_date,
        booking_duration=request.booking_duration,
        duration_count=request.duration_count,
        total_price=calculate_hostel_price(base_price, request.booking_duration, request.duration_count),
        status=HostelBooking.Status.RESERVED,
        reserved_until=timezone.now() + timedelta(minutes=settings.BED_RESERVATION_MINUTES),
    )
    bed.occupy(booking)
    if sharing_option is not None:
        RoomSharingOption.objects.filter(pk=sharing_option.pk, available__gt=0).update(
            available=F("available") - 1
        )

    logger.info(f"Bed {bed.pk} reserved by user {user.pk} as {booking.booking_id}")
    return booking


def _release_bed(booking: HostelBooking) -> None:
    from apps.properties.models import RoomSharingOption

    bed = booking.bed
    if bed.current_booking_id in (None, booking.pk):
        bed.release()
    if booking.sharing_option_id:
        option = RoomSharingOption.objects.get(pk=booking.sharing_option_id)
        if option.available < option.capacity:
            option.available += 1
            option.save(update_fields=["available"])


@transaction.atomic
def expire_reservation_if_due(booking: HostelBooking) -> bool:
    """Expire an unpaid reservation whose hold ran out; returns whether it expired."""

    if not booking.reservation_expired():
        return False
    booking.status = HostelBooking.Status.EXPIRED
    booking.payment_status = HostelBooking.PaymentStatus.FAILED
    booking.save(update_fields=["status", "payment_status", "updated_at"])
    _release_bed(booking)
    logger.info(f"Hostel reservation {booking.booking_id} expired, bed {booking.bed_id} released")
    return True


@transaction.atomic
def cancel_hostel_booking(booking: HostelBooking) -> HostelBooking:
    if booking.status in (HostelBooking.Status.CANCELLED, HostelBooking.Status.EXPIRED):
        raise BookingError("Booking is already cancelled or expired")
    booking.status = HostelBooking.Status.CANCELLED
    booking.payment_status = HostelBooking.PaymentStatus.CANCELLED
    booking.cancelled_at = timezone.now()
    booking.save(update_fields=["status", "payment_status", "cancelled_at", "updated_at"])
    _release_bed(booking)
    logger.info(f"Hostel booking {booking.booking_id} cancelled")
    return booking


@transaction.atomic
def confirm_hostel_payment(booking: HostelBooking, payment_id: str = "") -> HostelBooking:
    if booking.status in (HostelBooking.Status.CANCELLED, HostelBooking.Status.EXPIRED):
        raise BookingError("Booking is cancelled or expired")
    booking.mark_paid(payment_id)
    bed = booking.bed
    if bed.current_booking_id == booking.pk and bed.reserved_until is not None:
        bed.reserved_until = None
        bed.save(update_fields=["reserved_until", "updated_at"])
    logger.info(f"Hostel booking {booking.booking_id} confirmed")
    return booking
