"""Celery tasks delivering notifications outside the request cycle."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from .services import create_in_app_notification, send_booking_confirmation_email

logger = logging.getLogger(__name__)


@shared_task(name="notifications.send_booking_confirmation")
def send_booking_confirmation(booking_type: str, booking_pk: int) -> dict[str, bool]:
    """
    Send the confirmation e-mail and in-app notice for a paid booking.

    Returns:
        dict: {"email": sent, "in_app": created}
    """
    from apps.bookings.models import Booking, HostelBooking  # Local import to prevent circular dependency

    model = HostelBooking if booking_type == "hostel" else Booking
    booking = model.objects.select_related("user").filter(pk=booking_pk).first()
    if booking is None:
        logger.warning(f"Booking {booking_type}:{booking_pk} not found, confirmation skipped")
        return {"email": False, "in_app": False}

    return {
        "email": send_booking_confirmation_email(booking),
        "in_app": create_in_app_notification(
            booking.user,
            "Booking confirmed",
            f"Your booking {booking.booking_id} is confirmed.",
        ),
    }
