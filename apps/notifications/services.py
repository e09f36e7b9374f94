"""Notification services for sending e-mails and in-app messages."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.conf import settings  # type: ignore
from django.core.mail import send_mail  # type: ignore
from django.template.loader import render_to_string  # type: ignore
from django.utils.html import strip_tags  # type: ignore

if TYPE_CHECKING:  # pragma: no cover
    from apps.bookings.models import Booking, HostelBooking
    from apps.users.models import CustomUser

logger = logging.getLogger(__name__)


# ============================================================================
# EMAIL NOTIFICATIONS
# ============================================================================

def send_email_notification(
    recipient_email: str,
    subject: str,
    template_name: str | None,
    context: dict,
    *,
    html_message: str | None = None,
) -> bool:
    """
    Send an e-mail through the configured Django mail backend.

    Args:
        recipient_email: Recipient address
        subject: Subject line
        template_name: Django template rendering the HTML body (optional)
        context: Template context; ``message`` is used as plain body when there is no HTML
        html_message: Ready HTML body (optional)

    Returns:
        bool: True if the e-mail was handed to the backend
    """
    try:
        if html_message:
            text_message = strip_tags(html_message)
        elif template_name:
            html_message = render_to_string(template_name, context)
            text_message = strip_tags(html_message)
        else:
            text_message = context.get("message", "")
            html_message = None

        send_mail(
            subject=subject,
            message=text_message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient_email],
            html_message=html_message,
            fail_silently=False,
        )

        logger.info(f"Email sent successfully to {recipient_email}: {subject}")
        return True

    except Exception as e:
        logger.error(f"Failed to send email to {recipient_email}: {e}", exc_info=True)
        return False


def _booking_place(booking) -> str:  # type: ignore
    if hasattr(booking, "cabin"):
        return f"{booking.cabin.name}, seat {booking.seat.number}"
    return f"{booking.hostel.name}, room {booking.room.room_number}, bed {booking.bed.number}"


def send_booking_confirmation_email(booking: "Booking | HostelBooking") -> bool:
    """Confirmation e-mail sent to the student once a booking is paid."""
    user = booking.user
    subject = f"Booking {booking.booking_id} confirmed"

    context = {
        "name": user.display_name,
        "booking_id": booking.booking_id,
        "place": _booking_place(booking),
        "start_date": booking.start_date.strftime("%d %b %Y"),
        "end_date": booking.end_date.strftime("%d %b %Y"),
        "total_price": booking.total_price,
        "web_url": settings.WEB_URL,
    }

    html_message = f"""
    <html>
    <body>
        <h2>Hello {context['name']},</h2>
        <p>Your payment was received and your booking is confirmed.</p>

        <h3>Booking details:</h3>
        <ul>
            <li><strong>Booking ID:</strong> {context['booking_id']}</li>
            <li><strong>Place:</strong> {context['place']}</li>
            <li><strong>From:</strong> {context['start_date']}</li>
            <li><strong>To:</strong> {context['end_date']}</li>
            <li><strong>Amount paid:</strong> ₹{context['total_price']}</li>
        </ul>

        <p>You can see your bookings at <a href="{context['web_url']}">{context['web_url']}</a>.</p>

        <p>Regards,<br>InhaleStays team</p>
    </body>
    </html>
    """

    return send_email_notification(
        recipient_email=user.email,
        subject=subject,
        template_name=None,
        context=context,
        html_message=html_message,
    )


# ============================================================================
# IN-APP NOTIFICATIONS
# ============================================================================

def create_in_app_notification(user: "CustomUser", title: str, message: str) -> bool:
    try:
        from .models import Notification

        Notification.objects.create(
            user=user,
            title=title,
            message=message,
        )

        logger.info(f"In-app notification created for {user.email}: {title}")
        return True

    except Exception as e:
        logger.error(f"Failed to create in-app notification for {user.email}: {e}", exc_info=True)
        return False
