"""Tests for in-app notifications and confirmation delivery."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.core import mail
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.notifications.models import Notification
from apps.notifications.tasks import send_booking_confirmation
from apps.properties.models import Cabin, Seat
from apps.users.models import User


class NotificationAPITests(APITestCase):
    def setUp(self) -> None:
        self.user = User.objects.create_user(
            email="inbox@example.com",
            phone="+919855555551",
            password="Password123",
        )
        self.other = User.objects.create_user(
            email="neighbour@example.com",
            phone="+919855555552",
            password="Password123",
        )
        self.notification = Notification.objects.create(user=self.user, title="Hello", message="Welcome")
        Notification.objects.create(user=self.other, title="Hi", message="Not yours")

    def test_list_is_limited_to_owner(self) -> None:
        self.client.force_authenticate(self.user)

        response = self.client.get(reverse("notification-list"))
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["count"], 1)
        self.assertEqual(response.data["data"][0]["title"], "Hello")

    def test_anonymous_is_rejected(self) -> None:
        response = self.client.get(reverse("notification-list"))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_mark_read(self) -> None:
        self.client.force_authenticate(self.user)

        response = self.client.post(reverse("notification-read", args=[self.notification.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["message"], "Notification marked as read")
        self.notification.refresh_from_db()
        self.assertTrue(self.notification.is_read)

        unread = self.client.get(reverse("notification-list"), {"is_read": "false"})
        self.assertEqual(unread.data["count"], 0)

    def test_cannot_read_foreign_notification(self) -> None:
        self.client.force_authenticate(self.other)

        response = self.client.post(reverse("notification-read", args=[self.notification.pk]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class BookingConfirmationTaskTests(APITestCase):
    def setUp(self) -> None:
        self.user = User.objects.create_user(
            email="confirmed@example.com",
            phone="+919855555561",
            password="Password123",
            first_name="Meera",
        )
        cabin = Cabin.objects.create(name="Corner", description="Corner room", price=Decimal("1800.00"))
        seat = Seat.objects.create(cabin=cabin, number=2, price=Decimal("1800.00"))
        today = timezone.localdate()
        self.booking = Booking.objects.create(
            user=self.user,
            cabin=cabin,
            seat=seat,
            start_date=today,
            end_date=today + timedelta(days=29),
            total_price=Decimal("1800.00"),
            status=Booking.Status.COMPLETED,
            payment_status=Booking.PaymentStatus.COMPLETED,
        )

    def test_sends_email_and_in_app_notice(self) -> None:
        result = send_booking_confirmation("cabin", self.booking.pk)

        self.assertEqual(result, {"email": True, "in_app": True})
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].subject, f"Booking {self.booking.booking_id} confirmed")
        self.assertIn("Corner, seat 2", mail.outbox[0].body)
        notice = Notification.objects.get(user=self.user)
        self.assertIn(self.booking.booking_id, notice.message)

    def test_missing_booking_is_skipped(self) -> None:
        result = send_booking_confirmation("hostel", 9999)

        self.assertEqual(result, {"email": False, "in_app": False})
        self.assertEqual(len(mail.outbox), 0)
        self.assertFalse(Notification.objects.exists())
