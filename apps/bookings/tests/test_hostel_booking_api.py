"""API tests for hostel bed reservations."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import HostelBooking
from apps.bookings.services import calculate_hostel_price, stay_end_date
from apps.properties.models import Hostel, HostelBed, HostelRoom, RoomSharingOption
from apps.users.models import User


class HostelBookingAPITests(APITestCase):
    def setUp(self) -> None:
        self.student = User.objects.create_user(
            email="guest@example.com",
            phone="+919822222221",
            password="Password123",
        )
        self.manager = User.objects.create_user(
            email="manager@example.com",
            phone="+919822222222",
            password="Password123",
            role=User.RoleChoices.HOSTEL_MANAGER,
        )
        self.hostel = Hostel.objects.create(
            name="Lakeside Hostel",
            address="1 Lake Road",
            city="Pune",
            manager=self.manager,
        )
        self.room = HostelRoom.objects.create(
            hostel=self.hostel,
            name="Room A",
            room_number="101",
            floor="1",
            base_price=Decimal("500.00"),
            max_capacity=2,
        )
        self.option = RoomSharingOption.objects.create(
            room=self.room,
            sharing_type=RoomSharingOption.SharingType.TWO,
            capacity=2,
            price=Decimal("400.00"),
            available=2,
        )
        self.bed = HostelBed.objects.create(
            room=self.room,
            sharing_option=self.option,
            number=1,
            price=Decimal("450.00"),
        )
        self.start = timezone.localdate() + timedelta(days=2)

    def _reserve(self, **overrides):  # type: ignore
        payload = {"bed": self.bed.pk, "start_date": self.start.isoformat()}
        payload.update(overrides)
        return self.client.post(reverse("hostel-booking-reserve"), payload, format="json")

    def test_price_multipliers(self) -> None:
        self.assertEqual(calculate_hostel_price(Decimal("100"), HostelBooking.Duration.DAILY, 3), Decimal("300"))
        self.assertEqual(calculate_hostel_price(Decimal("100"), HostelBooking.Duration.WEEKLY, 2), Decimal("1200"))
        self.assertEqual(calculate_hostel_price(Decimal("100"), HostelBooking.Duration.MONTHLY, 1), Decimal("2500"))

    def test_reserve_bed_holds_it_for_ten_minutes(self) -> None:
        self.client.force_authenticate(self.student)

        response = self._reserve()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["message"], "Bed reserved successfully")

        booking = HostelBooking.objects.get(pk=response.data["data"]["id"])
        self.assertTrue(booking.booking_id.startswith("HOSTEL-"))
        self.assertEqual(booking.status, HostelBooking.Status.RESERVED)
        self.assertEqual(booking.total_price, Decimal("10000.00"))
        self.assertEqual(booking.end_date, stay_end_date(self.start, HostelBooking.Duration.MONTHLY, 1))
        remaining = booking.reserved_until - timezone.now()
        self.assertGreater(remaining, timedelta(minutes=9))
        self.assertLessEqual(remaining, timedelta(minutes=10))

        self.bed.refresh_from_db()
        self.option.refresh_from_db()
        self.assertFalse(self.bed.is_available)
        self.assertEqual(self.bed.current_booking_id, booking.pk)
        self.assertEqual(self.bed.reserved_until, booking.reserved_until)
        self.assertEqual(self.option.available, 1)

    def test_reserved_bed_cannot_be_reserved_again(self) -> None:
        self.client.force_authenticate(self.student)
        self._reserve()

        response = self._reserve()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["message"], "Bed is not available")

    def test_inactive_room_is_not_available(self) -> None:
        self.room.is_active = False
        self.room.save(update_fields=["is_active"])
        self.client.force_authenticate(self.student)

        response = self._reserve()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["message"], "Room is not available")

    def test_check_expiry_releases_bed(self) -> None:
        self.client.force_authenticate(self.student)
        booking_pk = self._reserve().data["data"]["id"]
        HostelBooking.objects.filter(pk=booking_pk).update(reserved_until=timezone.now() - timedelta(minutes=1))

        response = self.client.post(reverse("hostel-booking-check-expiry", args=[booking_pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertTrue(response.data["data"]["expired"])

        booking = HostelBooking.objects.get(pk=booking_pk)
        self.assertEqual(booking.status, HostelBooking.Status.EXPIRED)
        self.assertEqual(booking.payment_status, HostelBooking.PaymentStatus.FAILED)
        self.bed.refresh_from_db()
        self.option.refresh_from_db()
        self.assertTrue(self.bed.is_available)
        self.assertIsNone(self.bed.current_booking_id)
        self.assertEqual(self.option.available, 2)

    def test_confirm_payment_after_expiry_is_rejected(self) -> None:
        self.client.force_authenticate(self.student)
        booking_pk = self._reserve().data["data"]["id"]
        HostelBooking.objects.filter(pk=booking_pk).update(reserved_until=timezone.now() - timedelta(seconds=5))

        response = self.client.post(reverse("hostel-booking-confirm-payment", args=[booking_pk]), {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["message"], "Reservation has expired")

    def test_confirm_payment_keeps_bed_occupied(self) -> None:
        self.client.force_authenticate(self.student)
        booking_pk = self._reserve().data["data"]["id"]

        response = self.client.post(
            reverse("hostel-booking-confirm-payment", args=[booking_pk]),
            {"payment_id": "pay_hostel"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)

        booking = HostelBooking.objects.get(pk=booking_pk)
        self.assertEqual(booking.status, HostelBooking.Status.CONFIRMED)
        self.assertEqual(booking.payment_status, HostelBooking.PaymentStatus.COMPLETED)
        self.assertIsNone(booking.reserved_until)
        self.bed.refresh_from_db()
        self.assertFalse(self.bed.is_available)
        self.assertIsNone(self.bed.reserved_until)

        again = self.client.post(reverse("hostel-booking-confirm-payment", args=[booking_pk]), {}, format="json")
        self.assertEqual(again.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(again.data["message"], "Booking is already paid")

    def test_cancel_releases_bed(self) -> None:
        self.client.force_authenticate(self.student)
        booking_pk = self._reserve().data["data"]["id"]

        response = self.client.post(reverse("hostel-booking-cancel", args=[booking_pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.bed.refresh_from_db()
        self.assertTrue(self.bed.is_available)

        again = self.client.post(reverse("hostel-booking-cancel", args=[booking_pk]))
        self.assertEqual(again.status_code, status.HTTP_400_BAD_REQUEST)

    def test_manager_sees_bookings_of_managed_hostel(self) -> None:
        self.client.force_authenticate(self.student)
        self._reserve()

        self.client.force_authenticate(self.manager)
        response = self.client.get(reverse("hostel-booking-list"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 1)

        outsider = User.objects.create_user(
            email="outsider@example.com",
            phone="+919822222223",
            password="Password123",
            role=User.RoleChoices.HOSTEL_MANAGER,
        )
        self.client.force_authenticate(outsider)
        response = self.client.get(reverse("hostel-booking-list"))
        self.assertEqual(response.data["count"], 0)

    def test_available_beds_excludes_reserved(self) -> None:
        second = HostelBed.objects.create(room=self.room, sharing_option=self.option, number=2, price=Decimal("450"))
        self.client.force_authenticate(self.student)
        self._reserve()

        response = self.client.get(
            reverse("hostel-room-available-beds", args=[self.room.pk]),
            {
                "start_date": self.start.isoformat(),
                "end_date": (self.start + timedelta(days=5)).isoformat(),
            },
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual([bed["id"] for bed in response.data["data"]], [second.pk])
