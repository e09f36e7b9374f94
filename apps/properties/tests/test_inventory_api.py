"""API tests for cabin, seat and hostel inventory."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.properties.models import Cabin, Hostel, HostelBed, HostelRoom, Seat
from apps.users.models import User, Vendor


class CabinAPITests(APITestCase):
    def setUp(self) -> None:
        self.owner = User.objects.create_user(
            email="owner@example.com",
            phone="+919844444441",
            password="Password123",
            role=User.RoleChoices.VENDOR,
        )
        self.vendor = Vendor.objects.create(
            business_name="Reading Co",
            contact_person="Owner",
            email="reading@example.com",
            phone="+919844444442",
            owner=self.owner,
            status=Vendor.Status.APPROVED,
        )
        self.student = User.objects.create_user(
            email="reader@example.com",
            phone="+919844444443",
            password="Password123",
        )
        self.cabin = Cabin.objects.create(
            name="Main Hall",
            description="Large hall",
            price=Decimal("2500.00"),
            city="Bengaluru",
            vendor=self.vendor,
        )

    def test_cabin_codes_are_sequential(self) -> None:
        second = Cabin.objects.create(name="Annex", description="Small hall", price=Decimal("1800.00"))
        self.assertEqual(self.cabin.cabin_code, "INSRR-01")
        self.assertEqual(second.cabin_code, "INSRR-02")

    def test_listing_is_public_and_filterable(self) -> None:
        Cabin.objects.create(name="Other", description="Elsewhere", price=Decimal("900.00"), city="Delhi")

        response = self.client.get(reverse("cabin-list"), {"city": "bengal"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 1)
        self.assertEqual(response.data["data"][0]["cabin_code"], self.cabin.cabin_code)

        response = self.client.get(reverse("cabin-list"), {"price_max": "1000"})
        self.assertEqual(response.data["count"], 1)

    def test_vendor_creates_cabin_for_own_vendor(self) -> None:
        self.client.force_authenticate(self.owner)
        payload = {
            "name": "Loft",
            "description": "Top floor",
            "price": "3200.00",
            "amenities": ["wifi", "ac"],
        }

        response = self.client.post(reverse("cabin-list"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        cabin = Cabin.objects.get(pk=response.data["data"]["id"])
        self.assertEqual(cabin.vendor, self.vendor)
        self.assertEqual(cabin.created_by, self.owner)

    def test_student_cannot_create_cabin(self) -> None:
        self.client.force_authenticate(self.student)
        response = self.client.post(
            reverse("cabin-list"),
            {"name": "Nope", "description": "Nope", "price": "1.00"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_seat_availability_for_cabin(self) -> None:
        booked = Seat.objects.create(cabin=self.cabin, number=1, price=Decimal("2500.00"))
        free = Seat.objects.create(cabin=self.cabin, number=2, price=Decimal("2500.00"))
        start = timezone.localdate()
        Booking.objects.create(
            user=self.student,
            cabin=self.cabin,
            seat=booked,
            start_date=start,
            end_date=start + timedelta(days=29),
            total_price=Decimal("2500.00"),
        )

        response = self.client.get(
            reverse("cabin-seat-availability", args=[self.cabin.pk]),
            {"start_date": (start + timedelta(days=5)).isoformat(), "end_date": (start + timedelta(days=10)).isoformat()},
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        availability = {row["seat_id"]: row["is_available"] for row in response.data["data"]}
        self.assertEqual(availability, {booked.pk: False, free.pk: True})

        seat_check = self.client.get(
            reverse("seat-check-availability", args=[booked.pk]),
            {"start_date": start.isoformat(), "end_date": start.isoformat()},
        )
        self.assertFalse(seat_check.data["data"]["is_available"])
        self.assertEqual(len(seat_check.data["data"]["conflicting_bookings"]), 1)

    def test_seat_availability_requires_dates(self) -> None:
        response = self.client.get(reverse("cabin-seat-availability", args=[self.cabin.pk]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data["success"])

    def test_duplicate_seat_number_is_rejected(self) -> None:
        Seat.objects.create(cabin=self.cabin, number=1, price=Decimal("2500.00"))
        self.client.force_authenticate(self.owner)

        response = self.client.post(
            reverse("seat-list"),
            {"cabin": self.cabin.pk, "number": 1, "price": "2500.00"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def _rival_cabin(self) -> Cabin:
        rival_owner = User.objects.create_user(
            email="rival@example.com",
            phone="+919844444444",
            password="Password123",
            role=User.RoleChoices.VENDOR,
        )
        rival = Vendor.objects.create(
            business_name="Rival Rooms",
            contact_person="Rival",
            email="rivalrooms@example.com",
            phone="+919844444445",
            owner=rival_owner,
            status=Vendor.Status.APPROVED,
        )
        return Cabin.objects.create(name="Rival Hall", description="Across", price=Decimal("900.00"), vendor=rival)

    def test_bulk_create_seats(self) -> None:
        self.client.force_authenticate(self.owner)
        payload = {
            "seats": [
                {"cabin": self.cabin.pk, "number": 1, "price": "2500.00"},
                {"cabin": self.cabin.pk, "number": 2, "price": "2500.00", "floor": "1"},
            ]
        }

        response = self.client.post(reverse("seat-bulk-create"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["count"], 2)
        self.assertEqual(response.data["message"], "2 seats created successfully")
        self.assertEqual(set(self.cabin.seats.values_list("number", flat=True)), {1, 2})

    def test_bulk_create_seats_validation(self) -> None:
        self.client.force_authenticate(self.owner)
        url = reverse("seat-bulk-create")

        not_a_list = self.client.post(url, {"seats": {"cabin": self.cabin.pk}}, format="json")
        self.assertEqual(not_a_list.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(not_a_list.data["message"], "Please provide an array of seats")

        repeated = self.client.post(
            url,
            {
                "seats": [
                    {"cabin": self.cabin.pk, "number": 4, "price": "2500.00"},
                    {"cabin": self.cabin.pk, "number": 4, "price": "2500.00"},
                ]
            },
            format="json",
        )
        self.assertEqual(repeated.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(repeated.data["message"], "Seat numbers must be unique within the cabin")
        self.assertFalse(self.cabin.seats.exists())

    def test_bulk_create_seats_in_foreign_cabin_is_forbidden(self) -> None:
        rival_cabin = self._rival_cabin()
        self.client.force_authenticate(self.owner)

        response = self.client.post(
            reverse("seat-bulk-create"),
            {"seats": [{"cabin": rival_cabin.pk, "number": 1, "price": "900.00"}]},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(rival_cabin.seats.exists())

    def test_bulk_update_seats(self) -> None:
        first = Seat.objects.create(cabin=self.cabin, number=1, price=Decimal("2500.00"))
        second = Seat.objects.create(cabin=self.cabin, number=2, price=Decimal("2500.00"))
        self.client.force_authenticate(self.owner)
        payload = {
            "seats": [
                {"id": first.pk, "updates": {"price": "2750.00"}},
                {"id": second.pk, "updates": {"is_available": False, "floor": "2"}},
            ]
        }

        response = self.client.post(reverse("seat-bulk-update"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["count"], 2)
        first.refresh_from_db()
        second.refresh_from_db()
        self.assertEqual(first.price, Decimal("2750.00"))
        self.assertFalse(second.is_available)
        self.assertEqual(second.floor, "2")

    def test_bulk_update_requires_array(self) -> None:
        self.client.force_authenticate(self.owner)

        response = self.client.post(reverse("seat-bulk-update"), {"seats": "all"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["message"], "Please provide an array of seats")

    def test_bulk_update_with_unknown_seat_changes_nothing(self) -> None:
        seat = Seat.objects.create(cabin=self.cabin, number=1, price=Decimal("2500.00"))
        self.client.force_authenticate(self.owner)
        payload = {
            "seats": [
                {"id": seat.pk, "updates": {"price": "100.00"}},
                {"id": 9999, "updates": {"price": "100.00"}},
            ]
        }

        response = self.client.post(reverse("seat-bulk-update"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["message"], "Seat with ID 9999 not found")
        seat.refresh_from_db()
        self.assertEqual(seat.price, Decimal("2500.00"))

    def test_bulk_update_with_invalid_item_changes_nothing(self) -> None:
        first = Seat.objects.create(cabin=self.cabin, number=1, price=Decimal("2500.00"))
        second = Seat.objects.create(cabin=self.cabin, number=2, price=Decimal("2500.00"))
        self.client.force_authenticate(self.owner)
        payload = {
            "seats": [
                {"id": first.pk, "updates": {"price": "100.00"}},
                {"id": second.pk, "updates": {"number": 1}},
            ]
        }

        response = self.client.post(reverse("seat-bulk-update"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        first.refresh_from_db()
        second.refresh_from_db()
        self.assertEqual(first.price, Decimal("2500.00"))
        self.assertEqual(second.number, 2)

    def test_bulk_update_cannot_touch_foreign_seats(self) -> None:
        rival_seat = Seat.objects.create(cabin=self._rival_cabin(), number=1, price=Decimal("900.00"))
        self.client.force_authenticate(self.owner)

        response = self.client.post(
            reverse("seat-bulk-update"),
            {"seats": [{"id": rival_seat.pk, "updates": {"is_available": False}}]},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        rival_seat.refresh_from_db()
        self.assertTrue(rival_seat.is_available)

    def test_student_cannot_bulk_update_seats(self) -> None:
        seat = Seat.objects.create(cabin=self.cabin, number=1, price=Decimal("2500.00"))
        self.client.force_authenticate(self.student)

        response = self.client.post(
            reverse("seat-bulk-update"),
            {"seats": [{"id": seat.pk, "updates": {"price": "1.00"}}]},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class HostelBedAPITests(APITestCase):
    def setUp(self) -> None:
        self.manager = User.objects.create_user(
            email="warden@example.com",
            phone="+919844444451",
            password="Password123",
            role=User.RoleChoices.HOSTEL_MANAGER,
        )
        self.hostel = Hostel.objects.create(
            name="City Hostel",
            address="Main Street",
            city="Chennai",
            manager=self.manager,
        )
        self.room = HostelRoom.objects.create(
            hostel=self.hostel,
            name="Room 1",
            room_number="1",
            floor="1",
            base_price=Decimal("350.00"),
            max_capacity=4,
        )
        self.bed = HostelBed.objects.create(room=self.room, number=1, price=Decimal("350.00"))
        self.client.force_authenticate(self.manager)

    def test_hostel_code_is_generated(self) -> None:
        self.assertTrue(self.hostel.hostel_code)

    def test_set_status_requires_boolean(self) -> None:
        url = reverse("hostel-bed-set-status", args=[self.bed.pk])

        response = self.client.post(url, {"is_available": "yes"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["message"], "is_available must be a boolean value")

        response = self.client.post(url, {"is_available": False}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["data"]["status"], HostelBed.State.UNAVAILABLE)

    def test_bulk_create_beds(self) -> None:
        url = reverse("hostel-bed-bulk-create")
        payload = {
            "room": self.room.pk,
            "beds": [
                {"number": 2, "price": "350.00"},
                {"number": 3, "price": "350.00", "bed_type": "bunk"},
            ],
        }

        response = self.client.post(url, payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(len(response.data["data"]), 2)
        self.assertEqual(HostelBed.objects.filter(room=self.room).count(), 3)

    def test_bulk_create_validation(self) -> None:
        url = reverse("hostel-bed-bulk-create")

        empty = self.client.post(url, {"room": self.room.pk, "beds": []}, format="json")
        self.assertEqual(empty.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(empty.data["message"], "Invalid beds data")

        missing_room = self.client.post(url, {"room": 9999, "beds": [{"number": 5, "price": "1"}]}, format="json")
        self.assertEqual(missing_room.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(missing_room.data["message"], "Room not found")

        malformed_room = self.client.post(url, {"room": "abc", "beds": [{"number": 5, "price": "1"}]}, format="json")
        self.assertEqual(malformed_room.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(malformed_room.data["message"], "Invalid room id")
        self.assertFalse(HostelBed.objects.filter(number=5).exists())

        duplicate = self.client.post(
            url,
            {"room": self.room.pk, "beds": [{"number": 1, "price": "350.00"}]},
            format="json",
        )
        self.assertEqual(duplicate.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(duplicate.data["message"], "Bed numbers must be unique within the room")

    def test_other_manager_cannot_change_bed(self) -> None:
        other = User.objects.create_user(
            email="otherwarden@example.com",
            phone="+919844444452",
            password="Password123",
            role=User.RoleChoices.HOSTEL_MANAGER,
        )
        self.client.force_authenticate(other)

        response = self.client.post(
            reverse("hostel-bed-set-status", args=[self.bed.pk]),
            {"is_available": False},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
