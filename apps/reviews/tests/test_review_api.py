"""API tests for cabin and hostel reviews."""

from __future__ import annotations

from decimal import Decimal

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.properties.models import Cabin, Hostel
from apps.reviews.models import Review
from apps.users.models import User


class ReviewAPITests(APITestCase):
    def setUp(self) -> None:
        self.student = User.objects.create_user(
            email="critic@example.com",
            phone="+919899999991",
            password="Password123",
        )
        self.admin = User.objects.create_user(
            email="moderator@example.com",
            phone="+919899999992",
            password="Password123",
            role=User.RoleChoices.ADMIN,
        )
        self.cabin = Cabin.objects.create(name="Library", description="Library", price=Decimal("1500.00"))
        self.hostel = Hostel.objects.create(name="Green Hostel", address="Park Lane", city="Mysuru")

    def _submit(self, user: User, entity_type: str = "Cabin", entity_id: int | None = None, rating: int = 4):
        self.client.force_authenticate(user)
        return self.client.post(
            reverse("review-list"),
            {
                "entity_type": entity_type,
                "entity_id": entity_id or self.cabin.pk,
                "rating": rating,
                "title": "Nice",
                "comment": "Quiet and clean",
            },
            format="json",
        )

    def test_student_review_waits_for_approval(self) -> None:
        response = self._submit(self.student)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["message"], "Review submitted for approval")
        self.assertFalse(response.data["data"]["is_approved"])

        self.cabin.refresh_from_db()
        self.assertEqual(self.cabin.review_count, 0)

        self.client.force_authenticate(None)
        public = self.client.get(reverse("review-list"))
        self.assertEqual(public.data["count"], 0)

    def test_admin_approval_updates_rating(self) -> None:
        review_id = self._submit(self.student, rating=4).data["data"]["id"]
        other = User.objects.create_user(email="second@example.com", phone="+919899999993", password="Password123")
        second_id = self._submit(other, rating=5).data["data"]["id"]

        self.client.force_authenticate(self.admin)
        for pk in (review_id, second_id):
            response = self.client.post(reverse("review-approve", args=[pk]))
            self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)

        self.cabin.refresh_from_db()
        self.assertEqual(self.cabin.review_count, 2)
        self.assertEqual(self.cabin.average_rating, Decimal("4.50"))

        again = self.client.post(reverse("review-approve", args=[review_id]))
        self.assertEqual(again.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(again.data["message"], "Review is already approved")

        self.client.force_authenticate(None)
        rating = self.client.get(reverse("review-rating"), {"entity_type": "Cabin", "entity_id": self.cabin.pk})
        self.assertEqual(rating.status_code, status.HTTP_200_OK)
        self.assertEqual(rating.data["data"]["review_count"], 2)
        self.assertEqual(rating.data["data"]["average_rating"], Decimal("4.50"))

    def test_admin_review_is_auto_approved(self) -> None:
        response = self._submit(self.admin, entity_type="Hostel", entity_id=self.hostel.pk, rating=3)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["message"], "Review submitted successfully")

        self.hostel.refresh_from_db()
        self.assertEqual(self.hostel.review_count, 1)
        self.assertEqual(self.hostel.average_rating, Decimal("3.00"))

    def test_one_review_per_entity(self) -> None:
        self._submit(self.student)

        response = self._submit(self.student)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["message"], "You have already reviewed this cabin")

        hostel_review = self._submit(self.student, entity_type="Hostel", entity_id=self.hostel.pk)
        self.assertEqual(hostel_review.status_code, status.HTTP_201_CREATED, hostel_review.data)

    def test_unknown_entity_and_bad_rating(self) -> None:
        missing = self._submit(self.student, entity_type="Hostel", entity_id=9999)
        self.assertEqual(missing.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(missing.data["message"], "Hostel not found")

        bad = self._submit(self.student, rating=6)
        self.assertEqual(bad.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Review.objects.exists())

    def test_only_author_can_edit(self) -> None:
        review_id = self._submit(self.student).data["data"]["id"]
        intruder = User.objects.create_user(email="intruder@example.com", phone="+919899999994", password="Password123")
        Review.objects.filter(pk=review_id).update(is_approved=True)

        self.client.force_authenticate(intruder)
        forbidden = self.client.patch(reverse("review-detail", args=[review_id]), {"rating": 1}, format="json")
        self.assertEqual(forbidden.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.student)
        response = self.client.patch(reverse("review-detail", args=[review_id]), {"rating": 2}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.cabin.refresh_from_db()
        self.assertEqual(self.cabin.average_rating, Decimal("2.00"))

        deleted = self.client.delete(reverse("review-detail", args=[review_id]))
        self.assertEqual(deleted.status_code, status.HTTP_204_NO_CONTENT)
        self.cabin.refresh_from_db()
        self.assertEqual(self.cabin.review_count, 0)

    def test_entity_filter_keeps_cabins_and_hostels_apart(self) -> None:
        twin = Hostel.objects.filter(pk=self.cabin.pk).first() or Hostel.objects.create(
            pk=self.cabin.pk,
            name="Twin Hostel",
            address="Lake Road",
            city="Mysuru",
        )
        cabin_review = Review.objects.create(
            user=self.student,
            entity_type=Review.EntityType.CABIN,
            cabin=self.cabin,
            rating=5,
            is_approved=True,
        )
        hostel_review = Review.objects.create(
            user=self.student,
            entity_type=Review.EntityType.HOSTEL,
            hostel=twin,
            rating=2,
            is_approved=True,
        )

        cabins = self.client.get(reverse("review-list"), {"entity_type": "Cabin", "entity_id": self.cabin.pk})
        self.assertEqual([row["id"] for row in cabins.data["data"]], [cabin_review.pk])

        hostels = self.client.get(reverse("review-list"), {"entity_type": "Hostel", "entity_id": twin.pk})
        self.assertEqual([row["id"] for row in hostels.data["data"]], [hostel_review.pk])

        untyped = self.client.get(reverse("review-list"), {"entity_id": self.cabin.pk})
        self.assertEqual(untyped.data["count"], 2)

    def test_rating_requires_entity(self) -> None:
        response = self.client.get(reverse("review-rating"))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
