"""API tests for coupon management and redemption checks."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.coupons.models import Coupon
from apps.users.models import User, Vendor


class CouponAPITests(APITestCase):
    def setUp(self) -> None:
        self.admin = User.objects.create_user(
            email="admin@example.com",
            phone="+919866666661",
            password="Password123",
            role=User.RoleChoices.ADMIN,
        )
        self.student = User.objects.create_user(
            email="learner@example.com",
            phone="+919866666662",
            password="Password123",
            first_name="Ravi",
        )
        self.vendor_owner = User.objects.create_user(
            email="vendor@example.com",
            phone="+919866666663",
            password="Password123",
            role=User.RoleChoices.VENDOR,
        )
        self.vendor = Vendor.objects.create(
            business_name="Desk Space",
            contact_person="Owner",
            email="desk@example.com",
            phone="+919866666664",
            owner=self.vendor_owner,
        )
        self.coupon = Coupon.objects.create(
            code="MONSOON",
            name="Monsoon offer",
            discount_type=Coupon.DiscountType.PERCENTAGE,
            value=Decimal("20"),
            max_discount_amount=Decimal("300"),
            end_date=timezone.now() + timedelta(days=15),
        )

    def test_admin_creates_coupon_with_normalized_code(self) -> None:
        self.client.force_authenticate(self.admin)
        payload = {
            "code": "fest25",
            "name": "Festival",
            "discount_type": "fixed",
            "value": "250.00",
            "end_date": (timezone.now() + timedelta(days=7)).isoformat(),
        }

        response = self.client.post(reverse("coupon-list"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["data"]["code"], "FEST25")

        duplicate = self.client.post(reverse("coupon-list"), payload, format="json")
        self.assertEqual(duplicate.status_code, status.HTTP_400_BAD_REQUEST)

    def test_percentage_above_hundred_is_rejected(self) -> None:
        self.client.force_authenticate(self.admin)
        payload = {
            "code": "TOOMUCH",
            "name": "Too much",
            "discount_type": "percentage",
            "value": "150",
            "end_date": (timezone.now() + timedelta(days=7)).isoformat(),
        }

        response = self.client.post(reverse("coupon-list"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["message"], "value: Percentage discount cannot exceed 100")

    def test_vendor_coupon_is_bound_to_vendor(self) -> None:
        self.client.force_authenticate(self.vendor_owner)
        payload = {
            "code": "DESK5",
            "name": "Desk five",
            "discount_type": "percentage",
            "value": "5",
            "end_date": (timezone.now() + timedelta(days=7)).isoformat(),
        }

        response = self.client.post(reverse("coupon-list"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        coupon = Coupon.objects.get(code="DESK5")
        self.assertEqual(coupon.vendor, self.vendor)
        self.assertEqual(coupon.scope, Coupon.Scope.VENDOR)

        listing = self.client.get(reverse("coupon-list"))
        self.assertEqual([row["code"] for row in listing.data["data"]], ["DESK5"])

    def test_student_cannot_manage_coupons(self) -> None:
        self.client.force_authenticate(self.student)
        response = self.client.get(reverse("coupon-list"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_validate_returns_discount(self) -> None:
        self.client.force_authenticate(self.student)

        response = self.client.post(
            reverse("coupon-validate"),
            {"code": "monsoon", "amount": "3000.00"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(Decimal(str(response.data["data"]["discount_amount"])), Decimal("300.00"))
        self.assertEqual(Decimal(str(response.data["data"]["final_amount"])), Decimal("2700.00"))

        self.coupon.refresh_from_db()
        self.assertEqual(self.coupon.usage_count, 0)

    def test_apply_rejects_unknown_code(self) -> None:
        self.client.force_authenticate(self.student)

        response = self.client.post(reverse("coupon-apply"), {"code": "NOPE", "amount": "100"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["message"], "Invalid coupon code")

    def test_available_coupons(self) -> None:
        self.client.force_authenticate(self.student)

        response = self.client.get(reverse("coupon-available"), {"booking_type": "cabin"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 1)
        self.assertEqual(response.data["data"][0]["code"], "MONSOON")

    def test_referral_coupon_flow(self) -> None:
        self.client.force_authenticate(self.student)
        url = reverse("coupon-referral")

        missing = self.client.get(url)
        self.assertEqual(missing.status_code, status.HTTP_404_NOT_FOUND)

        created = self.client.post(url)
        self.assertEqual(created.status_code, status.HTTP_201_CREATED, created.data)
        self.assertTrue(created.data["data"]["code"].startswith("RAVI"))

        again = self.client.post(url)
        self.assertEqual(again.status_code, status.HTTP_400_BAD_REQUEST)

        fetched = self.client.get(url)
        self.assertEqual(fetched.data["data"]["code"], created.data["data"]["code"])
