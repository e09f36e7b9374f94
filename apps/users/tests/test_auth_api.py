"""API tests for authentication endpoints and vendor approval."""

from __future__ import annotations

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.users.models import User, Vendor


class AuthAPITests(APITestCase):
    def test_register_returns_tokens(self) -> None:
        payload = {
            "email": "student@example.com",
            "phone": "+919800000001",
            "first_name": "Asha",
            "last_name": "Rao",
            "password": "StrongPass123",
            "password_confirm": "StrongPass123",
        }

        response = self.client.post(reverse("auth:register"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertTrue(response.data["success"])
        self.assertIn("tokens", response.data["data"])
        self.assertEqual(response.data["data"]["user"]["email"], payload["email"])

        user = User.objects.get(email=payload["email"])
        self.assertEqual(user.role, User.RoleChoices.STUDENT)

    def test_register_rejects_mismatched_passwords(self) -> None:
        payload = {
            "email": "mismatch@example.com",
            "phone": "+919800000002",
            "password": "StrongPass123",
            "password_confirm": "OtherPass123",
        }

        response = self.client.post(reverse("auth:register"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data["success"])
        self.assertFalse(User.objects.filter(email=payload["email"]).exists())

    def test_login_by_email_and_phone(self) -> None:
        user = User.objects.create_user(
            email="login@example.com",
            phone="+919800000003",
            password="CorrectPassword1",
        )
        url = reverse("auth:login")

        by_email = self.client.post(url, {"login": user.email, "password": "CorrectPassword1"}, format="json")
        self.assertEqual(by_email.status_code, status.HTTP_200_OK, by_email.data)
        self.assertIn("access", by_email.data["data"]["tokens"])

        by_phone = self.client.post(url, {"login": user.phone, "password": "CorrectPassword1"}, format="json")
        self.assertEqual(by_phone.status_code, status.HTTP_200_OK, by_phone.data)

    def test_login_with_wrong_password(self) -> None:
        User.objects.create_user(email="wrong@example.com", phone="+919800000004", password="CorrectPassword1")

        response = self.client.post(
            reverse("auth:login"),
            {"login": "wrong@example.com", "password": "nope"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["message"], "Invalid credentials")

    def test_me_requires_authentication(self) -> None:
        response = self.client.get(reverse("auth:me"))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.data["success"])

        user = User.objects.create_user(email="me@example.com", phone="+919800000005", password="Password123")
        self.client.force_authenticate(user)
        response = self.client.get(reverse("auth:me"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["data"]["email"], user.email)


class VendorAPITests(APITestCase):
    def setUp(self) -> None:
        self.admin = User.objects.create_user(
            email="admin@example.com",
            phone="+919800000010",
            password="Password123",
            role=User.RoleChoices.ADMIN,
        )
        self.owner = User.objects.create_user(email="owner@example.com", phone="+919800000011", password="Password123")
        self.vendor = Vendor.objects.create(
            business_name="Quiet Corner",
            contact_person="Owner",
            email="vendor@example.com",
            phone="+919800000012",
            owner=self.owner,
        )

    def test_vendor_code_is_generated(self) -> None:
        self.assertTrue(self.vendor.vendor_code.startswith("VND-"))

    def test_admin_approves_vendor_and_promotes_owner(self) -> None:
        self.client.force_authenticate(self.admin)
        url = reverse("vendor-approve", args=[self.vendor.pk])

        response = self.client.post(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.vendor.refresh_from_db()
        self.owner.refresh_from_db()
        self.assertEqual(self.vendor.status, Vendor.Status.APPROVED)
        self.assertIsNotNone(self.vendor.approved_at)
        self.assertEqual(self.owner.role, User.RoleChoices.VENDOR)

        again = self.client.post(url)
        self.assertEqual(again.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(again.data["message"], "Vendor is already approved")

    def test_student_cannot_approve_vendor(self) -> None:
        self.client.force_authenticate(self.owner)
        response = self.client.post(reverse("vendor-approve", args=[self.vendor.pk]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_vendor_owner_sees_only_own_vendor(self) -> None:
        Vendor.objects.create(
            business_name="Other Rooms",
            contact_person="Someone",
            email="other@example.com",
            phone="+919800000013",
        )
        self.owner.role = User.RoleChoices.VENDOR
        self.owner.save(update_fields=["role"])
        self.client.force_authenticate(self.owner)

        response = self.client.get(reverse("vendor-list"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 1)
        self.assertEqual(response.data["data"][0]["id"], self.vendor.pk)
