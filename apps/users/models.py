"""User domain models for InhaleStays.

The platform serves students booking seats and beds, platform admins,
hostel managers and vendors (the tenants owning cabins and hostels)
together with their employees. Vendor staff only ever see data of the
vendor they belong to.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from django.contrib.auth.models import AbstractUser, BaseUserManager  # type: ignore
from django.core.validators import MaxValueValidator, MinValueValidator, RegexValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


PHONE_VALIDATOR = RegexValidator(
    regex=r"^\+?\d{7,15}$",
    message=_("Invalid phone number. Use international format without spaces."),
)


class CustomUserManager(BaseUserManager):
    """Manager using the e-mail address as the login."""

    use_in_migrations = True

    def _create_user(self, email: str, password: str | None, **extra_fields: Any):
        if not email:
            raise ValueError("Email is required to create a user.")
        email = self.normalize_email(email)

        phone = extra_fields.get("phone")
        if phone:
            extra_fields["phone"] = self.normalize_phone(phone)

        user = self.model(email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_user(self, email: str, password: str | None = None, **extra_fields: Any):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        extra_fields.setdefault("role", CustomUser.RoleChoices.STUDENT)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email: str, password: str | None = None, **extra_fields: Any):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("role", CustomUser.RoleChoices.SUPER_ADMIN)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self._create_user(email, password, **extra_fields)

    @staticmethod
    def normalize_phone(phone: str) -> str:
        return phone.replace(" ", "").replace("-", "")


class Vendor(models.Model):
    """Tenant that owns cabins and hostels and earns revenue minus commission."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending approval")
        APPROVED = "approved", _("Approved")
        REJECTED = "rejected", _("Rejected")
        SUSPENDED = "suspended", _("Suspended")

    class PayoutCycle(models.TextChoices):
        WEEKLY = "weekly", _("Weekly")
        MONTHLY = "monthly", _("Monthly")

    vendor_code = models.CharField(max_length=20, unique=True, editable=False)
    business_name = models.CharField(max_length=255)
    contact_person = models.CharField(max_length=255)
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=20, validators=[PHONE_VALIDATOR])
    address = models.TextField(blank=True)
    owner = models.OneToOneField(
        "CustomUser",
        on_delete=models.SET_NULL,
        related_name="owned_vendor",
        null=True,
        blank=True,
    )
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    commission_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("20.00"),
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))],
        help_text=_("Platform commission taken from each completed booking, in percent."),
    )
    payout_cycle = models.CharField(
        max_length=10,
        choices=PayoutCycle.choices,
        default=PayoutCycle.MONTHLY,
    )
    is_active = models.BooleanField(default=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Vendor")
        verbose_name_plural = _("Vendors")
        ordering = ["business_name"]

    def __str__(self) -> str:
        return f"{self.business_name} ({self.vendor_code})"

    def save(self, *args, **kwargs):  # type: ignore
        if not self.vendor_code:
            self.vendor_code = self.generate_vendor_code()
        super().save(*args, **kwargs)

    @classmethod
    def generate_vendor_code(cls) -> str:
        last = cls.objects.order_by("-id").values_list("id", flat=True).first() or 0
        return f"VND-{last + 1:04d}"

    def calculate_commission(self, amount: Decimal) -> tuple[Decimal, Decimal]:
        """Return ``(commission, net_revenue)`` for a booking amount."""
        amount = Decimal(amount)
        commission = (amount * self.commission_percentage / Decimal("100")).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )
        return commission, amount - commission


class CustomUser(AbstractUser):
    """Platform user with a role and optional vendor affiliation."""

    class RoleChoices(models.TextChoices):
        STUDENT = "student", _("Student")
        ADMIN = "admin", _("Admin")
        HOSTEL_MANAGER = "hostel_manager", _("Hostel manager")
        SUPER_ADMIN = "super_admin", _("Super admin")
        VENDOR = "vendor", _("Vendor")
        VENDOR_EMPLOYEE = "vendor_employee", _("Vendor employee")

    class Gender(models.TextChoices):
        MALE = "male", _("Male")
        FEMALE = "female", _("Female")
        OTHER = "other", _("Other")

    username = models.CharField(
        _("Display name"),
        max_length=150,
        blank=True,
    )
    email = models.EmailField(_("Email"), unique=True)
    phone = models.CharField(
        _("Phone"),
        max_length=20,
        unique=True,
        null=True,
        blank=True,
        validators=[PHONE_VALIDATOR],
    )
    role = models.CharField(
        _("Role"),
        max_length=20,
        choices=RoleChoices.choices,
        default=RoleChoices.STUDENT,
    )
    gender = models.CharField(max_length=10, choices=Gender.choices, blank=True)
    vendor = models.ForeignKey(
        Vendor,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="employees",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CustomUserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["username"]

    class Meta:
        verbose_name = _("User")
        verbose_name_plural = _("Users")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.email} ({self.get_role_display()})"

    @property
    def display_name(self) -> str:
        full_name = self.get_full_name()
        return full_name or self.username or self.email

    # --- Role helpers -------------------------------------------------------
    def is_admin_role(self) -> bool:
        return self.is_superuser or self.role in (self.RoleChoices.ADMIN, self.RoleChoices.SUPER_ADMIN)

    def is_vendor_staff(self) -> bool:
        return self.role in (self.RoleChoices.VENDOR, self.RoleChoices.VENDOR_EMPLOYEE)

    def is_hostel_manager(self) -> bool:
        return self.role == self.RoleChoices.HOSTEL_MANAGER

    def is_student(self) -> bool:
        return self.role == self.RoleChoices.STUDENT

    def get_vendor(self) -> Vendor | None:
        """Vendor whose data this user may see: own vendor for owners, employer for employees."""
        if self.vendor_id:
            return self.vendor
        return getattr(self, "owned_vendor", None)


# Short alias used across apps and tests
User = CustomUser
