"""Models for the review domain.

Defines the ``Review`` entity: a 1 to 5 rating with optional title and
comment that a user leaves for a cabin or a hostel. One user can
review each cabin or hostel once.
"""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Review(models.Model):
    """Represents a review left by a user for a cabin or a hostel."""

    class EntityType(models.TextChoices):
        CABIN = 'Cabin', _('Cabin')
        HOSTEL = 'Hostel', _('Hostel')

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='reviews'
    )
    entity_type = models.CharField(max_length=10, choices=EntityType.choices)
    cabin = models.ForeignKey(
        'properties.Cabin',
        on_delete=models.CASCADE,
        related_name='reviews',
        null=True,
        blank=True,
    )
    hostel = models.ForeignKey(
        'properties.Hostel',
        on_delete=models.CASCADE,
        related_name='reviews',
        null=True,
        blank=True,
    )
    booking = models.ForeignKey(
        'bookings.Booking',
        on_delete=models.SET_NULL,
        related_name='reviews',
        null=True,
        blank=True,
    )
    rating = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(5)],
        help_text=_('Rating from 1 to 5')
    )
    title = models.CharField(max_length=100, blank=True)
    comment = models.TextField(blank=True)

    # Moderation
    is_approved = models.BooleanField(
        default=False,
        help_text=_('Approved reviews are public and count towards the rating')
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'cabin'],
                condition=models.Q(cabin__isnull=False),
                name='unique_cabin_review_per_user',
            ),
            models.UniqueConstraint(
                fields=['user', 'hostel'],
                condition=models.Q(hostel__isnull=False),
                name='unique_hostel_review_per_user',
            ),
        ]
        indexes = [
            models.Index(fields=['entity_type', 'is_approved']),
            models.Index(fields=['rating']),
        ]

    def __str__(self) -> str:
        return f"Review by {self.user_id} for {self.entity_type} {self.entity_id} (Rating: {self.rating})"

    @property
    def entity(self):  # type: ignore
        return self.cabin if self.entity_type == self.EntityType.CABIN else self.hostel

    @property
    def entity_id(self) -> int | None:
        return self.cabin_id if self.entity_type == self.EntityType.CABIN else self.hostel_id

    @property
    def owning_vendor_id(self) -> int | None:
        entity = self.entity
        return entity.vendor_id if entity is not None else None
