"""API views for managing reviews."""

from __future__ import annotations

from django.db import models  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore

from apps.properties.models import Cabin, Hostel
from apps.users.permissions import IsAdminRole, is_platform_admin, is_vendor_staff
from shared.api.mixins import EnvelopeResponseMixin
from shared.api.responses import api_error, api_response

from .models import Review
from .serializers import ReviewCreateSerializer, ReviewSerializer, ReviewUpdateSerializer
from .services import entity_rating, refresh_entity_rating


class IsReviewerOrAdmin(permissions.BasePermission):
    """Allow users to manage their reviews and admins to manage all."""

    def has_object_permission(self, request, view, obj: Review) -> bool:  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        user = request.user
        if not user.is_authenticated:
            return False
        if is_platform_admin(user):
            return True
        return obj.user_id == user.id


class ReviewViewSet(EnvelopeResponseMixin, viewsets.ModelViewSet):
    """Viewset for creating, retrieving, moderating and deleting reviews."""

    queryset = Review.objects.select_related('user', 'cabin', 'hostel').all()
    permission_classes = [permissions.IsAuthenticatedOrReadOnly, IsReviewerOrAdmin]

    def get_permissions(self):  # type: ignore
        if self.action == 'approve':
            return [IsAdminRole()]
        if self.action == 'rating':
            return [permissions.AllowAny()]
        return super().get_permissions()

    def get_serializer_class(self):  # type: ignore
        if self.action in ('update', 'partial_update'):
            return ReviewUpdateSerializer
        return ReviewSerializer

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        user = self.request.user
        params = self.request.query_params

        entity_type = params.get('entity_type')
        if entity_type:
            qs = qs.filter(entity_type=entity_type)
        # entity_id is only meaningful together with the entity type
        entity_id = params.get('entity_id')
        if entity_type in Review.EntityType.values and entity_id and str(entity_id).isdigit():
            field = 'cabin_id' if entity_type == Review.EntityType.CABIN else 'hostel_id'
            qs = qs.filter(**{field: entity_id})
        if params.get('is_approved') in ('true', 'false'):
            qs = qs.filter(is_approved=params['is_approved'] == 'true')

        # Only approved reviews for anonymous users
        if not user.is_authenticated:
            return qs.filter(is_approved=True)

        if is_platform_admin(user):
            return qs

        # Vendor staff see the reviews of their own listings
        if is_vendor_staff(user):
            vendor = user.get_vendor()
            return qs.filter(models.Q(cabin__vendor=vendor) | models.Q(hostel__vendor=vendor))

        return qs.filter(models.Q(user=user) | models.Q(is_approved=True))

    def create(self, request, *args, **kwargs):  # type: ignore
        from apps.bookings.models import Booking

        serializer = ReviewCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        user = request.user

        is_cabin = data['entity_type'] == Review.EntityType.CABIN
        model = Cabin if is_cabin else Hostel
        entity = model.objects.filter(pk=data['entity_id']).first()
        label = 'cabin' if is_cabin else 'hostel'
        if entity is None:
            return api_error(f"{label.capitalize()} not found", status.HTTP_404_NOT_FOUND)

        lookup = {'cabin': entity} if is_cabin else {'hostel': entity}
        if Review.objects.filter(user=user, **lookup).exists():
            return api_error(f"You have already reviewed this {label}")

        booking = None
        if data.get('booking'):
            booking = Booking.objects.filter(pk=data['booking'], user=user).first()
            if booking is None:
                return api_error("Booking not found", status.HTTP_404_NOT_FOUND)

        auto_approved = is_platform_admin(user) or user.is_hostel_manager()
        review = Review.objects.create(
            user=user,
            entity_type=data['entity_type'],
            booking=booking,
            rating=data['rating'],
            title=data['title'],
            comment=data['comment'],
            is_approved=auto_approved,
            **lookup,
        )
        if review.is_approved:
            refresh_entity_rating(review)

        return api_response(
            ReviewSerializer(review).data,
            "Review submitted successfully" if auto_approved else "Review submitted for approval",
            status.HTTP_201_CREATED,
        )

    def update(self, request, *args, **kwargs):  # type: ignore
        partial = kwargs.pop('partial', False)
        review = self.get_object()
        serializer = ReviewUpdateSerializer(review, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        refresh_entity_rating(review)
        return api_response(ReviewSerializer(review).data, "Review updated successfully")

    def perform_destroy(self, instance):  # type: ignore
        instance.delete()
        refresh_entity_rating(instance)

    @action(detail=True, methods=['post', 'patch'])
    def approve(self, request, pk=None):  # type: ignore
        review = self.get_object()
        if review.is_approved:
            return api_error("Review is already approved")
        review.is_approved = True
        review.save(update_fields=['is_approved', 'updated_at'])
        refresh_entity_rating(review)
        return api_response(ReviewSerializer(review).data, "Review approved successfully")

    @action(detail=False, methods=['get'])
    def rating(self, request):  # type: ignore
        entity_type = request.query_params.get('entity_type')
        entity_id = request.query_params.get('entity_id')
        if entity_type not in Review.EntityType.values or not str(entity_id or '').isdigit():
            return api_error("entity_type (Cabin or Hostel) and entity_id are required")
        return api_response(entity_rating(entity_type, int(entity_id)))
