"""Serializers for reviews.

Provide both read and write serializers for the ``Review`` model. The
reviewed cabin or hostel is given as ``entity_type`` plus ``entity_id``
and the creating user is inferred from the request in the view.
"""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Review


class ReviewSerializer(serializers.ModelSerializer):
    entity_id = serializers.IntegerField(read_only=True)
    user_name = serializers.CharField(source='user.display_name', read_only=True)

    class Meta:
        model = Review
        fields = [
            'id',
            'user',
            'user_name',
            'entity_type',
            'entity_id',
            'cabin',
            'hostel',
            'booking',
            'rating',
            'title',
            'comment',
            'is_approved',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class ReviewCreateSerializer(serializers.Serializer):
    """Serializer for creating a new review."""

    entity_type = serializers.ChoiceField(choices=Review.EntityType.choices)
    entity_id = serializers.IntegerField(min_value=1)
    booking = serializers.IntegerField(required=False, allow_null=True)
    rating = serializers.IntegerField()
    title = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    comment = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_rating(self, value: int) -> int:  # type: ignore
        if value < 1 or value > 5:
            raise serializers.ValidationError('Rating must be between 1 and 5.')
        return value


class ReviewUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = Review
        fields = ['rating', 'title', 'comment']

    def validate_rating(self, value: int) -> int:  # type: ignore
        if value < 1 or value > 5:
            raise serializers.ValidationError('Rating must be between 1 and 5.')
        return value
