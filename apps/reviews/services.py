"""Rating aggregation for reviewed cabins and hostels."""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.db.models import Avg, Count  # type: ignore

from .models import Review

logger = logging.getLogger(__name__)


def entity_rating(entity_type: str, entity_id: int) -> dict:
    """``{average_rating, review_count}`` over approved reviews of one cabin or hostel."""

    field = "cabin_id" if entity_type == Review.EntityType.CABIN else "hostel_id"
    stats = Review.objects.filter(is_approved=True, entity_type=entity_type, **{field: entity_id}).aggregate(
        average=Avg("rating"),
        count=Count("id"),
    )
    average = Decimal(str(stats["average"] or 0)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return {"average_rating": average, "review_count": stats["count"]}


def refresh_entity_rating(review: Review) -> None:
    """Write the current aggregate back onto the reviewed cabin or hostel."""

    entity = review.entity
    if entity is None:
        return
    rating = entity_rating(review.entity_type, entity.pk)
    type(entity).objects.filter(pk=entity.pk).update(**rating)
    logger.info(
        f"{review.entity_type} {entity.pk} rating refreshed: "
        f"{rating['average_rating']} over {rating['review_count']} reviews"
    )
