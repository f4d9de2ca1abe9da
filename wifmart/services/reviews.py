import logging
from typing import Any, Optional, Tuple

from wifmart.core.exceptions import AuthorizationError, NotFoundError, StorageError, ValidationError
from wifmart.db.firebase_ops import FirestoreBaseModel
from wifmart.models.schemas import HireStatus, NotificationType, ProviderReviews, Review, User
from wifmart.services.hire_requests import COLLECTION as HIRE_REQUESTS
from wifmart.services.hire_requests import get_hire_request
from wifmart.services.notifications import notify

logger = logging.getLogger("wifmart.reviews")

COLLECTION = "reviews"
MIN_RATING = 1
MAX_RATING = 5


def validate_rating(rating: Any) -> int:
    # bool is an int subclass; True must not count as a rating of 1
    if isinstance(rating, bool) or not isinstance(rating, int) or not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError(f"Rating must be an integer between {MIN_RATING} and {MAX_RATING}")
    return rating


def submit_review(
    firestore_ops: FirestoreBaseModel,
    service_id: str,
    actor: User,
    rating: Any,
    comment: Optional[str] = None,
) -> Review:
    rating = validate_rating(rating)
    hire_request = get_hire_request(firestore_ops, service_id)

    if actor.user_id != hire_request.client_id:
        raise AuthorizationError("Only the client can leave a review")

    if hire_request.status != HireStatus.COMPLETED:
        raise ValidationError("Can only review completed services")

    # Claim the request first so two submissions cannot both create a review
    outcome = firestore_ops.compare_and_set(
        collection_name=HIRE_REQUESTS,
        document_id=service_id,
        field="reviewed",
        expected=False,
        updates={"reviewed": True},
    )
    if outcome is None:
        raise StorageError("Failed to submit review")
    applied, _ = outcome
    if not applied:
        raise ValidationError("Service already reviewed")

    review = Review(
        service_id=service_id,
        client_id=hire_request.client_id,
        provider_id=hire_request.provider_id,
        rating=rating,
        comment=comment or "",
    )
    saved_id = firestore_ops.save(collection_name=COLLECTION, data_model=review, document_id=review.review_id)
    if not saved_id:
        firestore_ops.update(HIRE_REQUESTS, service_id, {"reviewed": False})
        raise StorageError("Failed to submit review")

    logger.info(f"Review {review.review_id} ({rating}/5) for provider {review.provider_id} on {service_id}")
    refresh_provider_rating(firestore_ops, review.provider_id)
    notify(
        firestore_ops,
        user_id=review.provider_id,
        type=NotificationType.REVIEW_RECEIVED,
        message=f"{actor.name} left you a {rating}-star review",
        related_id=service_id,
        from_user_id=actor.user_id,
    )
    return review


def average_rating(reviews) -> float:
    if not reviews:
        return 0.0
    return round(sum(review.rating for review in reviews) / len(reviews), 1)


def refresh_provider_rating(firestore_ops: FirestoreBaseModel, provider_id: str) -> Tuple[float, int]:
    """Recompute the provider's average rating and review count from all their reviews."""
    reviews = firestore_ops.query(COLLECTION, "provider_id", "==", provider_id, pydantic_model=Review)
    new_average = average_rating(reviews)

    if not firestore_ops.update("users", provider_id, {"rating": new_average, "total_reviews": len(reviews)}):
        # The review itself is stored; the aggregate catches up on the next review
        logger.warning(f"Failed to update average rating for provider {provider_id}")
    return new_average, len(reviews)


def get_review_for_request(firestore_ops: FirestoreBaseModel, service_id: str) -> Review:
    reviews = firestore_ops.query(COLLECTION, "service_id", "==", service_id, pydantic_model=Review)
    if not reviews:
        raise NotFoundError("Review not found")
    return reviews[0]


def list_provider_reviews(firestore_ops: FirestoreBaseModel, provider_id: str) -> ProviderReviews:
    reviews = firestore_ops.query_ordered(
        COLLECTION,
        [("provider_id", "==", provider_id)],
        order_by="created_at",
        descending=True,
        pydantic_model=Review,
    )
    return ProviderReviews(
        provider_id=provider_id,
        average_rating=average_rating(reviews),
        total_reviews=len(reviews),
        reviews=reviews,
    )
