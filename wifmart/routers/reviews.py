from fastapi import APIRouter, Depends, status

from wifmart.core.deps import get_current_user
from wifmart.db.firebase_ops import FirestoreBaseModel, get_firestore_ops_instance
from wifmart.models.schemas import ProviderReviews, Review, ReviewCreate, User
from wifmart.services import reviews as review_service

router = APIRouter(prefix="/reviews", tags=["Reviews"])


@router.post("", response_model=Review, status_code=status.HTTP_201_CREATED)
async def submit_review(
    review_in: ReviewCreate,
    current_user: User = Depends(get_current_user),
    firestore_ops: FirestoreBaseModel = Depends(get_firestore_ops_instance),
):
    return review_service.submit_review(
        firestore_ops,
        service_id=review_in.service_id,
        actor=current_user,
        rating=review_in.rating,
        comment=review_in.comment,
    )


@router.get("/service/{service_id}", response_model=Review)
async def get_review_for_service(
    service_id: str,
    current_user: User = Depends(get_current_user),
    firestore_ops: FirestoreBaseModel = Depends(get_firestore_ops_instance),
):
    return review_service.get_review_for_request(firestore_ops, service_id)


@router.get("/provider/{provider_id}", response_model=ProviderReviews)
async def get_reviews_for_provider(
    provider_id: str,
    firestore_ops: FirestoreBaseModel = Depends(get_firestore_ops_instance),
):
    return review_service.list_provider_reviews(firestore_ops, provider_id)
