from fastapi import APIRouter, Depends

from wifmart.core.deps import get_current_user
from wifmart.db.firebase_ops import FirestoreBaseModel, get_firestore_ops_instance
from wifmart.models.schemas import CACSubmission, PortfolioImagesAdd, User, UserProfile
from wifmart.services import profiles as profile_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserProfile)
async def read_my_profile(current_user: User = Depends(get_current_user)):
    return UserProfile.from_user(current_user)


@router.put("/me/cac", response_model=UserProfile)
async def submit_cac_details(
    submission: CACSubmission,
    current_user: User = Depends(get_current_user),
    firestore_ops: FirestoreBaseModel = Depends(get_firestore_ops_instance),
):
    updated_user = profile_service.submit_cac(firestore_ops, current_user, submission)
    return UserProfile.from_user(updated_user)


@router.post("/me/portfolio-images", response_model=UserProfile)
async def add_portfolio_images(
    images_in: PortfolioImagesAdd,
    current_user: User = Depends(get_current_user),
    firestore_ops: FirestoreBaseModel = Depends(get_firestore_ops_instance),
):
    updated_user = profile_service.add_portfolio_images(firestore_ops, current_user, images_in.images)
    return UserProfile.from_user(updated_user)


@router.post("/me/verification", response_model=UserProfile)
async def request_verification(
    current_user: User = Depends(get_current_user),
    firestore_ops: FirestoreBaseModel = Depends(get_firestore_ops_instance),
):
    updated_user = profile_service.request_verification(firestore_ops, current_user)
    return UserProfile.from_user(updated_user)


@router.get("/{user_id}", response_model=UserProfile)
async def get_user_profile(
    user_id: str,
    firestore_ops: FirestoreBaseModel = Depends(get_firestore_ops_instance),
):
    return UserProfile.from_user(profile_service.get_user(firestore_ops, user_id))
