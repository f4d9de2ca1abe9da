from fastapi import APIRouter, Depends, Query

from wifmart.core.deps import get_current_admin
from wifmart.db.firebase_ops import FirestoreBaseModel, get_firestore_ops_instance
from wifmart.models.schemas import (
    CACRequestPage,
    User,
    UserProfile,
    VerificationRejection,
    VerificationRequestPage,
    VerifiedUserPage,
)
from wifmart.services import profiles as profile_service

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/verifications", response_model=VerificationRequestPage)
async def list_verification_requests(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    admin: User = Depends(get_current_admin),
    firestore_ops: FirestoreBaseModel = Depends(get_firestore_ops_instance),
):
    return profile_service.list_verification_requests(firestore_ops, page, limit)


@router.post("/verifications/{user_id}/approve", response_model=UserProfile)
async def approve_verification(
    user_id: str,
    admin: User = Depends(get_current_admin),
    firestore_ops: FirestoreBaseModel = Depends(get_firestore_ops_instance),
):
    return UserProfile.from_user(profile_service.approve_verification(firestore_ops, admin, user_id))


@router.post("/verifications/{user_id}/reject", response_model=UserProfile)
async def reject_verification(
    user_id: str,
    rejection: VerificationRejection,
    admin: User = Depends(get_current_admin),
    firestore_ops: FirestoreBaseModel = Depends(get_firestore_ops_instance),
):
    updated_user = profile_service.reject_verification(firestore_ops, admin, user_id, rejection.reason or "")
    return UserProfile.from_user(updated_user)


@router.get("/verified-users", response_model=VerifiedUserPage)
async def list_verified_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    admin: User = Depends(get_current_admin),
    firestore_ops: FirestoreBaseModel = Depends(get_firestore_ops_instance),
):
    return profile_service.list_verified_users(firestore_ops, page, limit)


@router.get("/cac-requests", response_model=CACRequestPage)
async def list_cac_requests(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    admin: User = Depends(get_current_admin),
    firestore_ops: FirestoreBaseModel = Depends(get_firestore_ops_instance),
):
    return profile_service.list_cac_requests(firestore_ops, page, limit)


@router.post("/cac-requests/{user_id}/approve", response_model=UserProfile)
async def approve_cac(
    user_id: str,
    admin: User = Depends(get_current_admin),
    firestore_ops: FirestoreBaseModel = Depends(get_firestore_ops_instance),
):
    return UserProfile.from_user(profile_service.approve_cac(firestore_ops, admin, user_id))


@router.post("/cac-requests/{user_id}/reject", response_model=UserProfile)
async def reject_cac(
    user_id: str,
    rejection: VerificationRejection,
    admin: User = Depends(get_current_admin),
    firestore_ops: FirestoreBaseModel = Depends(get_firestore_ops_instance),
):
    updated_user = profile_service.reject_cac(firestore_ops, admin, user_id, rejection.reason or "")
    return UserProfile.from_user(updated_user)
