import logging
from typing import Any, List, Tuple

from wifmart.core.config import settings
from wifmart.core.exceptions import AuthorizationError, NotFoundError, StorageError, ValidationError
from wifmart.db.firebase_ops import FirestoreBaseModel
from wifmart.models.schemas import (
    CACRequest,
    CACRequestPage,
    CACStatus,
    CACSubmission,
    NotificationType,
    PortfolioImage,
    User,
    UserProfile,
    VerificationRequestPage,
    VerificationStatus,
    VerifiedUserPage,
)
from wifmart.services.notifications import notify

logger = logging.getLogger("wifmart.profiles")

USERS = "users"


def get_user(firestore_ops: FirestoreBaseModel, user_id: str) -> User:
    user = firestore_ops.get(collection_name=USERS, document_id=user_id, pydantic_model=User)
    if not user:
        raise NotFoundError("User not found")
    return user


def portfolio_image_limit(user: User) -> int:
    if user.is_badge_active():
        return settings.BADGE_PORTFOLIO_IMAGE_LIMIT
    return settings.FREE_PORTFOLIO_IMAGE_LIMIT


def submit_cac(firestore_ops: FirestoreBaseModel, user: User, submission: CACSubmission) -> User:
    """CAC registration details are a badge feature."""
    if not user.is_badge_active():
        raise AuthorizationError("An active verified badge is required to submit CAC details")

    cac_number = submission.cac_number.strip()
    cac_certificate = submission.cac_certificate.strip()
    if not cac_number or not cac_certificate:
        raise ValidationError("CAC number and certificate are required")

    updates = {
        "cac_number": cac_number,
        "cac_certificate": cac_certificate,
        "cac_status": CACStatus.PENDING_VERIFICATION,
    }
    if not firestore_ops.update(USERS, user.user_id, updates):
        raise StorageError("Could not save CAC details")
    logger.info(f"CAC details submitted by {user.user_id}")
    return user.model_copy(update=updates)


def add_portfolio_images(firestore_ops: FirestoreBaseModel, user: User, images: List[PortfolioImage]) -> User:
    if not images:
        raise ValidationError("No images provided")

    limit = portfolio_image_limit(user)
    combined = user.portfolio_images + images
    if len(combined) > limit:
        raise ValidationError(
            f"Portfolio is limited to {limit} images; you have {len(user.portfolio_images)} and tried to add {len(images)}"
        )

    if not firestore_ops.update(USERS, user.user_id, {"portfolio_images": [image.model_dump() for image in combined]}):
        raise StorageError("Could not save portfolio images")
    return user.model_copy(update={"portfolio_images": combined})


def _users_page(firestore_ops: FirestoreBaseModel, field: str, value: Any, page: int, limit: int) -> Tuple[List[User], int]:
    """Users with field == value, newest first, and the total across all pages."""
    filters = [(field, "==", value)]
    users = firestore_ops.query_ordered(
        USERS,
        filters,
        order_by="created_at",
        descending=True,
        limit=limit,
        offset=(page - 1) * limit,
        pydantic_model=User,
    )
    return users, firestore_ops.count(USERS, filters)


def list_verification_requests(firestore_ops: FirestoreBaseModel, page: int = 1, limit: int = 10) -> VerificationRequestPage:
    users, total = _users_page(firestore_ops, "verification_status", VerificationStatus.PENDING, page, limit)
    return VerificationRequestPage(
        requests=[UserProfile.from_user(user) for user in users],
        total=total,
        page=page,
        limit=limit,
    )


def list_verified_users(firestore_ops: FirestoreBaseModel, page: int = 1, limit: int = 10) -> VerifiedUserPage:
    users, total = _users_page(firestore_ops, "verification_status", VerificationStatus.APPROVED, page, limit)
    return VerifiedUserPage(
        users=[UserProfile.from_user(user) for user in users],
        total=total,
        page=page,
        limit=limit,
    )


def list_cac_requests(firestore_ops: FirestoreBaseModel, page: int = 1, limit: int = 10) -> CACRequestPage:
    users, total = _users_page(firestore_ops, "cac_status", CACStatus.PENDING_VERIFICATION, page, limit)
    return CACRequestPage(
        requests=[CACRequest(**user.model_dump(include=set(CACRequest.model_fields))) for user in users],
        total=total,
        page=page,
        limit=limit,
    )


def _pending_cac_user(firestore_ops: FirestoreBaseModel, user_id: str) -> User:
    user = get_user(firestore_ops, user_id)
    if user.cac_status != CACStatus.PENDING_VERIFICATION:
        raise ValidationError("No CAC submission is awaiting review for this user")
    return user


def approve_cac(firestore_ops: FirestoreBaseModel, admin: User, user_id: str) -> User:
    """Approving a CAC submission also approves the user's verification."""
    user = _pending_cac_user(firestore_ops, user_id)
    updates = {
        "cac_status": CACStatus.VERIFIED,
        "verification_status": VerificationStatus.APPROVED,
        "verification_rejection_reason": "",
    }
    if not firestore_ops.update(USERS, user_id, updates):
        raise StorageError("Could not update CAC status")

    logger.info(f"CAC for {user_id} approved by admin {admin.user_id}")
    notify(
        firestore_ops,
        user_id=user_id,
        type=NotificationType.VERIFICATION_APPROVED,
        message="Your CAC registration was verified",
        related_id=user_id,
        from_user_id=admin.user_id,
    )
    return user.model_copy(update=updates)


def reject_cac(firestore_ops: FirestoreBaseModel, admin: User, user_id: str, reason: str = "") -> User:
    """The user goes back to Not Submitted and may submit corrected details."""
    user = _pending_cac_user(firestore_ops, user_id)
    updates = {
        "cac_status": CACStatus.NOT_SUBMITTED,
        "verification_rejection_reason": reason or "Invalid CAC documentation",
    }
    if not firestore_ops.update(USERS, user_id, updates):
        raise StorageError("Could not update CAC status")

    logger.info(f"CAC for {user_id} rejected by admin {admin.user_id}")
    return user.model_copy(update=updates)


def approve_verification(firestore_ops: FirestoreBaseModel, admin: User, user_id: str) -> User:
    user = get_user(firestore_ops, user_id)
    updates = {"verification_status": VerificationStatus.APPROVED, "verification_rejection_reason": ""}
    if not firestore_ops.update(USERS, user_id, updates):
        raise StorageError("Could not update verification status")

    logger.info(f"Verification for {user_id} approved by admin {admin.user_id}")
    notify(
        firestore_ops,
        user_id=user_id,
        type=NotificationType.VERIFICATION_APPROVED,
        message="Your verification request was approved",
        related_id=user_id,
        from_user_id=admin.user_id,
    )
    return user.model_copy(update=updates)


def reject_verification(firestore_ops: FirestoreBaseModel, admin: User, user_id: str, reason: str = "") -> User:
    user = get_user(firestore_ops, user_id)
    updates = {
        "verification_status": VerificationStatus.REJECTED,
        "verification_rejection_reason": reason or "Does not meet criteria",
    }
    if not firestore_ops.update(USERS, user_id, updates):
        raise StorageError("Could not update verification status")

    logger.info(f"Verification for {user_id} rejected by admin {admin.user_id}")
    return user.model_copy(update=updates)


def request_verification(firestore_ops: FirestoreBaseModel, user: User) -> User:
    """Apply for manual (admin-reviewed) verification."""
    if user.verification_status in (VerificationStatus.PENDING, VerificationStatus.APPROVED):
        raise ValidationError(f"Verification is already {user.verification_status.value.lower()}")

    updates = {"verification_status": VerificationStatus.PENDING}
    if not firestore_ops.update(USERS, user.user_id, updates):
        raise StorageError("Could not submit verification request")
    return user.model_copy(update=updates)
