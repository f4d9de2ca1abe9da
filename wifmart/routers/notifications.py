from typing import List

from fastapi import APIRouter, Depends

from wifmart.core.deps import get_current_user
from wifmart.db.firebase_ops import FirestoreBaseModel, get_firestore_ops_instance
from wifmart.models.schemas import Notification, UnreadCount, User
from wifmart.services import notifications as notification_service

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=List[Notification])
async def get_my_notifications(
    current_user: User = Depends(get_current_user),
    firestore_ops: FirestoreBaseModel = Depends(get_firestore_ops_instance),
):
    return notification_service.list_notifications(firestore_ops, current_user.user_id)


@router.get("/unread-count", response_model=UnreadCount)
async def get_unread_count(
    current_user: User = Depends(get_current_user),
    firestore_ops: FirestoreBaseModel = Depends(get_firestore_ops_instance),
):
    return UnreadCount(unread_count=notification_service.unread_count(firestore_ops, current_user.user_id))


@router.patch("/read-all")
async def mark_all_notifications_read(
    current_user: User = Depends(get_current_user),
    firestore_ops: FirestoreBaseModel = Depends(get_firestore_ops_instance),
):
    marked = notification_service.mark_all_read(firestore_ops, current_user.user_id)
    return {"success": True, "message": f"Marked {marked} notification(s) as read"}


@router.patch("/{notification_id}/read", response_model=Notification)
async def mark_notification_read(
    notification_id: str,
    current_user: User = Depends(get_current_user),
    firestore_ops: FirestoreBaseModel = Depends(get_firestore_ops_instance),
):
    return notification_service.mark_read(firestore_ops, current_user.user_id, notification_id)
