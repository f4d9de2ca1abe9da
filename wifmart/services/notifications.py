import logging
from typing import List, Optional

from wifmart.core.exceptions import NotFoundError
from wifmart.db.firebase_ops import FirestoreBaseModel
from wifmart.models.schemas import Notification, NotificationType

logger = logging.getLogger("wifmart.notifications")

COLLECTION = "notifications"
MAX_LISTED = 50


def notify(
    firestore_ops: FirestoreBaseModel,
    user_id: str,
    type: NotificationType,
    message: str,
    related_id: Optional[str] = None,
    from_user_id: Optional[str] = None,
) -> Optional[Notification]:
    """
    Record a notification for user_id.

    Failing to store one never fails the operation that triggered it; the
    failure is logged and None returned.
    """
    notification = Notification(
        user_id=user_id,
        from_user_id=from_user_id,
        type=type,
        message=message,
        related_id=related_id,
    )
    saved_id = firestore_ops.save(
        collection_name=COLLECTION,
        data_model=notification,
        document_id=notification.notification_id,
    )
    if not saved_id:
        logger.warning(f"Could not record {type.value} notification for user {user_id}")
        return None
    return notification


def list_notifications(firestore_ops: FirestoreBaseModel, user_id: str) -> List[Notification]:
    return firestore_ops.query_ordered(
        COLLECTION,
        [("user_id", "==", user_id)],
        order_by="created_at",
        descending=True,
        limit=MAX_LISTED,
        pydantic_model=Notification,
    )


def mark_read(firestore_ops: FirestoreBaseModel, user_id: str, notification_id: str) -> Notification:
    notification = firestore_ops.get(COLLECTION, notification_id, pydantic_model=Notification)
    # Someone else's notification is reported as missing, not forbidden
    if not notification or notification.user_id != user_id:
        raise NotFoundError("Notification not found")

    if not notification.read:
        firestore_ops.update(COLLECTION, notification_id, {"read": True})
        notification.read = True
    return notification


def mark_all_read(firestore_ops: FirestoreBaseModel, user_id: str) -> int:
    unread = firestore_ops.query_ordered(COLLECTION, [("user_id", "==", user_id), ("read", "==", False)])
    marked = 0
    for data in unread:
        if firestore_ops.update(COLLECTION, data["id"], {"read": True}):
            marked += 1
    return marked


def unread_count(firestore_ops: FirestoreBaseModel, user_id: str) -> int:
    return firestore_ops.count(COLLECTION, [("user_id", "==", user_id), ("read", "==", False)])
