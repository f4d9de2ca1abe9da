import logging
from typing import Dict, List

from wifmart.core import lifecycle
from wifmart.core.exceptions import (
    AuthorizationError,
    InvalidTransitionError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from wifmart.db.firebase_ops import FirestoreBaseModel
from wifmart.models.schemas import (
    HireRequest,
    HireRequestCreate,
    HireRequestPage,
    HireStatus,
    HiredProvider,
    NotificationType,
    User,
    utcnow,
)
from wifmart.services.notifications import notify

logger = logging.getLogger("wifmart.hire_requests")

COLLECTION = "hire_requests"
REQUIRED_FIELDS = ("title", "message", "phone", "email")


def create_hire_request(
    firestore_ops: FirestoreBaseModel,
    client: User,
    provider_id: str,
    details: HireRequestCreate,
) -> HireRequest:
    blank = [name for name in REQUIRED_FIELDS if not (getattr(details, name) or "").strip()]
    if blank:
        raise ValidationError(f"Missing required fields: {', '.join(blank)}")

    if client.user_id == provider_id:
        raise ValidationError("You cannot send a hire request to yourself.")

    provider = firestore_ops.get(collection_name="users", document_id=provider_id, pydantic_model=User)
    if not provider:
        raise NotFoundError("Provider not found")

    hire_request = HireRequest(
        client_id=client.user_id,
        provider_id=provider_id,
        title=details.title.strip(),
        message=details.message.strip(),
        phone=details.phone.strip(),
        email=details.email.strip(),
        event_date=details.event_date,
        location=details.location,
        budget=details.budget,
        attachment_url=details.attachment_url,
        status=HireStatus.PENDING,
    )

    saved_id = firestore_ops.save(
        collection_name=COLLECTION,
        data_model=hire_request,
        document_id=hire_request.request_id,
    )
    if not saved_id:
        raise StorageError("Failed to send hire request")

    logger.info(f"Hire request {hire_request.request_id} sent by {client.user_id} to provider {provider_id}")
    notify(
        firestore_ops,
        user_id=provider_id,
        type=NotificationType.HIRE_REQUEST,
        message=f"{client.name} sent you a hire request: {hire_request.title}",
        related_id=hire_request.request_id,
        from_user_id=client.user_id,
    )
    return hire_request


def get_hire_request(firestore_ops: FirestoreBaseModel, request_id: str) -> HireRequest:
    hire_request = firestore_ops.get(collection_name=COLLECTION, document_id=request_id, pydantic_model=HireRequest)
    if not hire_request:
        raise NotFoundError("Hire request not found")
    return hire_request


def get_hire_request_for_actor(firestore_ops: FirestoreBaseModel, request_id: str, actor: User) -> HireRequest:
    hire_request = get_hire_request(firestore_ops, request_id)
    if actor.user_id not in (hire_request.client_id, hire_request.provider_id):
        raise AuthorizationError()
    return hire_request


def update_status(
    firestore_ops: FirestoreBaseModel,
    request_id: str,
    actor: User,
    new_status: str,
) -> HireRequest:
    """
    Move a hire request to new_status.

    The write is conditional on the status read here still being current, so
    when two updates race the loser gets InvalidTransitionError against the
    status the winner wrote.
    """
    target = lifecycle.parse_status(new_status)
    hire_request = get_hire_request(firestore_ops, request_id)

    lifecycle.authorize_transition(hire_request, actor.user_id, target)
    lifecycle.validate_transition(hire_request.status, target)

    outcome = firestore_ops.compare_and_set(
        collection_name=COLLECTION,
        document_id=request_id,
        field="status",
        expected=hire_request.status,
        updates={"status": target},
    )
    if outcome is None:
        raise StorageError("Failed to update status")
    applied, current = outcome
    if not applied:
        if current is None:
            raise NotFoundError("Hire request not found")
        raise InvalidTransitionError(str(current), target.value)

    logger.info(f"Hire request {request_id}: {hire_request.status.value} -> {target.value} by {actor.user_id}")
    hire_request.status = target
    hire_request.updated_at = utcnow()

    if target == HireStatus.ACCEPTED:
        notify(
            firestore_ops,
            user_id=hire_request.client_id,
            type=NotificationType.HIRE_ACCEPTED,
            message=f"Your hire request '{hire_request.title}' was accepted",
            related_id=request_id,
            from_user_id=actor.user_id,
        )
    else:
        recipient = hire_request.provider_id if actor.user_id == hire_request.client_id else hire_request.client_id
        notify(
            firestore_ops,
            user_id=recipient,
            type=NotificationType.HIRE_STATUS_CHANGED,
            message=f"Hire request '{hire_request.title}' is now {target.value}",
            related_id=request_id,
            from_user_id=actor.user_id,
        )

    return hire_request


def _list_by(firestore_ops: FirestoreBaseModel, field: str, user_id: str, page: int, limit: int) -> HireRequestPage:
    filters = [(field, "==", user_id)]
    items = firestore_ops.query_ordered(
        COLLECTION,
        filters,
        order_by="created_at",
        descending=True,
        limit=limit,
        offset=(page - 1) * limit,
        pydantic_model=HireRequest,
    )
    total = firestore_ops.count(COLLECTION, filters)
    return HireRequestPage(items=items, total=total, page=page, limit=limit)


def list_for_provider(firestore_ops: FirestoreBaseModel, provider_id: str, page: int = 1, limit: int = 20) -> HireRequestPage:
    """Incoming requests, newest first. Requests on the returned page are marked read."""
    result = _list_by(firestore_ops, "provider_id", provider_id, page, limit)
    for hire_request in result.items:
        if not hire_request.read:
            firestore_ops.update(COLLECTION, hire_request.request_id, {"read": True})
    return result


def list_for_client(firestore_ops: FirestoreBaseModel, client_id: str, page: int = 1, limit: int = 20) -> HireRequestPage:
    return _list_by(firestore_ops, "client_id", client_id, page, limit)


def hired_providers(firestore_ops: FirestoreBaseModel, client_id: str) -> List[HiredProvider]:
    """
    Distinct providers the client has a hired or completed request with.

    Computed from the requests on every call, never stored, so it follows
    status changes immediately.
    """
    requests = firestore_ops.query_ordered(
        COLLECTION,
        [("client_id", "==", client_id)],
        order_by="created_at",
        descending=True,
        pydantic_model=HireRequest,
    )

    latest: Dict[str, HireRequest] = {}
    for hire_request in requests:
        if hire_request.status in lifecycle.HIRED_STATUSES:
            latest.setdefault(hire_request.provider_id, hire_request)

    hired = []
    for provider_id, hire_request in latest.items():
        provider = firestore_ops.get(collection_name="users", document_id=provider_id, pydantic_model=User)
        entry = HiredProvider(
            provider_id=provider_id,
            name=provider.name if provider else "Unknown Provider",
            service_id=hire_request.request_id,
            service_title=hire_request.title,
            status=hire_request.status,
            hire_date=hire_request.created_at,
        )
        if provider:
            entry.profile_image = provider.profile_image
            entry.skills = provider.skills
            entry.badge_active = provider.is_badge_active()
            entry.is_verified = provider.is_verified
        hired.append(entry)
    return hired
