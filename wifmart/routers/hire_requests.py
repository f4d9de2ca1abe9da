from enum import Enum
from typing import List

from fastapi import APIRouter, Depends, Query, status

from wifmart.core.config import settings
from wifmart.core.deps import get_current_user
from wifmart.db.firebase_ops import FirestoreBaseModel, get_firestore_ops_instance
from wifmart.models.schemas import (
    HireRequest,
    HireRequestCreate,
    HireRequestCreated,
    HireRequestPage,
    HiredProvider,
    StatusUpdate,
    User,
)
from wifmart.services import hire_requests as hire_service

router = APIRouter(prefix="/hire-requests", tags=["Hire Requests"])


class ListRole(str, Enum):
    PROVIDER = "provider"
    CLIENT = "client"


@router.post("/{provider_id}", response_model=HireRequestCreated, status_code=status.HTTP_201_CREATED)
async def send_hire_request(
    provider_id: str,
    details: HireRequestCreate,
    current_user: User = Depends(get_current_user),
    firestore_ops: FirestoreBaseModel = Depends(get_firestore_ops_instance),
):
    hire_request = hire_service.create_hire_request(firestore_ops, current_user, provider_id, details)
    return HireRequestCreated(request_id=hire_request.request_id, status=hire_request.status)


@router.get("", response_model=HireRequestPage)
async def list_my_hire_requests(
    role: ListRole = Query(ListRole.PROVIDER),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
    firestore_ops: FirestoreBaseModel = Depends(get_firestore_ops_instance),
):
    if role == ListRole.PROVIDER:
        return hire_service.list_for_provider(firestore_ops, current_user.user_id, page, limit)
    return hire_service.list_for_client(firestore_ops, current_user.user_id, page, limit)


@router.get("/hired-providers", response_model=List[HiredProvider])
async def list_hired_providers(
    current_user: User = Depends(get_current_user),
    firestore_ops: FirestoreBaseModel = Depends(get_firestore_ops_instance),
):
    return hire_service.hired_providers(firestore_ops, current_user.user_id)


@router.get("/{request_id}", response_model=HireRequest)
async def get_hire_request_details(
    request_id: str,
    current_user: User = Depends(get_current_user),
    firestore_ops: FirestoreBaseModel = Depends(get_firestore_ops_instance),
):
    return hire_service.get_hire_request_for_actor(firestore_ops, request_id, current_user)


@router.patch("/{request_id}/status", response_model=HireRequest)
async def update_hire_request_status(
    request_id: str,
    status_update: StatusUpdate,
    current_user: User = Depends(get_current_user),
    firestore_ops: FirestoreBaseModel = Depends(get_firestore_ops_instance),
):
    return hire_service.update_status(firestore_ops, request_id, current_user, status_update.status)
