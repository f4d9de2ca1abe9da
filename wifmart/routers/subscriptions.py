from fastapi import APIRouter, Depends

from wifmart.core.deps import get_current_user
from wifmart.db.firebase_ops import FirestoreBaseModel, get_firestore_ops_instance
from wifmart.models.schemas import (
    PaymentInitiateRequest,
    PaymentInitiation,
    PaymentVerification,
    PaymentVerifyRequest,
    User,
)
from wifmart.services import badges as badge_service
from wifmart.services.gateway import FlutterwaveClient, get_payment_gateway

router = APIRouter(prefix="/subscriptions", tags=["Badge Subscriptions"])


@router.post("/initiate", response_model=PaymentInitiation)
async def initiate_badge_payment(
    payment_in: PaymentInitiateRequest,
    current_user: User = Depends(get_current_user),
    firestore_ops: FirestoreBaseModel = Depends(get_firestore_ops_instance),
):
    return badge_service.initiate_payment(firestore_ops, current_user, payment_in.plan, payment_in.tier)


@router.post("/verify", response_model=PaymentVerification)
async def verify_badge_payment(
    verify_in: PaymentVerifyRequest,
    current_user: User = Depends(get_current_user),
    firestore_ops: FirestoreBaseModel = Depends(get_firestore_ops_instance),
    gateway: FlutterwaveClient = Depends(get_payment_gateway),
):
    return await badge_service.verify_payment(firestore_ops, gateway, current_user, verify_in.transaction_id)
