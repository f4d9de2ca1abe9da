import calendar
import logging
import time
from datetime import datetime
from typing import Dict, Optional, Tuple

from wifmart.core.exceptions import AuthorizationError, NotFoundError, StorageError, ValidationError
from wifmart.db.firebase_ops import FirestoreBaseModel
from wifmart.models.schemas import (
    NotificationType,
    PaymentCustomer,
    PaymentInitiation,
    PaymentStatus,
    PaymentVerification,
    Subscription,
    SubscriptionPlan,
    SubscriptionTier,
    User,
    UserProfile,
    VerificationStatus,
    utcnow,
)
from wifmart.services.gateway import FlutterwaveClient
from wifmart.services.notifications import notify

logger = logging.getLogger("wifmart.badges")

COLLECTION = "subscriptions"
CURRENCY = "NGN"

# Amounts in NGN
PRICING_CONFIG: Dict[SubscriptionTier, Dict[SubscriptionPlan, int]] = {
    SubscriptionTier.BASIC: {SubscriptionPlan.MONTHLY: 1000, SubscriptionPlan.YEARLY: 10000},
    SubscriptionTier.PREMIUM: {SubscriptionPlan.MONTHLY: 2000, SubscriptionPlan.YEARLY: 20000},
    SubscriptionTier.ULTIMATE: {SubscriptionPlan.MONTHLY: 3000, SubscriptionPlan.YEARLY: 30000},
}

# Requests without a tier predate tiered pricing and are billed as basic
LEGACY_PRICING: Dict[SubscriptionPlan, int] = {
    SubscriptionPlan.MONTHLY: 1000,
    SubscriptionPlan.SIX_MONTHS: 5000,
    SubscriptionPlan.YEARLY: 10000,
}

PLAN_MONTHS: Dict[SubscriptionPlan, int] = {
    SubscriptionPlan.MONTHLY: 1,
    SubscriptionPlan.SIX_MONTHS: 6,
    SubscriptionPlan.YEARLY: 12,
}


def add_months(start: datetime, months: int) -> datetime:
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return start.replace(year=year, month=month, day=day)


def resolve_price(plan: str, tier: Optional[str]) -> Tuple[SubscriptionPlan, SubscriptionTier, int]:
    if not tier:
        try:
            legacy_plan = SubscriptionPlan(plan)
        except ValueError:
            raise ValidationError('Invalid plan. Choose "monthly", "6months" or "yearly".')
        return legacy_plan, SubscriptionTier.BASIC, LEGACY_PRICING[legacy_plan]

    try:
        tier_value = SubscriptionTier(tier)
    except ValueError:
        raise ValidationError('Invalid tier. Choose "basic", "premium", or "ultimate".')

    prices = PRICING_CONFIG[tier_value]
    try:
        plan_value = SubscriptionPlan(plan)
    except ValueError:
        plan_value = None
    if plan_value not in prices:
        raise ValidationError('Invalid plan. Choose "monthly" or "yearly".')
    return plan_value, tier_value, prices[plan_value]


def initiate_payment(firestore_ops: FirestoreBaseModel, user: User, plan: str, tier: Optional[str] = None) -> PaymentInitiation:
    """
    First phase of the badge checkout: price the plan and record a pending
    subscription under a fresh tx_ref for the checkout widget to carry.
    """
    plan_value, tier_value, amount = resolve_price(plan, tier)
    tx_ref = f"wifmart_{tier_value.value}_{plan_value.value}_{user.user_id}_{int(time.time() * 1000)}"

    subscription = Subscription(
        user_id=user.user_id,
        plan=plan_value,
        tier=tier_value,
        amount=amount,
        currency=CURRENCY,
        tx_ref=tx_ref,
        status=PaymentStatus.PENDING,
    )
    saved_id = firestore_ops.save(
        collection_name=COLLECTION,
        data_model=subscription,
        document_id=subscription.subscription_id,
    )
    if not saved_id:
        raise StorageError("Failed to initiate payment")

    logger.info(f"Badge payment {tx_ref} initiated by {user.user_id}: {amount} {CURRENCY}")
    return PaymentInitiation(
        tx_ref=tx_ref,
        amount=amount,
        currency=CURRENCY,
        customer=PaymentCustomer(email=user.email, phone=user.whatsapp or "N/A", name=user.name),
        plan=plan_value,
        tier=tier_value,
    )


async def verify_payment(
    firestore_ops: FirestoreBaseModel,
    gateway: FlutterwaveClient,
    user: User,
    transaction_id: str,
) -> PaymentVerification:
    """
    Second phase: confirm the gateway transaction and activate the badge.

    Verifying an already successful subscription again is a no-op success.
    """
    if not transaction_id or not transaction_id.strip():
        raise ValidationError("transaction_id is required")

    body = await gateway.verify_transaction(transaction_id)
    data = body.get("data") or {}
    if body.get("status") != "success" or data.get("status") != "successful":
        logger.info(f"Gateway reports transaction {transaction_id} as not successful")
        return PaymentVerification(success=False, message="Payment not successful")

    matches = firestore_ops.query(COLLECTION, "tx_ref", "==", data.get("tx_ref"), pydantic_model=Subscription)
    if not matches:
        raise NotFoundError("Transaction not found in our system")
    subscription = matches[0]

    if subscription.user_id != user.user_id:
        raise AuthorizationError()

    if subscription.status == PaymentStatus.SUCCESSFUL:
        return PaymentVerification(success=True, message="Already verified", user=UserProfile.from_user(user))

    # Claim the subscription so a retried or concurrent verify activates the badge only once
    outcome = firestore_ops.compare_and_set(
        collection_name=COLLECTION,
        document_id=subscription.subscription_id,
        field="status",
        expected=PaymentStatus.PENDING,
        updates={"status": PaymentStatus.SUCCESSFUL, "flw_ref": data.get("flw_ref")},
    )
    if outcome is None:
        raise StorageError("Failed to record payment, please try again")
    applied, _ = outcome
    if not applied:
        return PaymentVerification(success=True, message="Already verified", user=UserProfile.from_user(user))

    start = utcnow()
    updates = {
        "has_badge": True,
        "verification_status": VerificationStatus.APPROVED,
        "subscription_type": subscription.plan,
        "subscription_tier": subscription.tier,
        "subscription_start": start,
        "subscription_end": add_months(start, PLAN_MONTHS[subscription.plan]),
    }
    if not firestore_ops.update("users", user.user_id, updates):
        firestore_ops.update(COLLECTION, subscription.subscription_id, {"status": PaymentStatus.PENDING})
        raise StorageError("Payment verified but the badge could not be activated")

    logger.info(f"Badge activated for {user.user_id} until {updates['subscription_end'].isoformat()}")
    notify(
        firestore_ops,
        user_id=user.user_id,
        type=NotificationType.BADGE_GRANTED,
        message="You are now verified!",
        related_id=subscription.subscription_id,
    )
    activated = user.model_copy(update=updates)
    return PaymentVerification(success=True, message="You are now verified!", user=UserProfile.from_user(activated))
