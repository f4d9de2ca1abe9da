from typing import Optional, List
from datetime import date, datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, EmailStr, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid4())


class HireStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    HIRED = "hired"
    COMPLETED = "completed"


class VerificationStatus(str, Enum):
    NOT_APPLIED = "Not Applied"
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class CACStatus(str, Enum):
    NOT_SUBMITTED = "Not Submitted"
    PENDING_VERIFICATION = "Pending Verification"
    VERIFIED = "Verified"


class SubscriptionPlan(str, Enum):
    MONTHLY = "monthly"
    SIX_MONTHS = "6months"
    YEARLY = "yearly"


class SubscriptionTier(str, Enum):
    BASIC = "basic"
    PREMIUM = "premium"
    ULTIMATE = "ultimate"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    SUCCESSFUL = "successful"
    FAILED = "failed"


class NotificationType(str, Enum):
    HIRE_REQUEST = "hire_request"
    HIRE_ACCEPTED = "hire_accepted"
    HIRE_STATUS_CHANGED = "hire_status_changed"
    REVIEW_RECEIVED = "review_received"
    BADGE_GRANTED = "badge_granted"
    VERIFICATION_APPROVED = "verification_approved"


# --- Users ---

class PortfolioImage(BaseModel):
    url: str
    public_id: str


class User(BaseModel):
    user_id: str
    name: str
    email: EmailStr
    phone: Optional[str] = None
    whatsapp: Optional[str] = None
    profile_image: Optional[str] = None
    skills: List[str] = []
    location_state: Optional[str] = None
    is_admin: bool = False

    verification_status: VerificationStatus = VerificationStatus.NOT_APPLIED
    verification_rejection_reason: str = ""
    cac_number: str = ""
    cac_certificate: str = ""
    cac_status: CACStatus = CACStatus.NOT_SUBMITTED
    portfolio_images: List[PortfolioImage] = []

    # Paid badge; only counts while subscription_end is in the future
    has_badge: bool = False
    subscription_type: Optional[SubscriptionPlan] = None
    subscription_tier: Optional[SubscriptionTier] = None
    subscription_start: Optional[datetime] = None
    subscription_end: Optional[datetime] = None

    rating: float = 0.0
    total_reviews: int = 0
    created_at: datetime = Field(default_factory=utcnow)

    def is_badge_active(self, now: Optional[datetime] = None) -> bool:
        if not self.has_badge or self.subscription_end is None:
            return False
        end = self.subscription_end
        if end.tzinfo is None:
            end = end.replace(tzinfo=timezone.utc)
        return end > (now or utcnow())

    @property
    def is_verified(self) -> bool:
        """Admin-approved (or badge-approved) verification."""
        return self.verification_status == VerificationStatus.APPROVED


class UserProfile(BaseModel):
    user_id: str
    name: str
    profile_image: Optional[str] = None
    skills: List[str] = []
    location_state: Optional[str] = None
    verification_status: VerificationStatus
    cac_status: CACStatus
    portfolio_images: List[PortfolioImage] = []
    subscription_tier: Optional[SubscriptionTier] = None
    subscription_end: Optional[datetime] = None
    rating: float = 0.0
    total_reviews: int = 0
    badge_active: bool = False
    is_verified: bool = False

    @classmethod
    def from_user(cls, user: User, now: Optional[datetime] = None) -> "UserProfile":
        return cls(
            **user.model_dump(include=set(cls.model_fields) - {"badge_active", "is_verified"}),
            badge_active=user.is_badge_active(now),
            is_verified=user.is_verified,
        )


class CACSubmission(BaseModel):
    cac_number: str
    cac_certificate: str  # URL of the uploaded certificate


class PortfolioImagesAdd(BaseModel):
    images: List[PortfolioImage]


class VerificationRejection(BaseModel):
    reason: Optional[str] = None


class VerificationRequestPage(BaseModel):
    requests: List[UserProfile]
    total: int
    page: int
    limit: int


class VerifiedUserPage(BaseModel):
    users: List[UserProfile]
    total: int
    page: int
    limit: int


class CACRequest(BaseModel):
    """What an admin sees when reviewing a CAC submission."""
    user_id: str
    name: str
    email: EmailStr
    cac_number: str
    cac_certificate: str
    cac_status: CACStatus
    created_at: datetime


class CACRequestPage(BaseModel):
    requests: List[CACRequest]
    total: int
    page: int
    limit: int


# --- Hire requests ---

class HireRequestCreate(BaseModel):
    title: str
    message: str
    phone: str
    email: EmailStr
    event_date: Optional[date] = None
    location: Optional[str] = None
    budget: Optional[str] = None  # Free-form, e.g. a budget bracket label
    attachment_url: Optional[str] = None


class HireRequest(BaseModel):
    request_id: str = Field(default_factory=new_id)
    client_id: str
    provider_id: str
    title: str
    message: str
    phone: str
    email: str
    event_date: Optional[date] = None
    location: Optional[str] = None
    budget: Optional[str] = None
    attachment_url: Optional[str] = None
    status: HireStatus = HireStatus.PENDING
    reviewed: bool = False
    read: bool = False  # Seen by the provider
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None


class HireRequestCreated(BaseModel):
    request_id: str
    status: HireStatus


class StatusUpdate(BaseModel):
    status: str


class HireRequestPage(BaseModel):
    items: List[HireRequest]
    total: int
    page: int
    limit: int


class HiredProvider(BaseModel):
    provider_id: str
    name: str
    profile_image: Optional[str] = None
    skills: List[str] = []
    service_id: str  # Most recent hired/completed request with this provider
    service_title: str
    status: HireStatus
    hire_date: datetime
    badge_active: bool = False
    is_verified: bool = False


# --- Reviews ---

class ReviewCreate(BaseModel):
    service_id: str
    rating: int
    comment: Optional[str] = ""


class Review(BaseModel):
    review_id: str = Field(default_factory=new_id)
    service_id: str
    client_id: str
    provider_id: str
    rating: int
    comment: str = ""
    created_at: datetime = Field(default_factory=utcnow)


class ProviderReviews(BaseModel):
    provider_id: str
    average_rating: float
    total_reviews: int
    reviews: List[Review]


# --- Badge subscriptions ---

class Subscription(BaseModel):
    subscription_id: str = Field(default_factory=new_id)
    user_id: str
    plan: SubscriptionPlan
    tier: SubscriptionTier = SubscriptionTier.BASIC
    amount: int
    currency: str = "NGN"
    tx_ref: str
    flw_ref: Optional[str] = None
    status: PaymentStatus = PaymentStatus.PENDING
    created_at: datetime = Field(default_factory=utcnow)


class PaymentInitiateRequest(BaseModel):
    plan: str
    tier: Optional[str] = None


class PaymentCustomer(BaseModel):
    email: str
    phone: str
    name: str


class PaymentInitiation(BaseModel):
    tx_ref: str
    amount: int
    currency: str
    customer: PaymentCustomer
    plan: SubscriptionPlan
    tier: SubscriptionTier


class PaymentVerifyRequest(BaseModel):
    transaction_id: str


class PaymentVerification(BaseModel):
    success: bool
    message: Optional[str] = None
    user: Optional[UserProfile] = None


# --- Notifications ---

class Notification(BaseModel):
    notification_id: str = Field(default_factory=new_id)
    user_id: str
    from_user_id: Optional[str] = None
    type: NotificationType
    message: str
    related_id: Optional[str] = None
    read: bool = False
    created_at: datetime = Field(default_factory=utcnow)


class UnreadCount(BaseModel):
    unread_count: int
