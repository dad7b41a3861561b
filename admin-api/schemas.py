import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)


def parse_platforms(raw: Any) -> List[Any]:
    """Decode a stored platforms value. Anything unreadable becomes []."""
    if isinstance(raw, list):
        return raw
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        logger.debug(f"Unparseable platforms value: {raw!r}")
        return []
    return value if isinstance(value, list) else []


def serialize_platforms(value: Union[str, List[Any], None]) -> str:
    # Strings are taken as already serialized
    if isinstance(value, str):
        return value
    return json.dumps(value or [])


# --- Auth ---

class LoginRequest(BaseModel):
    username: str  # username or email
    password: str


class Identity(BaseModel):
    id: int
    username: str
    role: str


class UserPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    role: str


class LoginResponse(BaseModel):
    token: str
    user: UserPublic


class VerifyResponse(BaseModel):
    user: Identity


# --- Creators ---

class CreatorOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    display_name: str
    description: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None
    status: Optional[str] = None
    is_featured: bool = False
    is_paid_member: bool = False
    featured_priority: int = 0
    platforms: List[Any] = []
    viewers: int = 0
    last_live_start: Optional[datetime] = None
    last_seen: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("platforms", mode="before")
    @classmethod
    def decode_platforms(cls, value):
        return parse_platforms(value)


class CreatorCreate(BaseModel):
    display_name: str
    description: Optional[str] = None
    email: Optional[str] = None
    platforms: Union[str, List[Any], None] = None
    is_featured: bool = False
    is_paid_member: bool = False
    featured_priority: int = 0


class CreatorPatch(BaseModel):
    """
    Sparse update. Only fields explicitly present in the request are applied;
    use model_dump(exclude_unset=True) to get them.
    """
    display_name: Optional[str] = None
    description: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None
    platforms: Union[str, List[Any], None] = None
    status: Optional[str] = None
    is_featured: Optional[bool] = None
    is_paid_member: Optional[bool] = None
    featured_priority: Optional[int] = None
    viewers: Optional[int] = Field(default=None, ge=0)


class StatusUpdate(BaseModel):
    status: str
    viewers: Optional[int] = Field(default=None, ge=0)
    live_start: Optional[datetime] = None


class BulkStatusItem(BaseModel):
    id: int
    status: str
    viewers: Optional[int] = Field(default=None, ge=0)


class BulkStatusRequest(BaseModel):
    updates: List[BulkStatusItem]


class CreatedResponse(BaseModel):
    id: int
    message: str


class MessageResponse(BaseModel):
    message: str


class BulkStatusResponse(BaseModel):
    message: str
    count: int


# --- Subscriptions ---

class SubscriptionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    creator_id: Optional[int] = None
    stripe_subscription_id: Optional[str] = None
    stripe_customer_id: Optional[str] = None
    status: Optional[str] = None
    plan_type: Optional[str] = None
    amount: Optional[int] = None
    currency: Optional[str] = None
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None
    created_at: Optional[datetime] = None
    display_name: Optional[str] = None
    email: Optional[str] = None


class StripeSubscriptionView(BaseModel):
    id: str
    status: Optional[str] = None
    customer: Optional[str] = None
    cancel_at_period_end: Optional[bool] = None
    current_period_start: Optional[int] = None
    current_period_end: Optional[int] = None


class StripeProxyResponse(BaseModel):
    subscription: SubscriptionOut
    stripe: StripeSubscriptionView


# --- Analytics ---

class CreatorStats(BaseModel):
    total_creators: int = 0
    live_creators: int = 0
    featured_creators: int = 0
    paid_members: int = 0
    total_viewers: int = 0


class SubscriptionStats(BaseModel):
    total_subscriptions: int = 0
    active_subscriptions: int = 0
    monthly_revenue: int = 0


class ActivityCount(BaseModel):
    event_type: str
    count: int


class DashboardStats(BaseModel):
    creators: CreatorStats
    subscriptions: SubscriptionStats
    recent_activity: List[ActivityCount] = []


SettingsMap = Dict[str, Optional[str]]
