import logging
from typing import List
import stripe
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import crud
from config import settings
from database import get_db
from dependencies import require_admin
from errors import UpstreamError
from schemas import Identity, StripeProxyResponse, StripeSubscriptionView, SubscriptionOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/subscriptions", tags=["Subscriptions"])


@router.get("", response_model=List[SubscriptionOut])
def list_subscriptions(identity: Identity = Depends(require_admin), db: Session = Depends(get_db)):
    return crud.list_subscriptions(db)


@router.get("/{subscription_id}/stripe", response_model=StripeProxyResponse)
def stripe_subscription(
    subscription_id: int,
    identity: Identity = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Live view of a subscription as Stripe currently sees it.
    Read-only: the local row is not modified.
    """
    local = crud.get_subscription(db, subscription_id)

    if not settings.STRIPE_API_KEY:
        raise UpstreamError("Stripe is not configured")
    if not local.get("stripe_subscription_id"):
        raise UpstreamError("Subscription has no Stripe id")

    try:
        remote = stripe.Subscription.retrieve(local["stripe_subscription_id"], api_key=settings.STRIPE_API_KEY)
    except stripe.StripeError as e:
        logger.error(f"Stripe lookup failed for {local['stripe_subscription_id']}: {e}")
        raise UpstreamError("Stripe request failed")

    # StripeObject is not a dict in current SDKs
    data = remote.to_dict()
    view = StripeSubscriptionView(
        id=data["id"],
        status=data.get("status"),
        customer=data.get("customer"),
        cancel_at_period_end=data.get("cancel_at_period_end"),
        current_period_start=data.get("current_period_start"),
        current_period_end=data.get("current_period_end"),
    )
    return StripeProxyResponse(subscription=SubscriptionOut(**local), stripe=view)
