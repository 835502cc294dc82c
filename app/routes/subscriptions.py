"""Subscription and Stripe checkout functions."""
import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import get_current_admin, get_current_user
from app.db.sessions import get_db
from app.models import User
from app.services import subscriptions
from app.services.payments import StripeService, get_stripe_service


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/functions/v1", tags=["Subscriptions"])


class UserIdRequest(BaseModel):
    user_id: Optional[uuid.UUID] = None


class SubscriptionStatusRequest(BaseModel):
    user_id: Optional[uuid.UUID] = None
    is_active: Optional[bool] = None


class CheckoutRequest(BaseModel):
    price_id: Optional[str] = None
    user_id: Optional[uuid.UUID] = None


class MessageResponse(BaseModel):
    message: str


class CheckoutResponse(BaseModel):
    sessionId: str
    url: Optional[str] = None


def _subscriptions_url(query: str) -> str:
    return f"{settings.BASE_URL.rstrip('/')}/user/subscriptions?{query}"


def _require_self_or_admin(current_user: User, user_id: uuid.UUID) -> None:
    if current_user.id != user_id and not current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to act for another user")


@router.post("/activate-trial", response_model=MessageResponse)
def activate_trial(
    request: UserIdRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Start the 3-day trial for a user."""
    if not request.user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User ID is required")
    _require_self_or_admin(current_user, request.user_id)

    subscriptions.activate_trial(db, request.user_id)
    return MessageResponse(message="Trial activated successfully")


@router.post("/award-free-subscription")
def award_free_subscription(
    request: UserIdRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    if not request.user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing user_id.")

    sub = subscriptions.award_free_subscription(db, request.user_id)
    return {
        "message": "Free subscription awarded successfully.",
        "subscription": {
            "id": str(sub.id),
            "user_id": str(sub.user_id),
            "subscription_tier_id": str(sub.subscription_tier_id),
            "start_date": sub.start_date.isoformat(),
            "end_date": sub.end_date.isoformat(),
            "status": sub.status,
        },
    }


@router.post("/update-expired-subscription-status", response_model=MessageResponse)
def update_expired_subscription_status(
    request: SubscriptionStatusRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    if not request.user_id or request.is_active is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing user_id or is_active status.")

    subscriptions.update_subscription_status(db, request.user_id, request.is_active)
    return MessageResponse(message="Subscription status updated successfully.")


@router.post("/create-stripe-checkout-session", response_model=CheckoutResponse, response_model_exclude_none=True)
def create_stripe_checkout_session(
    request: CheckoutRequest,
    current_user: User = Depends(get_current_user),
    stripe_service: StripeService = Depends(get_stripe_service)
):
    if not request.price_id or not request.user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing required fields: price_id or user_id."
        )
    _require_self_or_admin(current_user, request.user_id)

    session = stripe_service.create_checkout_session(request.price_id, str(request.user_id))
    return CheckoutResponse(**session)


@router.get("/fulfill-stripe-subscription")
def fulfill_stripe_subscription(
    session_id: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    stripe_service: StripeService = Depends(get_stripe_service)
):
    """
    Stripe success redirect target.

    Records the subscription and sends the browser back to the client with
    ``status=success``; any failure after the session id check redirects
    with ``status=failure`` instead of returning an error body.
    """
    if not session_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing session_id parameter.")

    try:
        session = stripe_service.retrieve_checkout_session(session_id)
        record = subscriptions.fulfill_checkout(db, session)
    except Exception as e:
        logger.error("Stripe fulfilment failed for session %s: %s", session_id, e)
        return RedirectResponse(_subscriptions_url("status=failure"), status_code=status.HTTP_303_SEE_OTHER)

    return RedirectResponse(
        _subscriptions_url(f"status=success&subId={record.stripe_subscription_id}"),
        status_code=status.HTTP_303_SEE_OTHER
    )


@router.get("/cancel-stripe-subscription")
def cancel_stripe_subscription():
    """Stripe cancel redirect target."""
    return RedirectResponse(_subscriptions_url("status=cancelled"), status_code=status.HTTP_303_SEE_OTHER)


@router.post("/stripe-webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
    stripe_service: StripeService = Depends(get_stripe_service)
):
    """
    Stripe event receiver.

    Handles ``checkout.session.completed`` and the ``customer.subscription``
    update/delete events; other event types are acknowledged and ignored.
    """
    if not stripe_signature:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Webhook Error: Missing stripe-signature header")

    payload = await request.body()
    try:
        event = stripe_service.construct_event(payload, stripe_signature)
    except ValueError as e:
        logger.warning("Rejected Stripe webhook: %s", e)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Webhook Error: {e}")

    event_type = event.get("type")
    data = (event.get("data") or {}).get("object") or {}
    if event_type == "checkout.session.completed":
        subscriptions.record_checkout_completed(db, data)
    elif event_type == "customer.subscription.updated":
        subscriptions.apply_subscription_update(db, data)
    elif event_type == "customer.subscription.deleted":
        subscriptions.apply_subscription_update(db, data, deleted=True)
    else:
        logger.info("Unhandled Stripe event type %s", event_type)

    return {"received": True}
