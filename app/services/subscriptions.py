"""Privileged subscription mutations (trial, awards, Stripe fulfilment)."""
import calendar
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import UpstreamServiceError
from app.models import SubscriptionTier, User, UserSubscription

logger = logging.getLogger(__name__)


def add_months(start: datetime, months: int) -> datetime:
    """Calendar-month addition, clamping the day to the target month's length."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return start.replace(year=year, month=month, day=day)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _get_user(db: Session, user_id: uuid.UUID) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise UpstreamServiceError(f"User {user_id} not found.")
    return user


def _get_tier_by_name(db: Session, name: str) -> Optional[SubscriptionTier]:
    return db.query(SubscriptionTier).filter(SubscriptionTier.name == name).first()


def _commit(db: Session, action: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to %s: %s", action, e)
        raise UpstreamServiceError(f"Failed to {action}: {e}") from e


def activate_trial(db: Session, user_id: uuid.UUID, now: Optional[datetime] = None) -> UserSubscription:
    """Start the trial tier for ``user_id`` and flag the profile."""
    tier_name = settings.TRIAL_TIER_NAME
    tier = _get_tier_by_name(db, tier_name)
    if tier is None:
        raise UpstreamServiceError(
            f"Subscription tier '{tier_name}' not found. Please create it in Admin Settings."
        )

    user = _get_user(db, user_id)
    start = now or _utcnow()
    subscription = UserSubscription(
        user_id=user.id,
        subscription_tier_id=tier.id,
        start_date=start,
        end_date=start + timedelta(days=settings.TRIAL_DAYS),
        status="active",
    )
    db.add(subscription)
    user.has_active_subscription = True
    user.trial_taken = True
    _commit(db, "activate trial")
    logger.info("Activated %s for user %s", tier_name, user_id)
    return subscription


def award_free_subscription(db: Session, user_id: uuid.UUID, now: Optional[datetime] = None) -> UserSubscription:
    """Grant the free award tier; previous non-Stripe active periods are closed."""
    tier_name = settings.FREE_AWARD_TIER_NAME
    tier = _get_tier_by_name(db, tier_name)
    if tier is None:
        raise UpstreamServiceError(f"{tier_name} subscription tier not found.")

    user = _get_user(db, user_id)
    start = now or _utcnow()

    db.query(UserSubscription).filter(
        UserSubscription.user_id == user.id,
        UserSubscription.status == "active",
        UserSubscription.stripe_subscription_id.is_(None),
    ).update({"status": "inactive"}, synchronize_session=False)

    subscription = UserSubscription(
        user_id=user.id,
        subscription_tier_id=tier.id,
        start_date=start,
        end_date=add_months(start, tier.duration_in_months),
        status="active",
    )
    db.add(subscription)
    user.has_active_subscription = True
    _commit(db, "save free subscription")
    db.refresh(subscription)
    return subscription


def update_subscription_status(db: Session, user_id: uuid.UUID, is_active: bool) -> None:
    """Set the profile flag; deactivation also expires the latest active period."""
    user = _get_user(db, user_id)
    user.has_active_subscription = is_active

    if not is_active:
        latest = db.query(UserSubscription).filter(
            UserSubscription.user_id == user.id,
            UserSubscription.status == "active",
        ).order_by(UserSubscription.end_date.desc()).first()
        if latest is not None:
            latest.status = "expired"

    _commit(db, "update profile status")


def _from_timestamp(value: int) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc).replace(tzinfo=None)


def subscription_period(subscription: Dict[str, Any]) -> Tuple[datetime, datetime]:
    """
    Current billing period of a Stripe subscription dict.

    Older API versions carry it on the subscription, newer ones on the
    first subscription item.
    """
    start = subscription.get("current_period_start")
    end = subscription.get("current_period_end")
    if start is None or end is None:
        items = (subscription.get("items") or {}).get("data") or []
        if items:
            start = items[0].get("current_period_start")
            end = items[0].get("current_period_end")
    if start is None or end is None:
        raise UpstreamServiceError(f"Subscription {subscription.get('id')} has no billing period.")
    return _from_timestamp(start), _from_timestamp(end)


def fulfill_checkout(db: Session, session: Dict[str, Any]) -> UserSubscription:
    """
    Record a paid Stripe checkout session as the user's active subscription.

    Args:
        db: Database session
        session: Checkout Session dict with ``subscription`` expanded

    Returns:
        The new UserSubscription row

    Raises:
        ValueError: The session is unpaid or incomplete
        UpstreamServiceError: Session data or the matching tier is missing
    """
    if session.get("payment_status") != "paid" or session.get("status") != "complete":
        raise ValueError("Payment not successful or session incomplete.")

    subscription = session.get("subscription")
    metadata = session.get("metadata") or {}
    price_id = metadata.get("price_id")
    user_id = metadata.get("user_id")
    customer_id = session.get("customer")

    if not subscription or not price_id or not user_id or not customer_id:
        raise UpstreamServiceError("Missing subscription, price ID, user ID, or customer ID in session data.")

    tier = db.query(SubscriptionTier).filter(SubscriptionTier.stripe_price_id == price_id).first()
    if tier is None:
        raise UpstreamServiceError("Subscription tier not found for fulfillment.")

    try:
        user = _get_user(db, uuid.UUID(str(user_id)))
    except ValueError as e:
        raise UpstreamServiceError(f"Invalid user ID in session metadata: {user_id}") from e

    period_start, period_end = subscription_period(subscription)

    db.query(UserSubscription).filter(
        UserSubscription.user_id == user.id,
        UserSubscription.status == "active",
    ).update({"status": "inactive"}, synchronize_session=False)

    record = UserSubscription(
        user_id=user.id,
        subscription_tier_id=tier.id,
        start_date=period_start,
        end_date=period_end,
        status="active",
        stripe_subscription_id=subscription["id"],
        stripe_customer_id=customer_id,
        stripe_status=subscription.get("status"),
    )
    db.add(record)
    user.has_active_subscription = True
    user.stripe_customer_id = customer_id
    _commit(db, "save subscription to database")
    logger.info("Fulfilled Stripe subscription %s for user %s", subscription["id"], user_id)
    return record


ENDED_STRIPE_STATUSES = {"canceled", "unpaid", "incomplete_expired"}
LIVE_STRIPE_STATUSES = {"active", "trialing"}


def record_checkout_completed(
    db: Session, session: Dict[str, Any], now: Optional[datetime] = None
) -> Optional[UserSubscription]:
    """
    Webhook counterpart of ``fulfill_checkout`` for ``checkout.session.completed``.

    Deliveries are idempotent on the Stripe subscription id; a repeat returns
    None without touching the database.
    """
    metadata = session.get("metadata") or {}
    user_id = metadata.get("user_id")
    price_id = metadata.get("price_id")
    if not user_id or not price_id:
        raise UpstreamServiceError("Missing user ID or price ID in checkout session metadata.")

    subscription = session.get("subscription")
    if isinstance(subscription, dict):
        subscription = subscription.get("id")
    stripe_subscription_id = subscription or session.get("id")

    existing = db.query(UserSubscription).filter(
        UserSubscription.stripe_subscription_id == stripe_subscription_id
    ).first()
    if existing is not None:
        logger.info("Stripe subscription %s already recorded", stripe_subscription_id)
        return None

    tier = db.query(SubscriptionTier).filter(SubscriptionTier.stripe_price_id == price_id).first()
    if tier is None:
        raise UpstreamServiceError(f"Subscription tier not found for price {price_id}.")

    try:
        user = _get_user(db, uuid.UUID(str(user_id)))
    except ValueError as e:
        raise UpstreamServiceError(f"Invalid user ID in session metadata: {user_id}") from e

    start = now or _utcnow()
    db.query(UserSubscription).filter(
        UserSubscription.user_id == user.id,
        UserSubscription.status == "active",
    ).update({"status": "inactive"}, synchronize_session=False)

    customer_id = session.get("customer")
    record = UserSubscription(
        user_id=user.id,
        subscription_tier_id=tier.id,
        start_date=start,
        end_date=add_months(start, tier.duration_in_months),
        status="active",
        stripe_subscription_id=stripe_subscription_id,
        stripe_customer_id=customer_id,
        stripe_status=session.get("payment_status"),
    )
    db.add(record)
    user.has_active_subscription = True
    if customer_id:
        user.stripe_customer_id = customer_id
    _commit(db, "record completed checkout")
    logger.info("Recorded Stripe subscription %s for user %s", stripe_subscription_id, user_id)
    return record


def apply_subscription_update(
    db: Session, subscription: Dict[str, Any], deleted: bool = False
) -> Optional[UserSubscription]:
    """Mirror a ``customer.subscription.*`` event onto the stored period."""
    record = db.query(UserSubscription).filter(
        UserSubscription.stripe_subscription_id == subscription.get("id")
    ).first()
    if record is None:
        logger.warning("No stored subscription for Stripe id %s", subscription.get("id"))
        return None

    stripe_status = "canceled" if deleted else subscription.get("status")
    record.stripe_status = stripe_status
    user = _get_user(db, record.user_id)

    if deleted or stripe_status in ENDED_STRIPE_STATUSES:
        record.status = "expired"
        user.has_active_subscription = False
    elif stripe_status in LIVE_STRIPE_STATUSES:
        record.status = "active"
        _, record.end_date = subscription_period(subscription)
        user.has_active_subscription = True

    _commit(db, "update subscription from webhook")
    return record
