"""Subscription models."""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text, Integer, Numeric, ForeignKey, JSON, Uuid
from sqlalchemy.orm import relationship
from app.db.base import Base


class SubscriptionTier(Base):
    """Purchasable (or awardable) subscription tier."""

    __tablename__ = "subscription_tiers"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text)
    price = Column(Numeric(10, 2), default=0)
    currency = Column(String(10), default="USD")
    duration_in_months = Column(Integer, nullable=False, default=1)
    stripe_price_id = Column(String(100), index=True)
    features = Column(JSON, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)

    subscriptions = relationship("UserSubscription", back_populates="tier")


class UserSubscription(Base):
    """A user's subscription period."""

    __tablename__ = "user_subscriptions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    subscription_tier_id = Column(Uuid(as_uuid=True), ForeignKey("subscription_tiers.id"), nullable=False)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    status = Column(String(20), nullable=False, default="active")  # active / inactive / expired
    stripe_subscription_id = Column(String(100))
    stripe_customer_id = Column(String(100))
    stripe_status = Column(String(30))
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="subscriptions")
    tier = relationship("SubscriptionTier", back_populates="subscriptions")
