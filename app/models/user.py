"""User model (identity plus profile)."""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Boolean, Uuid
from sqlalchemy.orm import relationship
from app.db.base import Base


class User(Base):
    """User account and profile flags.

    ``has_active_subscription`` and ``trial_taken`` are only ever changed by
    the privileged subscription handlers, never by the owning user.
    """

    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(150), unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    first_name = Column(String(100))
    last_name = Column(String(100))
    is_admin = Column(Boolean, nullable=False, default=False)
    has_active_subscription = Column(Boolean, nullable=False, default=False)
    trial_taken = Column(Boolean, nullable=False, default=False)
    stripe_customer_id = Column(String(100))
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    subscriptions = relationship("UserSubscription", back_populates="user", cascade="all, delete-orphan")
    bookmarks = relationship("BookmarkedMcq", back_populates="user", cascade="all, delete-orphan")
    feedback = relationship("McqFeedback", back_populates="user", cascade="all, delete-orphan")
