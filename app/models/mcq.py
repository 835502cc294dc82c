"""MCQ models and the per-user widgets attached to them."""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from app.db.base import Base


class Mcq(Base):
    """Multiple-choice question with four options."""

    __tablename__ = "mcqs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    question_text = Column(Text, nullable=False)
    option_a = Column(Text, nullable=False)
    option_b = Column(Text, nullable=False)
    option_c = Column(Text, nullable=False)
    option_d = Column(Text, nullable=False)
    correct_answer = Column(String(1), nullable=False)  # A / B / C / D
    explanation_text = Column(Text)
    difficulty = Column(String(20))  # Easy / Medium / Hard
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    topic_links = relationship("McqTopicLink", back_populates="mcq", cascade="all, delete-orphan")
    bookmarks = relationship("BookmarkedMcq", back_populates="mcq", cascade="all, delete-orphan")
    feedback = relationship("McqFeedback", back_populates="mcq", cascade="all, delete-orphan")


class McqTopicLink(Base):
    """Association between a question and a course topic.

    At most one link per question is kept by the linking pipeline; the table
    itself does not enforce it.
    """

    __tablename__ = "mcq_topic_links"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    mcq_id = Column(Uuid(as_uuid=True), ForeignKey("mcqs.id", ondelete="CASCADE"), nullable=False, index=True)
    topic_id = Column(Uuid(as_uuid=True), ForeignKey("course_topics.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    mcq = relationship("Mcq", back_populates="topic_links")
    topic = relationship("CourseTopic", back_populates="mcq_links")


class BookmarkedMcq(Base):
    """A user's bookmark on a question."""

    __tablename__ = "user_bookmarked_mcqs"
    __table_args__ = (UniqueConstraint("user_id", "mcq_id", name="uq_bookmark_user_mcq"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    mcq_id = Column(Uuid(as_uuid=True), ForeignKey("mcqs.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="bookmarks")
    mcq = relationship("Mcq", back_populates="bookmarks")


class McqFeedback(Base):
    """User-reported feedback on a question, reviewed by admins."""

    __tablename__ = "mcq_feedback"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    mcq_id = Column(Uuid(as_uuid=True), ForeignKey("mcqs.id", ondelete="CASCADE"), nullable=False)
    feedback_text = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="pending")  # pending / reviewed
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="feedback")
    mcq = relationship("Mcq", back_populates="feedback")
