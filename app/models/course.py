"""Course and course topic models."""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text, Integer, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from app.db.base import Base


class Course(Base):
    """Course model."""

    __tablename__ = "courses"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(300), nullable=False)
    description = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)

    topics = relationship("CourseTopic", back_populates="course", cascade="all, delete-orphan")


class CourseTopic(Base):
    """Topic with a structured study guide stored as JSON text in ``content``."""

    __tablename__ = "course_topics"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    course_id = Column(Uuid(as_uuid=True), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(300), nullable=False)
    content = Column(Text)
    order = Column(Integer, nullable=False, default=0)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    course = relationship("Course", back_populates="topics")
    mcq_links = relationship("McqTopicLink", back_populates="topic", cascade="all, delete-orphan")
