"""Static page, blog and review models."""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text, Integer, JSON, Uuid
from app.db.base import Base


class StaticPage(Base):
    """CMS page addressed by slug; ``location`` lists header/footer placement."""

    __tablename__ = "static_pages"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    slug = Column(String(200), unique=True, nullable=False, index=True)
    title = Column(String(300), nullable=False)
    content = Column(Text)
    location = Column(JSON, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Blog(Base):
    """Blog post, written manually or by the auto-blog generator."""

    __tablename__ = "blogs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    slug = Column(String(300), unique=True, nullable=False, index=True)
    title = Column(String(300), nullable=False)
    content = Column(Text)
    meta_description = Column(Text)
    keywords = Column(JSON, default=list)
    status = Column(String(20), nullable=False, default="draft")  # draft / published
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Review(Base):
    """Public star-rated testimonial."""

    __tablename__ = "reviews"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(150), nullable=False)
    rating = Column(Integer, nullable=False)  # 1..5
    review_text = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
