"""Video taxonomy models."""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text, Integer, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from app.db.base import Base


class VideoGroup(Base):
    __tablename__ = "video_groups"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)

    subgroups = relationship("VideoSubgroup", back_populates="group", cascade="all, delete-orphan")


class VideoSubgroup(Base):
    __tablename__ = "video_subgroups"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    group_id = Column(Uuid(as_uuid=True), ForeignKey("video_groups.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)

    group = relationship("VideoGroup", back_populates="subgroups")
