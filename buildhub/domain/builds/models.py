import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from buildhub.core.database import Base


class Build(Base):
    """A user-submitted character build."""

    __tablename__ = "builds"
    __table_args__ = (
        Index("ix_builds_published_created", "is_published", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    level = Column(Integer, nullable=False)
    build_type = Column(String, nullable=True)

    # Character stats
    vigor = Column(Integer, nullable=False)
    mind = Column(Integer, nullable=False)
    endurance = Column(Integer, nullable=False)
    strength = Column(Integer, nullable=False)
    dexterity = Column(Integer, nullable=False)
    intelligence = Column(Integer, nullable=False)
    faith = Column(Integer, nullable=False)
    arcane = Column(Integer, nullable=False)

    # Equipment
    weapons = Column(JSON, nullable=False, default=list)
    armor = Column(JSON, nullable=False, default=list)
    talismans = Column(JSON, nullable=False, default=list)
    spells = Column(JSON, nullable=False, default=list)

    is_published = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="builds")
    comments = relationship("Comment", back_populates="build", cascade="all, delete-orphan", passive_deletes=True)
    likes = relationship("Like", back_populates="build", cascade="all, delete-orphan", passive_deletes=True)
