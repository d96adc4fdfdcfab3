import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.orm import relationship

from buildhub.core.database import Base


class User(Base):
    """Local record for a user authenticated by the identity provider."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    provider_id = Column(String, unique=True, nullable=False, index=True)
    email = Column(String, nullable=False)
    username = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=True)
    image_url = Column(String, nullable=True)
    bio = Column(Text, nullable=True)
    favorite_class = Column(String, nullable=True)
    favorite_weapon = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    builds = relationship("Build", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
    comments = relationship("Comment", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
    likes = relationship("Like", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
