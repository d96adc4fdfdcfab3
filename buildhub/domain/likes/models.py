import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship

from buildhub.core.database import Base


class Like(Base):
    """One user's like on one build."""

    __tablename__ = "likes"
    __table_args__ = (
        UniqueConstraint("user_id", "build_id", name="uq_likes_user_build"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    build_id = Column(String(36), ForeignKey("builds.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="likes")
    build = relationship("Build", back_populates="likes")
