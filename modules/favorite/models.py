"""
Favorite Module - Models
=========================
UserFavorite: a (user, design) like marker, unique per pair.
Design.like_count is the denormalized count of these rows.
"""

from sqlalchemy import Column, Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from config.database import Base


class UserFavorite(Base):
    __tablename__ = "user_favorites"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    design_id = Column(Integer, ForeignKey("designs.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    user = relationship("User")
    design = relationship("Design")

    __table_args__ = (
        UniqueConstraint("user_id", "design_id", name="uq_user_favorite"),
    )
