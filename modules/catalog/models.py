"""
Catalog Module - Models
========================
Design: a garment listing with categorical attributes and engagement counters.
DesignImage: ordered image set of a design (at most one primary).
"""

import enum

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, ForeignKey, Text,
    CheckConstraint, Index, text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func, false
from config.database import Base


class DesignStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    DRAFT = "draft"


# ==========================================
# 👗 Design
# ==========================================

class Design(Base):
    __tablename__ = "designs"

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    short_description = Column(String(500), nullable=True)
    long_description = Column(Text, nullable=True)

    # Primary stored object (key in the object store)
    object_key = Column(String(500), nullable=False)
    design_number = Column(String(20), unique=True, nullable=True, index=True)

    # === Attributes ===
    category = Column(String(100), nullable=False, index=True)
    style = Column(String(100), nullable=True, index=True)
    colour = Column(String(100), nullable=True, index=True)
    fabric = Column(String(100), nullable=True, index=True)
    occasion = Column(String(100), nullable=True, index=True)
    size_available = Column(String(255), nullable=True)
    price_range = Column(String(100), nullable=True)
    tags = Column(Text, nullable=True)  # comma separated
    designer_name = Column(String(255), nullable=True, index=True)
    collection_name = Column(String(255), nullable=True, index=True)
    season = Column(String(50), nullable=True, index=True)

    featured = Column(Boolean, default=False, server_default=false(), nullable=False, index=True)
    status = Column(String(20), default=DesignStatus.ACTIVE.value, server_default="active", nullable=False, index=True)

    # === Engagement ===
    view_count = Column(Integer, default=0, server_default="0", nullable=False)
    like_count = Column(Integer, default=0, server_default="0", nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    images = relationship(
        "DesignImage", back_populates="design",
        cascade="all, delete-orphan", passive_deletes=True,
        order_by=lambda: (DesignImage.is_primary.desc(), DesignImage.image_order, DesignImage.created_at),
    )

    __table_args__ = (
        CheckConstraint("status IN ('active', 'inactive', 'draft')", name="ck_design_status"),
        CheckConstraint("view_count >= 0", name="ck_design_views"),
        CheckConstraint("like_count >= 0", name="ck_design_likes"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == DesignStatus.ACTIVE.value

    @property
    def tag_list(self) -> list:
        if not self.tags:
            return []
        return [t.strip() for t in self.tags.split(",") if t.strip()]

    def __repr__(self):
        return f"<Design {self.id} {self.design_number or self.title}>"


class DesignImage(Base):
    __tablename__ = "design_images"

    id = Column(Integer, primary_key=True)
    design_id = Column(Integer, ForeignKey("designs.id", ondelete="CASCADE"), nullable=False, index=True)
    object_key = Column(String(500), nullable=False)
    image_order = Column(Integer, default=0, server_default="0", nullable=False)
    is_primary = Column(Boolean, default=False, server_default=false(), nullable=False)
    alt_text = Column(String(255), nullable=True)
    caption = Column(String(500), nullable=True)
    image_type = Column(String(50), default="standard", server_default="standard", nullable=False)

    # === File metadata ===
    file_size = Column(Integer, nullable=True)
    width = Column(Integer, nullable=True)
    height = Column(Integer, nullable=True)
    content_type = Column(String(100), nullable=True)
    uploaded_by = Column(String(50), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    design = relationship("Design", back_populates="images")

    __table_args__ = (
        # One primary image per design, enforced by the database
        Index(
            "uq_design_images_primary", "design_id", unique=True,
            postgresql_where=text("is_primary"),
            sqlite_where=text("is_primary = 1"),
        ),
    )

