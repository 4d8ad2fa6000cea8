"""
User Module - User Model
=========================
Gallery accounts. Registration creates unapproved, non-admin users;
admins approve them and may grant the admin flag.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func, false
from config.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)

    # === Role Flags ===
    is_admin = Column(Boolean, default=False, server_default=false(), nullable=False, index=True)
    is_approved = Column(Boolean, default=False, server_default=false(), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def can_login(self) -> bool:
        """Admins are always considered approved."""
        return bool(self.is_admin or self.is_approved)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "is_admin": self.is_admin,
            "is_approved": self.is_approved,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self):
        return f"<User {self.username}>"
