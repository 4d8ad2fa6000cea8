"""
Admin Module - Models
======================
AppSetting: Key-value application configuration managed from the admin API
(WhatsApp contacts, share template, limits).
"""

from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.sql import func
from config.database import Base
from config.settings import (
    APP_NAME, APP_VERSION, DEFAULT_WHATSAPP_NUMBERS, DEFAULT_WHATSAPP_TEMPLATE,
    MAX_IMAGES_PER_DESIGN,
)


class AppSetting(Base):
    __tablename__ = "app_settings"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False)
    description = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "value": self.value,
            "description": self.description,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self):
        return f"<Setting {self.key}={self.value}>"


# (key, value, description) seeded by migrations and scripts/init_db.py
DEFAULT_SETTINGS = [
    ("app_name", APP_NAME, "Application name"),
    ("app_version", APP_VERSION, "Application version"),
    ("whatsapp_contact_numbers", DEFAULT_WHATSAPP_NUMBERS,
     "WhatsApp contact numbers for design sharing (comma-separated)"),
    ("whatsapp_message_template", DEFAULT_WHATSAPP_TEMPLATE,
     "WhatsApp message template for sharing designs"),
    ("featured_designs_limit", "10", "Number of featured designs to show"),
    ("max_images_per_design", str(MAX_IMAGES_PER_DESIGN), "Maximum number of images allowed per design"),
]
