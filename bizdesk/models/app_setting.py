"""Application settings stored as key/value rows."""
from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from bizdesk.database import Base


class AppSetting(Base):
    """One application setting (value stored JSON-encoded)."""

    __tablename__ = 'app_settings'

    key = Column(String(64), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<AppSetting(key='{self.key}')>"
