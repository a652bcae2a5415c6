# backend/app/models/admin_secret.py
from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func

from backend.app.db.base import Base


class AdminSecret(Base):
    """
    Restricted key/value store for admin credentials.

    Only the backend reads this table. The TOTP secret lives under
    key "totp_secret" (single row, last write wins).
    """
    __tablename__ = "admin_secrets"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String(100), unique=True, nullable=False)
    value = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class SiteSetting(Base):
    """
    Public site settings (og_image, ...).

    Before admin_secrets existed the TOTP secret was kept here too;
    it is still mirrored for older readers.
    """
    __tablename__ = "site_settings"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String(100), unique=True, nullable=False)
    value = Column(Text, nullable=True)
