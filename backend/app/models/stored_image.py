# backend/app/models/stored_image.py
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func

from backend.app.db.base import Base


class StoredImage(Base):
    """Metadata for an uploaded image; the bytes live in the blob store directory."""
    __tablename__ = "stored_images"

    id = Column(Integer, primary_key=True, index=True)
    path = Column(String(255), unique=True, index=True, nullable=False)
    # Sniffed from the file's magic bytes, never taken from the client
    content_type = Column(String(50), nullable=False)
    size = Column(Integer, nullable=False)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
