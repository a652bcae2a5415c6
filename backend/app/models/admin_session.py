# backend/app/models/admin_session.py
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func

from backend.app.db.base import Base


class AdminSession(Base):
    __tablename__ = "admin_sessions"

    id = Column(Integer, primary_key=True, index=True)

    # Opaque bearer token handed to the admin panel (64 hex chars)
    session_token = Column(String(128), unique=True, index=True, nullable=False)

    # Usable while now < expires_at; pushed forward on every authorized call
    expires_at = Column(DateTime(timezone=True), index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
