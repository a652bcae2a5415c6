# backend/app/models/auth_attempt.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Index
from sqlalchemy.sql import func

from backend.app.db.base import Base


class AuthAttempt(Base):
    """Append-only log of TOTP verification attempts, read only by the rate limiter."""
    __tablename__ = "auth_attempts"
    __table_args__ = (
        Index("idx_auth_attempts_ip_time", "ip_address", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    ip_address = Column(String(100), nullable=False)
    action = Column(String(50), nullable=False, default="totp_verify")
    success = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
