# backend/app/db/base.py
"""
SQLAlchemy declarative base and re-exports of the session components.
"""
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Usage:
        class Project(Base):
            __tablename__ = "projects"
            id = Column(Integer, primary_key=True)
            ...
    """
    pass


from backend.app.db.session import (  # noqa: E402
    engine,
    AsyncSessionLocal,
    get_db,
)

__all__ = [
    "Base",
    "engine",
    "AsyncSessionLocal",
    "get_db",
]
