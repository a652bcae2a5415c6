# backend/app/api/deps.py
import logging
from typing import Any

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.clock import Clock, utcnow
from backend.app.core.errors import SessionExpired
from backend.app.db.base import get_db
from backend.app.security.rate_limit import client_identity
from backend.app.security.sessions import SessionManager
from backend.app.services.verification import VerificationService
from backend.app.storage.blob import BlobStore

logger = logging.getLogger(__name__)


def get_clock() -> Clock:
    return utcnow


def get_client_identity(request: Request) -> str:
    return client_identity(request)


def get_session_manager(
        db: AsyncSession = Depends(get_db),
        clock: Clock = Depends(get_clock),
) -> SessionManager:
    return SessionManager(db, clock=clock)


def get_verification_service(
        db: AsyncSession = Depends(get_db),
        clock: Clock = Depends(get_clock),
) -> VerificationService:
    return VerificationService(db, clock=clock)


def get_blob_store(db: AsyncSession = Depends(get_db)) -> BlobStore:
    return BlobStore(db)


async def authorize_session(sessions: SessionManager, session_token: Any) -> None:
    """
    Gate in front of every privileged mutation.

    1. a token must be present (anything but a non-empty string counts as missing)
    2. it must be valid right now
    3. it is extended (sliding expiry)
    Only after this returns may the caller touch any data.

    Raises:
        SessionExpired: missing, malformed, unknown or expired token
    """
    if not isinstance(session_token, str) or not session_token:
        logger.info("Missing or malformed session token")
        raise SessionExpired()

    if not await sessions.is_valid(session_token):
        logger.info("Invalid or expired session")
        raise SessionExpired()

    await sessions.extend(session_token)
