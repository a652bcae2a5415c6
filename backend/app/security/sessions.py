# backend/app/security/sessions.py
"""
Admin session tokens.

- Opaque 256-bit hex tokens, stored server-side with an absolute expiry
- Valid iff now < expires_at, re-checked on every call
- Sliding renewal: every authorized call pushes expiry to now + TTL
- No per-token revocation; expiry is purely time-based
- Expired rows are purged whenever a new session is created

Purge and insert are two separate commits. Concurrent logins may both
purge; that is idempotent and sessions are not a scarce resource.
"""
import logging
import secrets
from datetime import timedelta
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.clock import Clock, ensure_aware, utcnow
from backend.app.core.config import settings
from backend.app.models.admin_session import AdminSession

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32


class SessionManager:
    def __init__(
        self,
        db: AsyncSession,
        clock: Clock = utcnow,
        ttl: timedelta = timedelta(minutes=settings.SESSION_TTL_MINUTES),
    ):
        self.db = db
        self.clock = clock
        self.ttl = ttl

    async def purge_expired(self) -> int:
        """Delete every session whose expiry has passed. Returns the row count."""
        result = await self.db.execute(
            delete(AdminSession)
            .where(AdminSession.expires_at <= self.clock())
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount or 0

    async def create_session(self) -> str:
        purged = await self.purge_expired()
        if purged:
            logger.info("Purged %d expired admin sessions", purged)

        now = self.clock()
        token = secrets.token_hex(TOKEN_BYTES)
        self.db.add(
            AdminSession(
                session_token=token,
                expires_at=now + self.ttl,
                created_at=now,
            )
        )
        await self.db.commit()
        logger.info("Admin session created")
        return token

    async def is_valid(self, token: Optional[str]) -> bool:
        if not token:
            return False

        result = await self.db.execute(
            select(AdminSession.expires_at).where(AdminSession.session_token == token)
        )
        expires_at = ensure_aware(result.scalars().first())
        if expires_at is None:
            return False
        return self.clock() < expires_at

    async def extend(self, token: str) -> None:
        """Slide the expiry forward. Missing tokens are ignored."""
        await self.db.execute(
            update(AdminSession)
            .where(AdminSession.session_token == token)
            .values(expires_at=self.clock() + self.ttl)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
