# backend/app/security/rate_limit.py
"""
Brute-force protection for TOTP verification.

This module handles:
- Appending every verification attempt to the auth_attempts log
- Counting recent failures per client identity
- Deriving the client identity from the request

Decisions are a pure function of the rows inside the trailing window;
nothing is cached in-process. Two simultaneous attempts from the same
client may both pass the check before either is logged - the limiter
is a deterrent on top of the TOTP check, not the security boundary.
"""
import logging
from datetime import timedelta
from typing import NamedTuple, Optional

from fastapi import Request
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.clock import Clock, utcnow
from backend.app.core.config import settings
from backend.app.models.auth_attempt import AuthAttempt

logger = logging.getLogger(__name__)

# Failed attempts within the window before the client is blocked
MAX_FAILED_ATTEMPTS = settings.RATE_LIMIT_MAX_FAILURES

# Trailing window in minutes
RATE_LIMIT_WINDOW_MINUTES = settings.RATE_LIMIT_WINDOW_MINUTES

VERIFY_ACTION = "totp_verify"


class RateLimitStatus(NamedTuple):
    blocked: bool
    failure_count: int


class RateLimiter:
    def __init__(
        self,
        db: AsyncSession,
        clock: Clock = utcnow,
        max_failures: int = MAX_FAILED_ATTEMPTS,
        window: timedelta = timedelta(minutes=RATE_LIMIT_WINDOW_MINUTES),
    ):
        self.db = db
        self.clock = clock
        self.max_failures = max_failures
        self.window = window

    async def record_attempt(self, identity: str, success: bool, action: str = VERIFY_ACTION) -> None:
        """Append an attempt, whatever its outcome."""
        self.db.add(
            AuthAttempt(
                ip_address=identity,
                action=action,
                success=success,
                created_at=self.clock(),
            )
        )
        await self.db.commit()

    async def check(self, identity: str) -> RateLimitStatus:
        """
        Count failed attempts for this identity inside the trailing window.

        Returns:
            RateLimitStatus(blocked, failure_count); blocked once the
            count reaches max_failures.
        """
        cutoff = self.clock() - self.window
        result = await self.db.execute(
            select(func.count())
            .select_from(AuthAttempt)
            .where(
                AuthAttempt.ip_address == identity,
                AuthAttempt.success == False,  # noqa: E712
                AuthAttempt.created_at >= cutoff,
            )
        )
        failures = result.scalar_one()
        return RateLimitStatus(blocked=failures >= self.max_failures, failure_count=failures)


def _first_forwarded(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    first = value.split(",")[0].strip()
    return first or None


def client_identity(request: Request) -> str:
    """
    Network identity used for rate limiting.

    X-Forwarded-For / X-Real-IP are only honoured when the direct peer is
    a configured trusted proxy; otherwise any client could pick a fresh
    identity per request and never be blocked.
    """
    peer = request.client.host if request.client else None

    if peer and peer in settings.trusted_proxies:
        forwarded = _first_forwarded(request.headers.get("x-forwarded-for"))
        if forwarded:
            return forwarded
        real_ip = (request.headers.get("x-real-ip") or "").strip()
        if real_ip:
            return real_ip

    return peer or "unknown"
