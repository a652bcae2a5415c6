# backend/app/services/verification.py
"""
Admin second-factor protocol.

Lifecycle of the single admin:

    UNCONFIGURED --setup--> AUTHENTICATED(session)
    CONFIGURED   --verify-> AUTHENTICATED(session)
    AUTHENTICATED --session expires / absent--> CONFIGURED

Operations (dispatched by `action`):
- check             whether a secret exists (never the secret)
- generate          fresh candidate secret for enrollment, not persisted
- setup             persist a secret after re-checking a code for it
- verify            rate limit → secret lookup → code check → attempt log → session
- validate_session  validity check with sliding renewal
"""
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.clock import Clock, utcnow
from backend.app.core.config import settings
from backend.app.core.errors import (
    InvalidAction,
    InvalidCode,
    InvalidInput,
    MissingInput,
    NotConfigured,
    RateLimited,
    SessionExpired,
)
from backend.app.schemas.totp import (
    CheckResponse,
    GenerateResponse,
    SessionStatusResponse,
    SetupResponse,
    TotpRequest,
    VerifyResponse,
)
from backend.app.security import totp
from backend.app.security.rate_limit import RateLimiter
from backend.app.security.secret_store import SecretStore
from backend.app.security.sessions import SessionManager

logger = logging.getLogger(__name__)


class VerificationService:
    def __init__(self, db: AsyncSession, clock: Clock = utcnow):
        self.clock = clock
        self.secrets = SecretStore(db)
        self.sessions = SessionManager(db, clock=clock)
        self.limiter = RateLimiter(db, clock=clock)

    def _now_ts(self) -> float:
        return self.clock().timestamp()

    async def dispatch(self, request: TotpRequest, identity: str):
        if request.action == "check":
            return await self.check()
        if request.action == "generate":
            return self.generate()
        if request.action == "setup":
            return await self.setup(request.secret, request.code, request.session_token)
        if request.action == "verify":
            return await self.verify(request.code, identity)
        if request.action == "validate_session":
            return await self.validate_session(request.session_token)
        raise InvalidAction()

    async def check(self) -> CheckResponse:
        return CheckResponse(configured=await self.secrets.is_configured())

    def generate(self) -> GenerateResponse:
        secret = totp.generate_shared_secret()
        logger.info("Generated new TOTP secret")
        return GenerateResponse(
            secret=secret,
            otpauth_uri=totp.get_totp_uri(secret),
            qr_code=totp.generate_qr_code_base64(secret),
        )

    async def setup(
        self,
        secret: Optional[str],
        code: Optional[str],
        session_token: Optional[str] = None,
    ) -> SetupResponse:
        """
        Enroll a secret and open a session.

        The client has already checked the code against the displayed
        secret; it is checked again here before anything is written.
        Replacing an existing secret needs a live session.
        """
        if not secret:
            raise MissingInput("Missing secret")
        if not code:
            raise MissingInput("Missing code")

        secret = secret.strip().upper()
        if not totp.decode_shared_secret(secret):
            raise InvalidInput("Invalid secret")

        if await self.secrets.is_configured():
            if not await self.sessions.is_valid(session_token):
                logger.warning("Rejected secret replacement without a valid session")
                raise SessionExpired()

        if not totp.verify_totp(secret, code, for_time=self._now_ts(), time_step=settings.TOTP_TIME_STEP):
            logger.info("Setup rejected: code does not match the candidate secret")
            raise InvalidCode()

        await self.secrets.set_secret(secret)
        token = await self.sessions.create_session()
        return SetupResponse(session_token=token)

    async def verify(self, code: Optional[str], identity: str) -> VerifyResponse:
        status = await self.limiter.check(identity)
        if status.blocked:
            logger.warning("Rate limited %s (%d recent failures)", identity, status.failure_count)
            raise RateLimited()

        if not code:
            raise MissingInput("Missing code")

        secret = await self.secrets.get_secret()
        if not secret or not totp.decode_shared_secret(secret):
            raise NotConfigured()

        valid = totp.verify_totp(secret, code, for_time=self._now_ts(), time_step=settings.TOTP_TIME_STEP)
        await self.limiter.record_attempt(identity, valid)
        logger.info("TOTP verification for %s: %s", identity, "SUCCESS" if valid else "FAILED")

        if not valid:
            return VerifyResponse(valid=False)
        return VerifyResponse(valid=True, session_token=await self.sessions.create_session())

    async def validate_session(self, session_token: Optional[str]) -> SessionStatusResponse:
        if not await self.sessions.is_valid(session_token):
            return SessionStatusResponse(valid=False)
        await self.sessions.extend(session_token)
        return SessionStatusResponse(valid=True)
