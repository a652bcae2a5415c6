# backend/app/security/secret_store.py
"""
Single read/write point for the shared TOTP secret.

Two tiers:
- admin_secrets  (authoritative, restricted table)
- site_settings  (legacy location, read as a fallback and mirrored on write)

The legacy tier only exists for deployments that still have the secret
in site_settings. Once all of them have been migrated, drop
LEGACY_FALLBACK and the mirror write.
"""
import logging
from typing import Optional, Type, Union

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.errors import PersistenceFailure
from backend.app.models.admin_secret import AdminSecret, SiteSetting
from backend.app.security.totp import decode_shared_secret

logger = logging.getLogger(__name__)

TOTP_SECRET_KEY = "totp_secret"
LEGACY_FALLBACK = True


class SecretStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _read(self, model: Type[Union[AdminSecret, SiteSetting]]) -> Optional[str]:
        result = await self.db.execute(select(model.value).where(model.key == TOTP_SECRET_KEY))
        return result.scalars().first()

    async def _upsert(self, model: Type[Union[AdminSecret, SiteSetting]], value: str) -> None:
        result = await self.db.execute(select(model).where(model.key == TOTP_SECRET_KEY))
        row = result.scalars().first()
        if row:
            row.value = value
        else:
            row = model(key=TOTP_SECRET_KEY, value=value)
        self.db.add(row)
        await self.db.commit()

    async def get_secret(self) -> Optional[str]:
        """Authoritative table first, then the legacy settings row."""
        value = await self._read(AdminSecret)
        if value:
            return value
        if LEGACY_FALLBACK:
            return await self._read(SiteSetting) or None
        return None

    async def set_secret(self, value: str) -> None:
        """
        Persist the secret (last write wins).

        Raises:
            PersistenceFailure: the authoritative write failed
        """
        try:
            await self._upsert(AdminSecret, value)
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.exception("Failed to save TOTP secret")
            raise PersistenceFailure("Failed to save secret") from exc

        try:
            await self._upsert(SiteSetting, value)
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("Failed to mirror TOTP secret to site_settings (ignored)")

        logger.info("TOTP secret saved")

    async def is_configured(self) -> bool:
        """True when a usable secret exists. Never exposes the value."""
        secret = await self.get_secret()
        return bool(secret) and bool(decode_shared_secret(secret))
