# backend/app/storage/blob.py
"""
Local public-read blob store for site images.

Bytes are written under UPLOAD_DIR at the object path; the content type
is kept in stored_images so it is served exactly as sniffed at upload
time, whatever the file extension says.

A put stages the bytes next to the target, commits the metadata, and only
then moves the staged file into place, so a failed commit leaves the
previous bytes and content type together.
"""
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from backend.app.core.config import settings
from backend.app.models.stored_image import StoredImage

logger = logging.getLogger(__name__)


class BlobStore:
    def __init__(self, db: AsyncSession, root: Optional[str] = None, public_base_url: Optional[str] = None):
        self.db = db
        self.root = Path(root or settings.UPLOAD_DIR).resolve()
        self.public_base_url = (public_base_url or settings.PUBLIC_BASE_URL).rstrip("/")

    def _file_path(self, path: str) -> Path:
        target = (self.root / path).resolve()
        # Callers validate paths already; this keeps writes inside the root regardless
        if self.root not in target.parents:
            raise ValueError(f"path escapes blob root: {path}")
        return target

    def public_url(self, path: str) -> str:
        return f"{self.public_base_url}{settings.API_V1_STR}/media/{path}"

    @staticmethod
    def _stage(target: Path, content: bytes) -> Path:
        """Write the bytes to a temp file in the target's directory."""
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, staged = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".part")
        with os.fdopen(fd, "wb") as fh:
            fh.write(content)
        return Path(staged)

    async def put(self, path: str, content: bytes, content_type: str) -> str:
        """
        Store (or overwrite) an object and return its public URL.

        Raises:
            SQLAlchemyError: the metadata commit failed; nothing was replaced
        """
        target = self._file_path(path)
        staged = await run_in_threadpool(self._stage, target, content)

        try:
            result = await self.db.execute(select(StoredImage).where(StoredImage.path == path))
            record = result.scalars().first()
            if record:
                record.content_type = content_type
                record.size = len(content)
            else:
                record = StoredImage(path=path, content_type=content_type, size=len(content))
            self.db.add(record)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            await run_in_threadpool(staged.unlink, missing_ok=True)
            logger.warning("Discarded staged upload for %s", path)
            raise

        # Same directory, so the rename is atomic
        await run_in_threadpool(os.replace, staged, target)
        return self.public_url(path)

    async def get(self, path: str) -> Optional[Tuple[Path, str]]:
        """Return (file path, content type) for a stored object, or None."""
        result = await self.db.execute(select(StoredImage).where(StoredImage.path == path))
        record = result.scalars().first()
        if not record:
            return None
        try:
            target = self._file_path(path)
        except ValueError:
            return None
        if not target.is_file():
            logger.warning("Blob metadata without file: %s", path)
            return None
        return target, record.content_type
