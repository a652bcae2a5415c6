# backend/app/services/uploads.py
"""
Image upload validation.

- Destination path: allow-listed prefix, no traversal, restricted charset
- Size: at most UPLOAD_MAX_BYTES
- Type: decided from the leading bytes only; the file name and the
  client-declared MIME type are ignored
"""
import logging
import re
from typing import Optional

from backend.app.core.config import settings
from backend.app.core.errors import InvalidInput
from backend.app.storage.blob import BlobStore

logger = logging.getLogger(__name__)

VALID_PATH_PATTERN = re.compile(r"^[a-zA-Z0-9\-_./]+$")


def sniff_image_type(data: bytes) -> Optional[str]:
    """Return the MIME type matching the file signature, or None."""
    if data[:3] == b"\xff\xd8\xff":
        return "image/jpeg"
    if data[:4] == b"\x89PNG":
        return "image/png"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    if data[:4] == b"GIF8":
        return "image/gif"
    return None


def is_valid_path(path: str) -> bool:
    if not path or ".." in path or path.startswith("/"):
        return False
    if not any(path.startswith(prefix) for prefix in settings.upload_allowed_prefixes):
        return False
    return bool(VALID_PATH_PATTERN.match(path))


async def store_image(blobs: BlobStore, path: str, data: bytes) -> str:
    """
    Validate an already-authorized upload and store it.

    Returns:
        Public URL of the stored image
    Raises:
        InvalidInput: bad path, too large, or not a known image format
    """
    if not is_valid_path(path):
        logger.warning("Rejected upload path: %r", path)
        raise InvalidInput("Invalid file path")

    if len(data) > settings.UPLOAD_MAX_BYTES:
        raise InvalidInput(f"File too large. Maximum size is {settings.UPLOAD_MAX_BYTES // (1024 * 1024)}MB")

    content_type = sniff_image_type(data)
    if content_type is None:
        raise InvalidInput("Invalid image file. Only JPEG, PNG, WebP, and GIF are allowed")

    logger.info("Uploading image to %s (%s, %d bytes)", path, content_type, len(data))
    return await blobs.put(path, data, content_type)
