# backend/app/core/logging.py
import logging
import sys

from backend.app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging() -> None:
    """Configure the root logger once at startup."""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stdout,
    )
    # Access logs duplicate what the handlers already log
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
