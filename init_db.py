import asyncio
import logging
import sys

from backend.app.db import init_models

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    # Drops existing tables and recreates them - DEV MODE ONLY
    # (pass --keep to only create the missing ones)
    asyncio.run(init_models(drop="--keep" not in sys.argv))
