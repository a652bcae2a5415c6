import logging

logger = logging.getLogger(__name__)


async def init_models(drop: bool = False) -> None:
    """Create every table (optionally dropping them first - DEV ONLY)."""
    from backend.app.db.base import Base, engine
    import backend.app.models  # noqa: F401  (registers the tables)

    try:
        async with engine.begin() as conn:
            if drop:
                logger.warning("Dropping all tables")
                await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Tables created")
    except Exception:
        logger.exception("Could not create tables")
        raise
