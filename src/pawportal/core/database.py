"""Database connection and session management."""

import logging
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from .config import settings

logger = logging.getLogger(__name__)

# Create async engine
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
)

# Create async session factory
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_db() -> None:
    """Create any missing tables from the models."""
    # Import here to avoid circular imports
    from pawportal.models import Base

    logger.info("Initializing database schema from models...")
    try:
        async with engine.begin() as conn:
            # checkfirst keeps this safe when several workers start together
            await conn.run_sync(
                lambda sync_conn: Base.metadata.create_all(sync_conn, checkfirst=True)
            )
        logger.info("Database schema initialized from models")
    except Exception as e:
        if "already exists" in str(e).lower():
            logger.info("Database tables already exist, skipping schema creation")
        else:
            logger.error(f"Failed to initialize database schema: {e}")
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that provides a database session."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
