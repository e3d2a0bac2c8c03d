"""Database connection and session management."""

from typing import AsyncGenerator
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool
from fastapi import Depends
from gallery.config import settings
from gallery.errors import GalleryError
from gallery.logging_config import logger

DATABASE_URL = settings.async_database_url

# Create async engine
if settings.debug or DATABASE_URL.startswith("sqlite"):
    # NullPool for debug mode and SQLite - no pooling parameters needed
    engine = create_async_engine(
        DATABASE_URL,
        echo=settings.debug,
        poolclass=NullPool,
    )
else:
    # QueuePool for production with connection pooling
    engine = create_async_engine(
        DATABASE_URL,
        echo=False,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
    )

# Create async session maker
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


def get_session_factory() -> async_sessionmaker:
    """Dependency returning the session factory (used by jobs that open their own sessions)."""
    return AsyncSessionLocal


async def get_db(
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get database session.

    Usage:
        @router.get("/endpoint")
        async def endpoint(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except GalleryError:
            # Application-level errors (auth, validation, not found)
            await session.rollback()
            raise
        except Exception as e:
            await session.rollback()
            logger.error("Database session error", error=str(e), exc_info=True)
            raise


def _redacted_url(url: str) -> str:
    return url.split("@")[-1] if "@" in url else url


async def init_db():
    """Verify the database is reachable."""
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            logger.info("Database connection established", url=_redacted_url(DATABASE_URL))
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e), exc_info=True)
        raise


async def close_db():
    """Close database connection pool."""
    await engine.dispose()
    logger.info("Database connection closed")
