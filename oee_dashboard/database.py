"""
OEE Dashboard - Database Layer

This module handles database connections and ORM setup for the OEE Dashboard
API. It uses SQLAlchemy with async support against the sensor data store
that the IoT generator writes machine status, production and quality
records into.
"""

from typing import Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
import structlog

from oee_dashboard.config import settings

logger = structlog.get_logger()


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


# Database engine
async_engine: Optional[AsyncEngine] = None
async_session_factory: Optional[async_sessionmaker] = None


def _engine_options(database_url: str) -> dict:
    """Pool options for the configured backend; SQLite manages its own pool."""
    options = {"echo": settings.DATABASE_ECHO}
    if not database_url.startswith("sqlite"):
        options.update(
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
            pool_pre_ping=True
        )
    return options


async def init_db(database_url: Optional[str] = None) -> None:
    """Initialize database connections."""
    global async_engine, async_session_factory

    database_url = database_url or settings.DATABASE_URL

    try:
        async_engine = create_async_engine(database_url, **_engine_options(database_url))

        async_session_factory = async_sessionmaker(
            async_engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

        # Test database connectivity
        await test_database_connection()

        logger.info("Database initialized successfully")

    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        raise


async def close_db() -> None:
    """Close database connections."""
    global async_engine, async_session_factory

    try:
        if async_engine:
            await async_engine.dispose()
            logger.info("Async database engine disposed")

        async_engine = None
        async_session_factory = None

    except Exception as e:
        logger.error("Error closing database connections", error=str(e))


async def test_database_connection() -> None:
    """Test database connectivity."""
    try:
        async with async_engine.begin() as conn:
            result = await conn.execute(text("SELECT 1"))
            result.fetchone()
        logger.info("Database connection test successful")
    except Exception as e:
        logger.error("Database connection test failed", error=str(e))
        raise


async def create_tables() -> None:
    """Create missing tables for the ORM models."""
    # Register the models on Base.metadata
    from oee_dashboard.models import sensor_data  # noqa: F401

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def get_session_factory() -> async_sessionmaker:
    """Session factory of the initialized engine."""
    if not async_session_factory:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return async_session_factory


async def check_database_health() -> dict:
    """Check database health and return status information."""
    try:
        await test_database_connection()
        return {"status": "healthy"}
    except Exception as e:
        logger.error("Database health check failed", error=str(e))
        return {
            "status": "unhealthy",
            "error": str(e)
        }
