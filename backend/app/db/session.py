"""
Database Session Management

This module handles the database connection lifecycle and session management.

Architecture Flow:
------------------
Application Start → Create Engine → Connection Pool Ready
↓
API Request → Get Session → Execute Queries → Commit/Rollback → Close Session
↓
Application Shutdown → Dispose Engine → Close All Connections
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool, NullPool

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)


# ================================
# Database Engine Configuration
# ================================

def get_engine_config() -> dict[str, Any]:
    """
    Configure the database engine based on environment.

    Pool Types:
    -----------
    1. AsyncAdaptedQueuePool (development/production):
       - Maintains pool_size connections open
       - Can create max_overflow extra connections if needed
    2. NullPool (staging/test):
       - No connection pooling, fresh connection per checkout
    """
    config: dict[str, Any] = {
        "echo": settings.DB_ECHO,
        # Test connection health before using (detect dead connections)
        "pool_pre_ping": True,
        "connect_args": {
            "server_settings": {
                "application_name": settings.APP_NAME,
            }
        },
    }

    if settings.is_development or settings.is_production:
        logger.info(
            "configuring_database_engine",
            environment=settings.APP_ENV,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
        )
        config.update({
            "poolclass": AsyncAdaptedQueuePool,
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": settings.DB_MAX_OVERFLOW,
            "pool_timeout": 30,
            "pool_recycle": 7200 if settings.is_production else 3600,
        })
    else:
        logger.info(
            "configuring_database_engine",
            environment=settings.APP_ENV,
            pool_type="NullPool",
        )
        config.update({
            "poolclass": NullPool,
        })

    return config


def create_engine() -> AsyncEngine:
    """
    Create the async database engine.

    The database URL must start with "postgresql+asyncpg://".
    No connection is opened until the first query.
    """
    engine_config = get_engine_config()

    engine = create_async_engine(
        settings.DATABASE_URL,
        **engine_config
    )

    logger.info(
        "database_engine_created",
        driver="asyncpg",
        pool_size=engine_config.get("pool_size", "NullPool"),
    )

    return engine


# ================================
# Global Engine Instance
# ================================
# One engine per process; it owns the connection pool.
engine: AsyncEngine = create_engine()


# ================================
# Session Factory
# ================================
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    # Explicit flush/commit only
    autoflush=False,
    autocommit=False,
    # Keep loaded attributes readable after commit (returned from routes)
    expire_on_commit=False,
)


# ================================
# Session Lifecycle Functions
# ================================

async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Get a database session for a single request.

    - If the route succeeds: session closed normally
    - If the route raises: session rolled back, then closed

    Yields:
        AsyncSession: A database session for this request
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session

        except Exception as e:
            logger.error(
                "database_session_error",
                error=str(e),
                error_type=type(e).__name__,
            )
            await session.rollback()
            raise


async def init_db() -> None:
    """
    Initialize the database.

    Verifies the connection, enables pgvector and, in development, creates
    tables directly. Production uses Alembic migrations instead.

    Called from: app.main.lifespan() startup event
    """
    logger.info("initializing_database")

    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))

        logger.info("database_connection_successful")

        if settings.is_development:
            from app.db.base import Base
            import app.models  # noqa: F401  (register tables on Base.metadata)

            async with engine.begin() as conn:
                await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
                await conn.run_sync(Base.metadata.create_all)

            logger.info("database_tables_created")

    except Exception as e:
        logger.error(
            "database_initialization_failed",
            error=str(e),
            error_type=type(e).__name__,
        )
        raise


async def close_db() -> None:
    """
    Close the database connection pool.

    Called from: app.main.lifespan() shutdown event
    """
    logger.info("closing_database_connections")

    try:
        await engine.dispose()
        logger.info("database_connections_closed")

    except Exception as e:
        logger.error(
            "database_closure_failed",
            error=str(e),
            error_type=type(e).__name__,
        )
        # Don't raise - we're shutting down anyway


# ================================
# Database Health Check
# ================================

async def check_db_health() -> bool:
    """
    Check if the database is healthy and responsive.

    Returns:
        bool: True if database is healthy, False otherwise
    """
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True

    except Exception as e:
        logger.error(
            "database_health_check_failed",
            error=str(e),
            error_type=type(e).__name__,
        )
        return False


async def check_vector_extension() -> bool:
    """Return True when the pgvector extension is installed in the database."""
    try:
        async with engine.connect() as conn:
            result = await conn.execute(
                text("SELECT 1 FROM pg_extension WHERE extname = 'vector'")
            )
            return result.scalar() is not None

    except Exception as e:
        logger.warning(
            "vector_extension_check_failed",
            error=str(e),
            error_type=type(e).__name__,
        )
        return False
