"""
Database Dependencies for FastAPI Routes

Routes declare ``db: DBSession`` and FastAPI provides a session whose
lifecycle (rollback on error, close afterwards) is handled by
``app.db.session.get_session``.

Example:
--------
@router.get("/content/{content_id}")
async def get_content(content_id: uuid.UUID, db: DBSession):
    return await ContentStore(db).get(content_id)
"""

from collections.abc import AsyncGenerator
from typing import Annotated, Callable

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_session


# ================================
# Database Session Dependency
# ================================

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session.

    Each request gets its own session/transaction; routes or services
    commit explicitly.

    Yields:
        AsyncSession: Database session for the current request
    """
    async for session in get_session():
        yield session


# Reusable type annotation for database dependencies
DBSession = Annotated[AsyncSession, Depends(get_db)]


# ================================
# Testing Helpers
# ================================

def get_db_override(session: AsyncSession) -> Callable:
    """
    Create a dependency override for testing.

    Usage in Tests:
    ---------------
    app.dependency_overrides[get_db] = get_db_override(fake_session)
    """
    async def _override() -> AsyncGenerator[AsyncSession, None]:
        yield session

    return _override


__all__ = [
    "get_db",
    "DBSession",
    "get_db_override",
]
