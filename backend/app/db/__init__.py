"""Database utilities and session management."""

from app.db.base import Base, BaseModel, TimestampMixin, String50, String255
from app.db.deps import DBSession, get_db, get_db_override
from app.db.session import (
    AsyncSessionLocal,
    check_db_health,
    check_vector_extension,
    close_db,
    engine,
    get_session,
    init_db,
)

__all__ = [
    # Base classes
    "Base",
    "BaseModel",
    "TimestampMixin",
    # String types
    "String50",
    "String255",
    # Session management
    "engine",
    "AsyncSessionLocal",
    "get_session",
    "init_db",
    "close_db",
    "check_db_health",
    "check_vector_extension",
    # Dependencies
    "get_db",
    "DBSession",
    "get_db_override",
]
