"""
Database Base Classes and Common Utilities

This module provides the foundation for all database models in the application.

Key Concepts:
--------------
1. DeclarativeBase: SQLAlchemy's base class that enables ORM functionality
2. TimestampMixin: created_at / updated_at columns shared by every table
3. CommonTableAttributes: integer primary key plus timestamps
4. orm_registry: Central registry that tracks all models and their metadata
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime, MetaData, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, registry


# ================================
# Naming Convention for Constraints
# ================================
# Consistent constraint names let Alembic track changes reliably.
#
# Format examples:
# - ix_content_library_content_type: Index on 'content_library.content_type'
# - uq_content_embeddings_content_id: Unique constraint on 'content_embeddings.content_id'
# - fk_content_embeddings_content_id_content_library: Foreign key
convention = {
    "ix": "ix_%(column_0_label)s",  # Index
    "uq": "uq_%(table_name)s_%(column_0_name)s",  # Unique constraint
    "ck": "ck_%(table_name)s_%(constraint_name)s",  # Check constraint
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",  # Foreign key
    "pk": "pk_%(table_name)s",  # Primary key
}

# Create metadata with naming conventions
metadata = MetaData(naming_convention=convention)

# Create ORM registry - this tracks all our models
orm_registry = registry(metadata=metadata)


# ================================
# Base DeclarativeBase Class
# ================================
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Usage:
        class ContentItem(Base, TimestampMixin):
            __tablename__ = "content_library"
            id: Mapped[uuid.UUID] = mapped_column(primary_key=True)
    """

    registry = orm_registry
    metadata = metadata

    __tablename__: str


# ================================
# Timestamp Mixin
# ================================
class TimestampMixin:
    """
    Adds timezone-aware UTC creation and modification timestamps.

    - created_at: set once when the row is inserted
    - updated_at: refreshed on every ORM update
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="Timestamp when record was created (UTC)"
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="Timestamp when record was last updated (UTC)"
    )

    def dict(self) -> dict[str, Any]:
        """
        Convert model instance to dictionary.

        Useful for logging and tests; API responses go through Pydantic schemas.
        """
        return {
            column.name: getattr(self, column.name)
            for column in self.__table__.columns
        }


# ================================
# Common Table Attributes Mixin
# ================================
class CommonTableAttributes(TimestampMixin):
    """
    Integer auto-increment primary key plus timestamps.

    Used by tables whose rows are never referenced from outside the
    service (embedding rows); user-facing records use opaque UUIDs instead.
    """

    id: Mapped[int] = mapped_column(
        primary_key=True,
        autoincrement=True,
        comment="Auto-incrementing primary key"
    )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self.id})"


# ================================
# Convenient Base Model
# ================================
class BaseModel(Base, CommonTableAttributes):
    """
    Ready-to-use base class for integer-keyed models.

    Every model automatically gets:
    - Primary key (id)
    - Creation timestamp (created_at)
    - Update timestamp (updated_at)
    """

    __abstract__ = True


# ================================
# String Length Constraints
# ================================
String50 = String(50)  # Example: content_type values, model names
String255 = String(255)  # Example: titles, topic areas, URLs
