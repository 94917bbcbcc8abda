"""
Base models and mixins for SQLAlchemy ORM.

Provides reusable base classes, mixins for timestamps and UUIDs,
and common utilities for all database models.
"""

from datetime import datetime, timezone
from typing import Any
import uuid

from sqlalchemy import Column, String
from sqlalchemy.orm import declarative_base


# SQLAlchemy declarative base for all ORM models
Base = declarative_base()


def utc_now_iso() -> str:
    """
    Get current UTC timestamp in ISO format.

    Returns:
        ISO format timestamp string (e.g., "2025-01-15T10:30:45.123456+00:00")
    """
    return datetime.now(timezone.utc).isoformat()


class TimestampMixin:
    """
    Mixin that adds created_at and updated_at timestamp columns.

    Timestamps are UTC ISO strings set application-side, so the same
    schema works on SQLite and PostgreSQL and sorts lexicographically.
    """

    created_at = Column(
        String,
        nullable=False,
        default=utc_now_iso,
        doc="UTC timestamp when record was created"
    )

    updated_at = Column(
        String,
        nullable=False,
        default=utc_now_iso,
        onupdate=utc_now_iso,
        doc="UTC timestamp when record was last updated"
    )


class UUIDMixin:
    """
    Mixin that adds a UUID primary key column stored as a string.
    """

    id = Column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        doc="UUID primary key"
    )


class ModelMixin:
    """
    Mixin providing common model utilities.
    """

    # Columns never included in API output
    __private_columns__: frozenset = frozenset()

    def to_dict(self) -> dict[str, Any]:
        """
        Convert model instance to dictionary.

        Only includes columns, not relationships, and skips private columns.
        """
        return {
            column.name: getattr(self, column.name)
            for column in self.__table__.columns
            if column.name not in self.__private_columns__
        }

    def __repr__(self) -> str:
        attrs = ", ".join(
            f"{key}={value!r}"
            for key, value in self.to_dict().items()
            if key in ["id", "email", "title", "category"]  # Key identifying fields
        )
        return f"{self.__class__.__name__}({attrs})"
