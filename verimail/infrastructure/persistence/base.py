"""Base model and mixins for all database entities.

This module provides:
- BaseModel: Base class for ALL models (provides id, created_at)
- TimestampMixin: Adds updated_at
- BaseMutableModel: Base for mutable models (combines the above)

Append-only tables (tokens, rate limit attempts, audit log) inherit from
BaseModel; their few state changes are write-once columns. Only the user
table is a BaseMutableModel.

Architecture:
    BaseModel (id, created_at)
        ↑
        ├── BaseMutableModel (+ updated_at via TimestampMixin)
        │   └── UserModel
        │
        ├── VerificationTokenModel
        ├── RateLimitWindowModel / RateLimitAttemptModel
        └── AuditLogModel (immutable)

All timestamp columns use UTCDateTime so values read back from any backend
are timezone-aware.
"""

from datetime import datetime
from uuid import UUID as PythonUUID

from sqlalchemy import Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from uuid_extensions import uuid7

from verimail.infrastructure.persistence.types import UTCDateTime


class BaseModel(DeclarativeBase):
    """Base class for all database models.

    Provides:
    - id: UUID primary key (time-ordered UUIDv7)
    - created_at: Timestamp when the row was inserted (UTC)
    """

    __abstract__ = True

    id: Mapped[PythonUUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid7,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        """String representation for debugging.

        Returns:
            str: String showing class name and ID.
        """
        return f"<{self.__class__.__name__}(id={self.id})>"


class TimestampMixin:
    """Mixin for mutable models that track updates."""

    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class BaseMutableModel(TimestampMixin, BaseModel):
    """Base class for mutable database models.

    Provides id, created_at and updated_at with the correct MRO.
    """

    __abstract__ = True
