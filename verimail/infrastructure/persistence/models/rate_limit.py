"""Sliding window rate limit models.

RateLimitWindowModel holds one anchor row per (scope, subject_key). Every
check upserts the anchor first, which serializes concurrent checks for the
same key (row lock on PostgreSQL, database write lock on SQLite).

RateLimitAttemptModel holds one row per admitted attempt. The window count
is a range query over attempted_at.
"""

from datetime import datetime

from sqlalchemy import Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from verimail.infrastructure.persistence.base import BaseModel
from verimail.infrastructure.persistence.types import UTCDateTime


class RateLimitWindowModel(BaseModel):
    """Per-key serialization anchor."""

    __tablename__ = "rate_limit_windows"

    scope: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="Rule scope (resend_subject, resend_ip)",
    )

    subject_key: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Key counted against (subject id or IP)",
    )

    last_checked_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        comment="Time of the most recent check for this key",
    )

    __table_args__ = (
        UniqueConstraint("scope", "subject_key", name="uq_rate_limit_windows_key"),
    )


class RateLimitAttemptModel(BaseModel):
    """One admitted attempt inside a sliding window."""

    __tablename__ = "rate_limit_attempts"

    scope: Mapped[str] = mapped_column(String(32), nullable=False)

    subject_key: Mapped[str] = mapped_column(String(255), nullable=False)

    attempted_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        comment="When the attempt was admitted",
    )

    released_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(),
        nullable=True,
        default=None,
        comment="Set when the attempt was returned to the budget",
    )

    __table_args__ = (
        Index(
            "idx_rate_limit_attempts_window",
            "scope",
            "subject_key",
            "attempted_at",
        ),
    )
