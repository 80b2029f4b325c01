"""Verification token database model.

Security:
    - token_hash: SHA-256 of the secret. The secret itself is never stored,
      so a database leak does not yield usable links.
    - expires_at: absolute UTC expiry, exclusive.
    - used_at / invalidated_at: write-once, every write guarded by IS NULL.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, Index, Integer, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from verimail.infrastructure.persistence.base import BaseModel
from verimail.infrastructure.persistence.types import UTCDateTime

_ACTIVE_PREDICATE = "used_at IS NULL AND invalidated_at IS NULL"


class VerificationTokenModel(BaseModel):
    """Single-use token issued to a subject.

    Token Lifecycle:
        1. Issued (prior active token for the same subject/type invalidated
           in the same transaction)
        2. Sent in a verification link
        3. Consumed once (used_at set) or superseded (invalidated_at set)

    Indexes:
        - uq_verification_tokens_active: partial unique (subject_id, token_type)
          over active rows; two concurrent issues cannot both commit
        - idx_verification_tokens_window: (subject_id, token_type, issued_at)
          for issuance window counts
        - token_hash: unique, for consume lookup
        - expires_at: for cleanup
    """

    __tablename__ = "verification_tokens"

    subject_id: Mapped[UUID] = mapped_column(
        Uuid,
        nullable=False,
        index=True,
        comment="Owning user id (identity store)",
    )

    token_hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        comment="SHA-256 hex digest of the secret token",
    )

    token_type: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="email_verification | password_reset",
    )

    issued_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        comment="When the token was issued (UTC)",
    )

    expires_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        index=True,
        comment="Exclusive expiry (UTC); valid while now < expires_at",
    )

    used_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(),
        nullable=True,
        default=None,
        comment="Set once by the single successful consume",
    )

    invalidated_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(),
        nullable=True,
        default=None,
        comment="Set once when superseded or revoked",
    )

    invalidation_reason: Mapped[str | None] = mapped_column(
        String(32),
        nullable=True,
        default=None,
        comment="superseded | revoked",
    )

    issued_from_ip: Mapped[str | None] = mapped_column(
        String(45),
        nullable=True,
        comment="Client IP that requested the token",
    )

    attempt_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
        comment="Failed consume attempts against this token",
    )

    max_attempts: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=3,
        server_default="3",
        comment="Failed attempts tolerated before the token is reported exhausted",
    )

    # "metadata" is reserved on declarative classes
    token_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        JSON,
        nullable=False,
        default=dict,
        comment="Issuance context (generation_method, resend_iteration, email)",
    )

    __table_args__ = (
        Index(
            "uq_verification_tokens_active",
            "subject_id",
            "token_type",
            unique=True,
            postgresql_where=text(_ACTIVE_PREDICATE),
            sqlite_where=text(_ACTIVE_PREDICATE),
        ),
        Index(
            "idx_verification_tokens_window",
            "subject_id",
            "token_type",
            "issued_at",
        ),
    )

    def __repr__(self) -> str:
        """String representation for debugging (never includes the hash)."""
        return (
            f"<VerificationTokenModel("
            f"id={self.id}, "
            f"subject_id={self.subject_id}, "
            f"type={self.token_type}, "
            f"expires_at={self.expires_at}, "
            f"used={self.used_at is not None}, "
            f"invalidated={self.invalidated_at is not None}"
            f")>"
        )
