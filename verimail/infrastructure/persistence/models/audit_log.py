"""Verification audit log model (append-only).

Immutability:
    - No repository method updates or deletes rows
    - PostgreSQL RULES block UPDATE and DELETE (see migration)

Every free-text column is sanitized before insert.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, Boolean, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from verimail.infrastructure.persistence.base import BaseModel
from verimail.infrastructure.persistence.types import UTCDateTime


class AuditLogModel(BaseModel):
    """One verification event.

    Indexes:
        - idx_verification_audit_subject_action: (subject_id, action)
        - occurred_at: time range queries
    """

    __tablename__ = "verification_audit_log"

    action: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
        comment="AuditAction value",
    )

    subject_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        nullable=True,
        index=True,
        comment="Subject the event concerns (null if unknown)",
    )

    occurred_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        index=True,
        comment="When the event happened (UTC)",
    )

    success: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    token_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        nullable=True,
        comment="Token involved, if known (never the secret)",
    )

    source_ip: Mapped[str | None] = mapped_column(String(45), nullable=True)

    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)

    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    details: Mapped[dict[str, Any] | None] = mapped_column(
        JSON,
        nullable=True,
        default=None,
        comment="Sanitized event context",
    )

    __table_args__ = (
        Index("idx_verification_audit_subject_action", "subject_id", "action"),
    )
