"""SQLAlchemy implementation of AuditProtocol.

Append-only verification audit trail:
- Only INSERT is ever issued; PostgreSQL RULES additionally block UPDATE
  and DELETE (see migration)
- Free text is sanitized before insert (see sanitizer.py)
- Result types for error handling; nothing is raised to the caller

The adapter owns a dedicated session. Its commit or rollback never touches
the session used by the token store, so a failed audit write cannot undo a
consumed token, and a rolled back token write cannot drop its audit entry.

Usage:
    adapter = SQLAlchemyAuditAdapter(audit_session)
    result = await adapter.record(
        action=AuditAction.VERIFICATION_FAILED,
        subject_id=subject_id,
        success=False,
        source_ip="203.0.113.7",
        error_message="token_expired",
    )
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from verimail.core.clock import Clock, utc_now
from verimail.core.constants import AUDIT_QUERY_MAX_LIMIT
from verimail.core.enums import ErrorCode
from verimail.core.result import Failure, Result, Success
from verimail.domain.enums import AuditAction
from verimail.domain.errors import AuditError
from verimail.infrastructure.audit.sanitizer import sanitize_details, sanitize_text
from verimail.infrastructure.persistence.models.audit_log import AuditLogModel


class SQLAlchemyAuditAdapter:
    """Database-backed audit trail.

    Attributes:
        session: Dedicated SQLAlchemy async session for audit writes.
    """

    def __init__(self, session: AsyncSession, *, clock: Clock = utc_now) -> None:
        """Initialize adapter with its own database session.

        Args:
            session: SQLAlchemy async session (not shared with the token store).
            clock: Source of the current UTC time.
        """
        self.session = session
        self._clock = clock

    async def record(
        self,
        *,
        action: AuditAction,
        subject_id: UUID | None = None,
        success: bool = True,
        token_id: UUID | None = None,
        source_ip: str | None = None,
        user_agent: str | None = None,
        error_message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> Result[None, AuditError]:
        """Record an immutable audit entry.

        Args:
            action: What happened.
            subject_id: Subject concerned (None if unknown).
            success: Whether the audited operation succeeded.
            token_id: Token involved (never the secret).
            source_ip: Client IP address.
            user_agent: Client user agent (sanitized).
            error_message: Failure reason (sanitized).
            details: Event context (every string sanitized).

        Returns:
            Success(None) if recorded, Failure(AuditError) otherwise.
        """
        try:
            entry = AuditLogModel(
                action=action.value,
                subject_id=subject_id,
                occurred_at=self._clock(),
                success=success,
                token_id=token_id,
                source_ip=sanitize_text(source_ip, 45) if source_ip else None,
                user_agent=sanitize_text(user_agent) if user_agent else None,
                error_message=sanitize_text(error_message) if error_message else None,
                details=sanitize_details(details) if details else None,
            )
            self.session.add(entry)
            await self.session.commit()
            return Success(value=None)

        except SQLAlchemyError as e:
            await self.session.rollback()
            return Failure(
                error=AuditError(
                    code=ErrorCode.AUDIT_RECORD_FAILED,
                    message="Failed to record audit entry",
                    details={"action": action.value, "error_type": type(e).__name__},
                )
            )
        except Exception as e:
            # Unexpected errors (serialization, programming errors) must still
            # not reach the verification flow.
            await self.session.rollback()
            return Failure(
                error=AuditError(
                    code=ErrorCode.AUDIT_RECORD_FAILED,
                    message="Unexpected error recording audit entry",
                    details={"action": action.value, "error_type": type(e).__name__},
                )
            )

    async def query(
        self,
        *,
        subject_id: UUID | None = None,
        action: AuditAction | None = None,
        success: bool | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        limit: int = 100,
    ) -> Result[list[dict[str, Any]], AuditError]:
        """Query the audit trail (read-only, for compliance reports).

        Args:
            subject_id: Filter by subject.
            action: Filter by action.
            success: Filter by outcome.
            start_date: From date inclusive.
            end_date: To date inclusive.
            limit: Maximum results (capped at 1000).

        Returns:
            Success(entries) newest first, or Failure(AuditError). Each entry
            has string UUIDs and ISO 8601 timestamps.
        """
        query = select(AuditLogModel)
        if subject_id is not None:
            query = query.where(AuditLogModel.subject_id == subject_id)
        if action is not None:
            query = query.where(AuditLogModel.action == action.value)
        if success is not None:
            query = query.where(AuditLogModel.success.is_(success))
        if start_date is not None:
            query = query.where(AuditLogModel.occurred_at >= start_date)
        if end_date is not None:
            query = query.where(AuditLogModel.occurred_at <= end_date)
        query = query.order_by(
            AuditLogModel.occurred_at.desc(), AuditLogModel.id.desc()
        ).limit(min(limit, AUDIT_QUERY_MAX_LIMIT))

        try:
            rows = (await self.session.execute(query)).scalars().all()
            entries = [
                {
                    "id": str(row.id),
                    "action": row.action,
                    "subject_id": str(row.subject_id) if row.subject_id else None,
                    "occurred_at": row.occurred_at.isoformat(),
                    "success": row.success,
                    "token_id": str(row.token_id) if row.token_id else None,
                    "source_ip": row.source_ip,
                    "user_agent": row.user_agent,
                    "error_message": row.error_message,
                    "details": row.details,
                }
                for row in rows
            ]
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            return Failure(
                error=AuditError(
                    code=ErrorCode.AUDIT_QUERY_FAILED,
                    message="Failed to query audit entries",
                    details={"error_type": type(e).__name__},
                )
            )
        return Success(value=entries)
