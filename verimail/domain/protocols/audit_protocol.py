"""AuditProtocol - port for the append-only verification audit trail.

Recording must never abort the caller's operation: adapters convert every
failure into Failure(AuditError) and callers report it on the logging side
channel.

Free text (user agent, error messages, string values in details) is
sanitized by the adapter before it is stored. Raw tokens must never be
passed in; use the token id or an 8-character preview.
"""

from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from verimail.core.result import Result
from verimail.domain.enums import AuditAction
from verimail.domain.errors import AuditError


class AuditProtocol(Protocol):
    """Protocol for audit trail adapters.

    Implementations:
        - SQLAlchemyAuditAdapter: verimail/infrastructure/audit/
    """

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
        """Append one immutable audit entry.

        Returns:
            Success(None) if recorded, Failure(AuditError) otherwise.
        """
        ...

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
        """Read audit entries, newest first (for compliance reports)."""
        ...
