"""List verification audit query handler."""

from typing import Any

from verimail.application.queries.verification_queries import (
    ListVerificationAudit,
)
from verimail.core.result import Result
from verimail.domain.errors import AuditError
from verimail.domain.protocols import AuditProtocol


class ListVerificationAuditHandler:
    """Handler for a subject's verification audit trail."""

    def __init__(self, audit: AuditProtocol) -> None:
        self._audit = audit

    async def handle(
        self, query: ListVerificationAudit
    ) -> Result[list[dict[str, Any]], AuditError]:
        """Return audit entries for the subject, newest first."""
        return await self._audit.query(
            subject_id=query.subject_id,
            success=False if query.only_failures else None,
            limit=query.limit,
        )
