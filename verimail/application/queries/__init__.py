"""Application queries."""

from verimail.application.queries.handlers.get_verification_status_handler import (
    GetVerificationStatusHandler,
    VerificationStatus,
)
from verimail.application.queries.handlers.list_verification_audit_handler import (
    ListVerificationAuditHandler,
)
from verimail.application.queries.verification_queries import (
    GetVerificationStatus,
    ListVerificationAudit,
)

__all__ = [
    "GetVerificationStatus",
    "GetVerificationStatusHandler",
    "ListVerificationAudit",
    "ListVerificationAuditHandler",
    "VerificationStatus",
]
