"""Application services."""

from verimail.application.services.cleanup_service import (
    CleanupReport,
    CleanupService,
)
from verimail.application.services.verification_orchestrator import (
    ResendReceipt,
    UserAction,
    VerificationOrchestrator,
    VerificationPolicy,
)

__all__ = [
    "CleanupReport",
    "CleanupService",
    "ResendReceipt",
    "UserAction",
    "VerificationOrchestrator",
    "VerificationPolicy",
]
