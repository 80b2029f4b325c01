"""Audit action types for the verification audit trail.

Naming follows the past-tense event convention of the audit log: each value
names something that already happened.

Usage:
    await audit.record(action=AuditAction.TOKEN_CREATED, subject_id=user_id)
"""

from enum import Enum


class AuditAction(str, Enum):
    """Verification events recorded in the append-only audit log."""

    # Token lifecycle
    TOKEN_CREATED = "token_created"
    TOKEN_REVOKED = "token_revoked"

    # Completion flow
    VERIFICATION_ATTEMPT = "verification_attempt"
    VERIFICATION_SUCCESS = "verification_success"
    VERIFICATION_FAILED = "verification_failed"

    # Delivery
    VERIFICATION_EMAIL_SENT = "verification_email_sent"
    VERIFICATION_EMAIL_FAILED = "verification_email_failed"

    # Abuse controls
    RESEND_BLOCKED = "resend_blocked"
