"""Verification commands (write operations).

Commands carry raw request input. Validation happens in the orchestrator so
that every rejection is audited.

``timeout_seconds`` is the caller's deadline for each store and mail call
made while handling the command. None falls back to the configured
store/mail timeouts.
"""

from dataclasses import dataclass
from uuid import UUID

from verimail.domain.enums import TokenType


@dataclass(frozen=True, kw_only=True)
class IssueVerification:
    """Issue the first verification token for a newly registered subject.

    Attributes:
        subject_id: New user's id.
        email: Address the link will be sent to.
        source_ip: Registering client IP.
        user_agent: Registering client user agent.
        timeout_seconds: Per-call deadline override.
    """

    subject_id: UUID
    email: str
    source_ip: str | None = None
    user_agent: str | None = None
    timeout_seconds: float | None = None


@dataclass(frozen=True, kw_only=True)
class ResendVerification:
    """Request a fresh verification email.

    Example:
        >>> cmd = ResendVerification(email="user@example.com", source_ip="203.0.113.7")
        >>> result = await orchestrator.resend(cmd)
    """

    email: str
    source_ip: str | None = None
    user_agent: str | None = None
    timeout_seconds: float | None = None


@dataclass(frozen=True, kw_only=True)
class CompleteVerification:
    """Redeem the token from a verification link."""

    token: str
    source_ip: str | None = None
    user_agent: str | None = None
    timeout_seconds: float | None = None


@dataclass(frozen=True, kw_only=True)
class RevokeVerification:
    """Administratively invalidate a subject's active token.

    Attributes:
        subject_id: Subject whose token is revoked.
        token_type: Token purpose.
        reason: Free-text reason recorded in the audit trail.
    """

    subject_id: UUID
    token_type: TokenType = TokenType.EMAIL_VERIFICATION
    reason: str | None = None
    timeout_seconds: float | None = None
