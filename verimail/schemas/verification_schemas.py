"""Verification request/response schemas.

Request bodies are only shape-checked here. Email syntax and token format
are validated by the orchestrator so that rejections are audited and
``complete`` keeps a single generic failure response.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

# =============================================================================
# Resend
# =============================================================================


class ResendVerificationRequest(BaseModel):
    """Request schema for a verification email resend.

    POST /api/v1/verifications/resend
    Returns: 202 Accepted
    """

    email: str = Field(
        ...,
        max_length=320,
        description="Email address the account was registered with",
        examples=["user@example.com"],
    )


class ResendVerificationResponse(BaseModel):
    """Response schema for an accepted resend (202 Accepted)."""

    message: str = Field(
        default="Verification email sent. Please check your inbox.",
        description="Success message",
    )
    remaining_attempts: int = Field(
        ..., description="Resends left in the current window"
    )
    expires_at: datetime = Field(..., description="When the new link expires")


# =============================================================================
# Complete
# =============================================================================


class CompleteVerificationRequest(BaseModel):
    """Request schema for verification completion.

    POST /api/v1/verifications/complete
    Returns: 200 OK
    """

    token: str = Field(
        ...,
        description="Verification token from the email link",
    )


class CompleteVerificationResponse(BaseModel):
    """Response schema for a completed verification (200 OK)."""

    verified: bool = Field(default=True, description="Always true on success")
    subject_id: UUID = Field(..., description="Verified user id")
    message: str = Field(
        default="Email verified successfully. You can now log in.",
        description="Success message",
    )


# =============================================================================
# Status
# =============================================================================


class VerificationStatusResponse(BaseModel):
    """Response schema for verification status (200 OK)."""

    subject_id: UUID
    is_verified: bool
    confirmed_at: datetime | None = None
    has_valid_token: bool
    token_expires_at: datetime | None = None
    resend_attempts_remaining: int
    tokens_issued_in_window: int
    can_resend: bool


# =============================================================================
# Audit (admin)
# =============================================================================


class VerificationAuditEntry(BaseModel):
    """One verification audit trail entry."""

    id: UUID
    action: str
    occurred_at: datetime
    success: bool
    subject_id: UUID | None = None
    token_id: UUID | None = None
    source_ip: str | None = None
    user_agent: str | None = None
    error_message: str | None = None
    details: dict[str, Any] | None = None


class VerificationAuditResponse(BaseModel):
    """Response schema for a subject's audit trail (200 OK)."""

    subject_id: UUID
    entries: list[VerificationAuditEntry] = Field(
        default_factory=list, description="Entries, newest first"
    )
