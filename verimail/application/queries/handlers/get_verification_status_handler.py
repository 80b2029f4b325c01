"""Get verification status query handler.

Combines the identity store, the active token and the per-subject resend
limiter into one read-only view for clients deciding whether to offer a
"resend email" button.
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from verimail.application.queries.verification_queries import (
    GetVerificationStatus,
)
from verimail.core.clock import Clock, utc_now
from verimail.core.result import Failure, Result, Success
from verimail.domain.enums import TokenType
from verimail.domain.protocols import (
    IdentityStoreProtocol,
    RateLimitProtocol,
    VerificationTokenStoreProtocol,
)


class GetVerificationStatusError:
    """Get verification status error reasons."""

    SUBJECT_NOT_FOUND = "subject_not_found"
    STORAGE_UNAVAILABLE = "storage_unavailable"


@dataclass
class VerificationStatus:
    """Verification status query result."""

    subject_id: UUID
    is_verified: bool
    confirmed_at: datetime | None
    has_valid_token: bool
    token_expires_at: datetime | None
    resend_attempts_remaining: int
    tokens_issued_in_window: int

    @property
    def can_resend(self) -> bool:
        """Whether a resend request would currently be admitted."""
        return not self.is_verified and self.resend_attempts_remaining > 0


class GetVerificationStatusHandler:
    """Handler for the verification status of a subject."""

    def __init__(
        self,
        identity_store: IdentityStoreProtocol,
        token_store: VerificationTokenStoreProtocol,
        subject_limiter: RateLimitProtocol,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize handler with dependencies.

        Args:
            identity_store: User lookup.
            token_store: Verification token persistence.
            subject_limiter: Per-subject resend limiter (read-only use).
            clock: Source of the current UTC time.
        """
        self._identity_store = identity_store
        self._token_store = token_store
        self._subject_limiter = subject_limiter
        self._clock = clock

    async def handle(
        self, query: GetVerificationStatus
    ) -> Result[VerificationStatus, str]:
        """Handle get verification status query.

        Returns:
            Success(VerificationStatus), or Failure(error reason) if the
            subject does not exist or a store is unavailable.
        """
        # Step 1: Subject
        match await self._identity_store.find_by_id(query.subject_id):
            case Failure():
                return Failure(error=GetVerificationStatusError.STORAGE_UNAVAILABLE)
            case Success(value=None):
                return Failure(error=GetVerificationStatusError.SUBJECT_NOT_FOUND)
            case Success(value=subject):
                pass

        # Step 2: Active token
        match await self._token_store.find_active(
            subject.id, TokenType.EMAIL_VERIFICATION
        ):
            case Failure():
                return Failure(error=GetVerificationStatusError.STORAGE_UNAVAILABLE)
            case Success(value=token):
                pass

        # Step 3: Resend budget
        match await self._subject_limiter.get_remaining(str(subject.id)):
            case Failure():
                return Failure(error=GetVerificationStatusError.STORAGE_UNAVAILABLE)
            case Success(value=remaining):
                pass

        window_start = self._clock() - self._subject_limiter.rule.window
        match await self._token_store.count_issued_within_window(
            subject.id, TokenType.EMAIL_VERIFICATION, window_start
        ):
            case Failure():
                return Failure(error=GetVerificationStatusError.STORAGE_UNAVAILABLE)
            case Success(value=issued):
                pass

        return Success(
            value=VerificationStatus(
                subject_id=subject.id,
                is_verified=subject.is_confirmed,
                confirmed_at=subject.confirmed_at,
                has_valid_token=token is not None,
                token_expires_at=token.expires_at if token else None,
                resend_attempts_remaining=remaining,
                tokens_issued_in_window=issued,
            )
        )
