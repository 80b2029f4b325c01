"""VerificationTokenStore protocol (port) for the domain layer.

Defines token persistence operations the orchestrator needs. The raw secret
only exists in the IssuedToken returned by ``issue``; storage holds its
SHA-256 digest.

Token Lifecycle:
    Issued -> Consumed   (used_at set by the single successful consume)
    Issued -> Superseded (invalidated_at set by a newer issue or a revoke)
    Expired is derived at read time from expires_at, never stored.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Protocol
from uuid import UUID

from verimail.core.result import Result
from verimail.domain.enums import InvalidationReason, TokenType
from verimail.domain.errors import StorageError, TokenConsumeError


@dataclass
class VerificationTokenData:
    """Data transfer object for a stored verification token.

    Never carries the raw secret.
    """

    id: UUID
    subject_id: UUID
    token_type: TokenType
    issued_at: datetime
    expires_at: datetime
    used_at: datetime | None = None
    invalidated_at: datetime | None = None
    invalidation_reason: InvalidationReason | None = None
    issued_from_ip: str | None = None
    attempt_count: int = 0
    max_attempts: int = 3
    metadata: dict[str, Any] = field(default_factory=dict)

    def is_expired(self, now: datetime) -> bool:
        """Expiry is exclusive: a token is expired at exactly expires_at."""
        return now >= self.expires_at

    def is_valid(self, now: datetime) -> bool:
        """Unused, not invalidated and not yet expired."""
        return (
            self.used_at is None
            and self.invalidated_at is None
            and not self.is_expired(now)
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class IssuedToken:
    """Result of a successful issue.

    Attributes:
        secret: Raw token for the verification link. Never persisted.
        token_id: Id of the stored row.
        expires_at: Absolute UTC expiry.
        superseded_count: Previously active tokens invalidated by this issue.
    """

    secret: str
    token_id: UUID
    expires_at: datetime
    superseded_count: int = 0


class VerificationTokenStoreProtocol(Protocol):
    """Protocol for verification token persistence.

    Implementations:
        - VerificationTokenRepository (SQLAlchemy):
          verimail/infrastructure/persistence/repositories/
    """

    async def issue(
        self,
        subject_id: UUID,
        token_type: TokenType,
        ttl: timedelta,
        *,
        metadata: dict[str, Any] | None = None,
        issued_from_ip: str | None = None,
        max_attempts: int = 3,
    ) -> Result[IssuedToken, StorageError]:
        """Invalidate the active token for (subject, type) and insert a new one.

        Both writes happen in one transaction.
        """
        ...

    async def consume(
        self, secret: str
    ) -> Result[VerificationTokenData, TokenConsumeError | StorageError]:
        """Mark the token for ``secret`` as used, at most once."""
        ...

    async def count_issued_within_window(
        self, subject_id: UUID, token_type: TokenType, window_start: datetime
    ) -> Result[int, StorageError]:
        """Count tokens issued strictly after ``window_start``."""
        ...

    async def find_active(
        self, subject_id: UUID, token_type: TokenType
    ) -> Result[VerificationTokenData | None, StorageError]:
        """Return the currently valid token for (subject, type), if any."""
        ...

    async def revoke(
        self, subject_id: UUID, token_type: TokenType
    ) -> Result[int, StorageError]:
        """Invalidate the active token with reason ``revoked``."""
        ...

    async def purge_expired(self, older_than: datetime) -> Result[int, StorageError]:
        """Delete tokens whose expiry is before ``older_than``."""
        ...
