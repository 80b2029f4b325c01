"""VerificationTokenRepository - SQLAlchemy implementation of the token store.

Atomicity:
    - issue: invalidate-then-insert in one transaction, guarded by a partial
      unique index over active rows. A concurrent issue that loses the index
      race is rolled back and retried with a fresh secret.
    - consume: conditional UPDATE (``used_at IS NULL AND invalidated_at IS
      NULL AND expires_at > now``); the affected row count decides the single
      winner among concurrent consumers.

Every method commits or rolls back before returning, so a store call never
leaves an open transaction behind.
"""

from datetime import datetime, timedelta
from typing import Any, cast
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from uuid_extensions import uuid7

from verimail.core.clock import Clock, utc_now
from verimail.core.constants import ISSUE_MAX_RETRIES, TOKEN_BYTES
from verimail.core.enums import ErrorCode
from verimail.core.result import Failure, Result, Success
from verimail.domain.enums import InvalidationReason, TokenType
from verimail.domain.errors import StorageError, TokenConsumeError
from verimail.domain.protocols.token_generator_protocol import (
    TokenGeneratorProtocol,
)
from verimail.domain.protocols.verification_token_store_protocol import (
    IssuedToken,
    VerificationTokenData,
)
from verimail.infrastructure.persistence.models.verification_token import (
    VerificationTokenModel,
)


def _to_data(model: VerificationTokenModel) -> VerificationTokenData:
    """Convert database model to domain DTO."""
    return VerificationTokenData(
        id=model.id,
        subject_id=model.subject_id,
        token_type=TokenType(model.token_type),
        issued_at=model.issued_at,
        expires_at=model.expires_at,
        used_at=model.used_at,
        invalidated_at=model.invalidated_at,
        invalidation_reason=(
            InvalidationReason(model.invalidation_reason)
            if model.invalidation_reason
            else None
        ),
        issued_from_ip=model.issued_from_ip,
        attempt_count=model.attempt_count,
        max_attempts=model.max_attempts,
        metadata=dict(model.token_metadata or {}),
    )


def _storage_error(operation: str, error: Exception) -> StorageError:
    return StorageError(
        code=ErrorCode.STORAGE_ERROR,
        message=f"Token store {operation} failed",
        operation=operation,
        details={"error_type": type(error).__name__},
    )


def _classify(token: VerificationTokenData, now: datetime) -> TokenConsumeError | None:
    """Why ``token`` cannot be consumed at ``now``, or None if it can.

    Stored terminal states are reported before the derived expiry, so a
    retried consume of a used token always reads as already used.
    """
    if token.used_at is not None:
        return TokenConsumeError(
            code=ErrorCode.TOKEN_ALREADY_USED,
            message="Token has already been used",
        )
    if token.invalidated_at is not None:
        return TokenConsumeError(
            code=ErrorCode.TOKEN_INVALIDATED,
            message="Token has been superseded",
            details={"reason": token.invalidation_reason.value}
            if token.invalidation_reason
            else None,
        )
    if token.is_expired(now):
        return TokenConsumeError(
            code=ErrorCode.TOKEN_EXPIRED,
            message="Token has expired",
        )
    return None


class VerificationTokenRepository:
    """SQLAlchemy implementation of VerificationTokenStoreProtocol.

    Attributes:
        session: SQLAlchemy async session for database operations.

    Example:
        >>> async with database.get_session() as session:
        ...     store = VerificationTokenRepository(session, VerificationTokenGenerator())
        ...     result = await store.issue(user_id, TokenType.EMAIL_VERIFICATION, timedelta(hours=24))
    """

    def __init__(
        self,
        session: AsyncSession,
        generator: TokenGeneratorProtocol,
        *,
        token_bytes: int = TOKEN_BYTES,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize repository.

        Args:
            session: SQLAlchemy async session.
            generator: Secret generator and hasher.
            token_bytes: Random bytes per secret (minimum 32).
            clock: Source of the current UTC time.
        """
        self.session = session
        self._generator = generator
        self._token_bytes = token_bytes
        self._clock = clock

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

        Args:
            subject_id: Owning user id.
            token_type: Token purpose.
            ttl: Lifetime; expires_at = issued_at + ttl.
            metadata: Issuance context stored with the token.
            issued_from_ip: Requesting client IP.
            max_attempts: Failed consume attempts tolerated.

        Returns:
            Success(IssuedToken) carrying the raw secret, or
            Failure(StorageError).
        """
        for _ in range(ISSUE_MAX_RETRIES):
            now = self._clock()
            secret = self._generator.generate(self._token_bytes)
            try:
                superseded = await self.session.execute(
                    update(VerificationTokenModel)
                    .where(VerificationTokenModel.subject_id == subject_id)
                    .where(VerificationTokenModel.token_type == token_type.value)
                    .where(VerificationTokenModel.used_at.is_(None))
                    .where(VerificationTokenModel.invalidated_at.is_(None))
                    .values(
                        invalidated_at=now,
                        invalidation_reason=InvalidationReason.SUPERSEDED.value,
                    )
                    .execution_options(synchronize_session=False)
                )
                superseded_count = cast(Any, superseded).rowcount or 0
                token_id = uuid7()
                expires_at = now + ttl
                model = VerificationTokenModel(
                    id=token_id,
                    subject_id=subject_id,
                    token_hash=self._generator.hash(secret),
                    token_type=token_type.value,
                    issued_at=now,
                    expires_at=expires_at,
                    issued_from_ip=issued_from_ip,
                    attempt_count=0,
                    max_attempts=max_attempts,
                    token_metadata=dict(metadata or {}),
                )
                self.session.add(model)
                await self.session.flush()
                await self.session.commit()
            except IntegrityError:
                # Another issue for this subject committed first; retry so our
                # UPDATE now sees and supersedes its row.
                await self.session.rollback()
                continue
            except SQLAlchemyError as e:
                await self.session.rollback()
                return Failure(error=_storage_error("issue", e))

            return Success(
                value=IssuedToken(
                    secret=secret,
                    token_id=token_id,
                    expires_at=expires_at,
                    superseded_count=superseded_count,
                )
            )

        return Failure(
            error=StorageError(
                code=ErrorCode.STORAGE_ERROR,
                message="Token store issue failed: concurrent issue conflict",
                operation="issue",
                details={"retries": ISSUE_MAX_RETRIES},
            )
        )

    async def consume(
        self, secret: str
    ) -> Result[VerificationTokenData, TokenConsumeError | StorageError]:
        """Consume the token for ``secret`` at most once.

        Args:
            secret: Raw token from the verification link.

        Returns:
            Success(token) for the single winning consumer. Otherwise
            Failure(TokenConsumeError) with TOKEN_NOT_FOUND, TOKEN_ALREADY_USED,
            TOKEN_INVALIDATED or TOKEN_EXPIRED, or Failure(StorageError).
        """
        token_hash = self._generator.hash(secret)
        now = self._clock()
        try:
            token = await self._find_by_hash(token_hash)
            if token is None:
                await self.session.rollback()
                return Failure(
                    error=TokenConsumeError(
                        code=ErrorCode.TOKEN_NOT_FOUND,
                        message="Token not found",
                    )
                )

            failure = _classify(token, now)
            if failure is None:
                result = await self.session.execute(
                    update(VerificationTokenModel)
                    .where(VerificationTokenModel.id == token.id)
                    .where(VerificationTokenModel.used_at.is_(None))
                    .where(VerificationTokenModel.invalidated_at.is_(None))
                    .where(VerificationTokenModel.expires_at > now)
                    .values(used_at=now)
                    .execution_options(synchronize_session=False)
                )
                if cast(Any, result).rowcount == 1:
                    await self.session.commit()
                    token.used_at = now
                    return Success(value=token)

                # Lost the race: re-read the committed state to report why.
                await self.session.rollback()
                current = await self._find_by_hash(token_hash)
                failure = (current and _classify(current, now)) or TokenConsumeError(
                    code=ErrorCode.TOKEN_ALREADY_USED,
                    message="Token has already been used",
                )

            await self.session.execute(
                update(VerificationTokenModel)
                .where(VerificationTokenModel.id == token.id)
                .values(attempt_count=VerificationTokenModel.attempt_count + 1)
                .execution_options(synchronize_session=False)
            )
            await self.session.commit()
            return Failure(
                error=TokenConsumeError(
                    code=failure.code,
                    message=failure.message,
                    details={
                        **(failure.details or {}),
                        "token_id": str(token.id),
                        "subject_id": str(token.subject_id),
                        "attempt_count": token.attempt_count + 1,
                    },
                )
            )
        except SQLAlchemyError as e:
            await self.session.rollback()
            return Failure(error=_storage_error("consume", e))

    async def count_issued_within_window(
        self, subject_id: UUID, token_type: TokenType, window_start: datetime
    ) -> Result[int, StorageError]:
        """Count tokens issued strictly after ``window_start``.

        Args:
            subject_id: Owning user id.
            token_type: Token purpose.
            window_start: Exclusive lower bound on issued_at.

        Returns:
            Success(count) or Failure(StorageError).
        """
        stmt = (
            select(func.count())
            .select_from(VerificationTokenModel)
            .where(VerificationTokenModel.subject_id == subject_id)
            .where(VerificationTokenModel.token_type == token_type.value)
            .where(VerificationTokenModel.issued_at > window_start)
        )
        try:
            count = (await self.session.execute(stmt)).scalar_one()
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            return Failure(error=_storage_error("count_issued_within_window", e))
        return Success(value=int(count))

    async def find_active(
        self, subject_id: UUID, token_type: TokenType
    ) -> Result[VerificationTokenData | None, StorageError]:
        """Return the currently valid token for (subject, type), if any."""
        now = self._clock()
        stmt = (
            select(VerificationTokenModel)
            .where(VerificationTokenModel.subject_id == subject_id)
            .where(VerificationTokenModel.token_type == token_type.value)
            .where(VerificationTokenModel.used_at.is_(None))
            .where(VerificationTokenModel.invalidated_at.is_(None))
            .where(VerificationTokenModel.expires_at > now)
        )
        try:
            model = (await self.session.execute(stmt)).scalar_one_or_none()
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            return Failure(error=_storage_error("find_active", e))
        return Success(value=_to_data(model) if model else None)

    async def revoke(
        self, subject_id: UUID, token_type: TokenType
    ) -> Result[int, StorageError]:
        """Invalidate the active token for (subject, type) with reason revoked.

        Returns:
            Success(number of tokens invalidated, 0 or 1).
        """
        now = self._clock()
        try:
            result = await self.session.execute(
                update(VerificationTokenModel)
                .where(VerificationTokenModel.subject_id == subject_id)
                .where(VerificationTokenModel.token_type == token_type.value)
                .where(VerificationTokenModel.used_at.is_(None))
                .where(VerificationTokenModel.invalidated_at.is_(None))
                .values(
                    invalidated_at=now,
                    invalidation_reason=InvalidationReason.REVOKED.value,
                )
                .execution_options(synchronize_session=False)
            )
            revoked = cast(Any, result).rowcount or 0
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            return Failure(error=_storage_error("revoke", e))
        return Success(value=revoked)

    async def purge_expired(self, older_than: datetime) -> Result[int, StorageError]:
        """Delete tokens that expired before ``older_than``.

        Storage hygiene only: expired rows are already unusable.

        Returns:
            Success(number of rows deleted).
        """
        try:
            result = await self.session.execute(
                delete(VerificationTokenModel)
                .where(VerificationTokenModel.expires_at < older_than)
                .execution_options(synchronize_session=False)
            )
            deleted = cast(Any, result).rowcount or 0
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            return Failure(error=_storage_error("purge_expired", e))
        return Success(value=deleted)

    async def _find_by_hash(self, token_hash: str) -> VerificationTokenData | None:
        stmt = (
            select(VerificationTokenModel)
            .where(VerificationTokenModel.token_hash == token_hash)
            .execution_options(populate_existing=True)
        )
        model = (await self.session.execute(stmt)).scalar_one_or_none()
        return _to_data(model) if model else None
