"""Sliding window rate limiter backed by the relational store.

Each check runs in one transaction:

    1. Upsert the (scope, key) anchor row. ``INSERT ... ON CONFLICT DO
       UPDATE`` takes a row lock on PostgreSQL and the database write lock
       on SQLite, so concurrent checks for the same key run one at a time.
    2. Count unreleased attempts with ``attempted_at > now - window``.
    3. Below the limit: record a new attempt and commit. At the limit:
       commit (releasing the anchor) and report when the oldest counted
       attempt leaves the window.

Attempts are persisted, so limits hold across processes and restarts.

Architecture:
    Domain Protocol <- SlidingWindowRateLimiter -> AsyncSession -> database

Usage:
    limiter = SlidingWindowRateLimiter(
        session=session,
        rule=SlidingWindowRule(limit=3, window=timedelta(hours=1),
                               scope=RateLimitScope.RESEND_SUBJECT),
        logger=logger,
    )
    result = await limiter.check_and_reserve(str(subject_id))
"""

from __future__ import annotations

import math
from datetime import datetime
from time import perf_counter
from typing import TYPE_CHECKING, Any, cast
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from uuid_extensions import uuid7

from verimail.core.clock import Clock, utc_now
from verimail.core.enums import ErrorCode
from verimail.core.result import Failure, Result, Success
from verimail.domain.errors import RateLimitError
from verimail.domain.value_objects.rate_limit_rule import (
    RateLimitDecision,
    SlidingWindowRule,
)
from verimail.infrastructure.persistence.models.rate_limit import (
    RateLimitAttemptModel,
    RateLimitWindowModel,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from verimail.domain.protocols.logger_protocol import LoggerProtocol


class SlidingWindowRateLimiter:
    """Persisted sliding window limiter implementing RateLimitProtocol.

    One instance enforces one rule. Denials are successful results with
    ``allowed=False``; only storage failures produce Failure(RateLimitError).
    Whether a failure admits the request is the caller's policy decision.

    Args:
        session: SQLAlchemy async session.
        rule: Limit, window and scope to enforce.
        logger: Structured logger.
        clock: Source of the current UTC time.
    """

    def __init__(
        self,
        *,
        session: AsyncSession,
        rule: SlidingWindowRule,
        logger: LoggerProtocol,
        clock: Clock = utc_now,
    ) -> None:
        self._session = session
        self._rule = rule
        self._logger = logger
        self._clock = clock

    @property
    def rule(self) -> SlidingWindowRule:
        """Rule this limiter enforces."""
        return self._rule

    # -------------------------------------------------------------------------
    # RateLimitProtocol implementation
    # -------------------------------------------------------------------------
    async def check_and_reserve(self, key: str) -> Result[RateLimitDecision, RateLimitError]:
        """Count attempts in the window and record one if under the limit.

        Args:
            key: Identifier counted against (subject id, IP address).

        Returns:
            Success(RateLimitDecision) when allowed or denied,
            Failure(RateLimitError) when the store failed.
        """
        start_time = perf_counter()
        now = self._clock()
        window_start = now - self._rule.window
        scope = self._rule.scope.value

        try:
            await self._lock_window(key, now)

            stmt = (
                select(RateLimitAttemptModel.attempted_at)
                .where(RateLimitAttemptModel.scope == scope)
                .where(RateLimitAttemptModel.subject_key == key)
                .where(RateLimitAttemptModel.released_at.is_(None))
                .where(RateLimitAttemptModel.attempted_at > window_start)
                .order_by(RateLimitAttemptModel.attempted_at.asc())
            )
            attempts = list((await self._session.execute(stmt)).scalars().all())

            if len(attempts) >= self._rule.limit:
                await self._session.commit()
                # Count drops below the limit once this attempt leaves the window.
                blocking = attempts[len(attempts) - self._rule.limit]
                retry_after = max(
                    0, math.ceil((blocking + self._rule.window - now).total_seconds())
                )
                self._logger.info(
                    "rate_limit_denied",
                    scope=scope,
                    limit=self._rule.limit,
                    retry_after=retry_after,
                    duration_ms=round((perf_counter() - start_time) * 1000, 2),
                )
                return Success(
                    value=RateLimitDecision(
                        allowed=False,
                        limit=self._rule.limit,
                        remaining=0,
                        retry_after_seconds=retry_after,
                    )
                )

            reservation_id = uuid7()
            self._session.add(
                RateLimitAttemptModel(
                    id=reservation_id,
                    scope=scope,
                    subject_key=key,
                    attempted_at=now,
                )
            )
            await self._session.flush()
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            self._logger.error(
                "rate_limit_check_failed",
                error=e,
                scope=scope,
            )
            return Failure(
                error=RateLimitError(
                    code=ErrorCode.RATE_LIMIT_CHECK_FAILED,
                    message="Rate limit check failed",
                    details={"scope": scope, "error_type": type(e).__name__},
                )
            )

        remaining = self._rule.limit - len(attempts) - 1
        self._logger.debug(
            "rate_limit_allowed",
            scope=scope,
            remaining=remaining,
            duration_ms=round((perf_counter() - start_time) * 1000, 2),
        )
        return Success(
            value=RateLimitDecision(
                allowed=True,
                limit=self._rule.limit,
                remaining=remaining,
                retry_after_seconds=0,
                reservation_id=reservation_id,
            )
        )

    async def release(self, reservation_id: UUID) -> Result[None, RateLimitError]:
        """Return a reserved attempt to the budget.

        Idempotent: releasing twice leaves the first release time in place.

        Args:
            reservation_id: Id from an allowed RateLimitDecision.
        """
        try:
            await self._session.execute(
                update(RateLimitAttemptModel)
                .where(RateLimitAttemptModel.id == reservation_id)
                .where(RateLimitAttemptModel.released_at.is_(None))
                .values(released_at=self._clock())
                .execution_options(synchronize_session=False)
            )
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            return Failure(
                error=RateLimitError(
                    code=ErrorCode.RATE_LIMIT_RELEASE_FAILED,
                    message="Failed to release rate limit reservation",
                    details={
                        "reservation_id": str(reservation_id),
                        "error_type": type(e).__name__,
                    },
                )
            )
        return Success(value=None)

    async def get_remaining(self, key: str) -> Result[int, RateLimitError]:
        """Attempts left in the current window, without reserving one."""
        window_start = self._clock() - self._rule.window
        stmt = (
            select(func.count())
            .select_from(RateLimitAttemptModel)
            .where(RateLimitAttemptModel.scope == self._rule.scope.value)
            .where(RateLimitAttemptModel.subject_key == key)
            .where(RateLimitAttemptModel.released_at.is_(None))
            .where(RateLimitAttemptModel.attempted_at > window_start)
        )
        try:
            used = (await self._session.execute(stmt)).scalar_one()
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            return Failure(
                error=RateLimitError(
                    code=ErrorCode.RATE_LIMIT_CHECK_FAILED,
                    message="Failed to read rate limit usage",
                    details={"error_type": type(e).__name__},
                )
            )
        return Success(value=max(0, self._rule.limit - int(used)))

    async def purge_older_than(self, cutoff: datetime) -> Result[int, RateLimitError]:
        """Delete this scope's attempts recorded before ``cutoff``."""
        try:
            result = await self._session.execute(
                delete(RateLimitAttemptModel)
                .where(RateLimitAttemptModel.scope == self._rule.scope.value)
                .where(RateLimitAttemptModel.attempted_at < cutoff)
                .execution_options(synchronize_session=False)
            )
            deleted = cast(Any, result).rowcount or 0
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            return Failure(
                error=RateLimitError(
                    code=ErrorCode.RATE_LIMIT_CHECK_FAILED,
                    message="Failed to purge rate limit attempts",
                    details={"error_type": type(e).__name__},
                )
            )
        return Success(value=deleted)

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------
    async def _lock_window(self, key: str, now: datetime) -> None:
        """Upsert the anchor row, holding its lock until commit."""
        dialect = self._session.get_bind().dialect.name
        insert = postgresql_insert if dialect == "postgresql" else sqlite_insert
        stmt = insert(RateLimitWindowModel).values(
            id=uuid7(),
            scope=self._rule.scope.value,
            subject_key=key,
            last_checked_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["scope", "subject_key"],
            set_={"last_checked_at": stmt.excluded.last_checked_at},
        )
        await self._session.execute(stmt)
