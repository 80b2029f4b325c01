"""Unit tests for CleanupService."""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from verimail.application.services import CleanupReport, CleanupService
from verimail.core.enums import ErrorCode
from verimail.core.result import Failure, Success
from verimail.domain.enums import RateLimitScope
from verimail.domain.errors import RateLimitError, StorageError
from verimail.domain.value_objects import SlidingWindowRule


def make_limiter(scope: RateLimitScope, window_minutes: int, purged: int):
    limiter = AsyncMock()
    limiter.rule = SlidingWindowRule(
        limit=3, window=timedelta(minutes=window_minutes), scope=scope
    )
    limiter.purge_older_than.return_value = Success(value=purged)
    return limiter


@pytest.mark.unit
class TestCleanupService:
    """Test one cleanup pass."""

    async def test_purges_tokens_and_each_limiter_window(self, clock, logger):
        # Arrange
        token_store = AsyncMock()
        token_store.purge_expired.return_value = Success(value=4)
        subject_limiter = make_limiter(RateLimitScope.RESEND_SUBJECT, 60, 5)
        ip_limiter = make_limiter(RateLimitScope.RESEND_IP, 15, 2)
        service = CleanupService(
            token_store=token_store,
            limiters=[subject_limiter, ip_limiter],
            logger=logger,
            token_retention=timedelta(days=7),
            clock=clock,
        )

        # Act
        result = await service.run()

        # Assert
        assert result == Success(value=CleanupReport(tokens_deleted=4, attempts_deleted=7))
        token_store.purge_expired.assert_awaited_once_with(clock() - timedelta(days=7))
        subject_limiter.purge_older_than.assert_awaited_once_with(
            clock() - timedelta(minutes=60)
        )
        ip_limiter.purge_older_than.assert_awaited_once_with(
            clock() - timedelta(minutes=15)
        )
        logger.info.assert_called_once_with(
            "cleanup_completed", tokens_deleted=4, attempts_deleted=7
        )

    async def test_token_purge_failure_stops_run(self, clock, logger):
        token_store = AsyncMock()
        failure = Failure(
            error=StorageError(code=ErrorCode.STORAGE_ERROR, message="db down")
        )
        token_store.purge_expired.return_value = failure
        limiter = make_limiter(RateLimitScope.RESEND_SUBJECT, 60, 1)
        service = CleanupService(
            token_store=token_store, limiters=[limiter], logger=logger, clock=clock
        )

        result = await service.run()

        assert result is failure
        limiter.purge_older_than.assert_not_awaited()
        assert logger.error.call_args.args[0] == "cleanup_tokens_failed"

    async def test_limiter_purge_failure_counts_as_zero(self, clock, logger):
        token_store = AsyncMock()
        token_store.purge_expired.return_value = Success(value=0)
        broken = make_limiter(RateLimitScope.RESEND_IP, 60, 0)
        broken.purge_older_than.return_value = Failure(
            error=RateLimitError(
                code=ErrorCode.RATE_LIMIT_CHECK_FAILED, message="db down"
            )
        )
        working = make_limiter(RateLimitScope.RESEND_SUBJECT, 60, 3)
        service = CleanupService(
            token_store=token_store,
            limiters=[broken, working],
            logger=logger,
            clock=clock,
        )

        result = await service.run()

        assert result.value.attempts_deleted == 3
        logger.warning.assert_called_once()
        assert logger.warning.call_args.kwargs["scope"] == "resend_ip"
