"""Storage hygiene for verification tables.

Expired tokens are already unusable (expiry is checked at consume time), and
rate-limit attempts older than the window no longer count. Purging them only
keeps the tables small; nothing depends on this job running.
"""

from dataclasses import dataclass
from datetime import timedelta

from verimail.core.clock import Clock, utc_now
from verimail.core.result import Failure, Result, Success
from verimail.domain.errors import StorageError
from verimail.domain.protocols import (
    LoggerProtocol,
    RateLimitProtocol,
    VerificationTokenStoreProtocol,
)


@dataclass(frozen=True, slots=True, kw_only=True)
class CleanupReport:
    """Rows removed by one cleanup run."""

    tokens_deleted: int
    attempts_deleted: int


class CleanupService:
    """Purge expired tokens and stale rate-limit attempts."""

    def __init__(
        self,
        *,
        token_store: VerificationTokenStoreProtocol,
        limiters: list[RateLimitProtocol],
        logger: LoggerProtocol,
        token_retention: timedelta = timedelta(days=7),
        clock: Clock = utc_now,
    ) -> None:
        """Initialize cleanup service.

        Args:
            token_store: Verification token persistence.
            limiters: Limiters whose attempts are purged (each by its own window).
            logger: Structured logger.
            token_retention: How long expired tokens are kept.
            clock: Source of the current UTC time.
        """
        self._token_store = token_store
        self._limiters = limiters
        self._logger = logger
        self._token_retention = token_retention
        self._clock = clock

    async def run(self) -> Result[CleanupReport, StorageError]:
        """Run one cleanup pass.

        Returns:
            Success(CleanupReport), or Failure(StorageError) if the token purge
            failed. Limiter purge failures are logged and counted as zero.
        """
        now = self._clock()

        purged = await self._token_store.purge_expired(now - self._token_retention)
        if isinstance(purged, Failure):
            self._logger.error(
                "cleanup_tokens_failed", error_code=purged.error.code.value
            )
            return purged
        tokens_deleted = purged.value

        attempts_deleted = 0
        for limiter in self._limiters:
            match await limiter.purge_older_than(now - limiter.rule.window):
                case Success(value=count):
                    attempts_deleted += count
                case Failure(error=error):
                    self._logger.warning(
                        "cleanup_attempts_failed",
                        scope=limiter.rule.scope.value,
                        error_code=error.code.value,
                    )

        self._logger.info(
            "cleanup_completed",
            tokens_deleted=tokens_deleted,
            attempts_deleted=attempts_deleted,
        )
        return Success(
            value=CleanupReport(
                tokens_deleted=tokens_deleted, attempts_deleted=attempts_deleted
            )
        )
