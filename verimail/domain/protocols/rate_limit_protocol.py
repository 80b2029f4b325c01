"""RateLimitProtocol - port for persisted sliding-window rate limiting.

Each adapter instance enforces one SlidingWindowRule. Attempts are stored,
so limits hold across processes and restarts.

Usage:
    match await limiter.check_and_reserve(str(subject_id)):
        case Success(value=decision) if decision.allowed:
            ...
        case Success(value=decision):
            retry_after = decision.retry_after_seconds
        case Failure(error=error):
            ...  # limiter unavailable; apply fail-open/closed policy
"""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from verimail.core.result import Result
from verimail.domain.errors import RateLimitError
from verimail.domain.value_objects import RateLimitDecision, SlidingWindowRule


class RateLimitProtocol(Protocol):
    """Sliding window rate limiter.

    Implementations:
        - SlidingWindowRateLimiter: verimail/infrastructure/rate_limit/
    """

    @property
    def rule(self) -> SlidingWindowRule:
        """Rule this limiter enforces."""
        ...

    async def check_and_reserve(self, key: str) -> Result[RateLimitDecision, RateLimitError]:
        """Atomically count attempts in the window and record one if under limit.

        Args:
            key: Identifier the rule scope counts against (subject id, IP).

        Returns:
            Success(RateLimitDecision) whether allowed or denied.
            Failure(RateLimitError) only when the store itself failed.
        """
        ...

    async def release(self, reservation_id: UUID) -> Result[None, RateLimitError]:
        """Return a reserved attempt to the budget."""
        ...

    async def get_remaining(self, key: str) -> Result[int, RateLimitError]:
        """Attempts left in the current window (read-only)."""
        ...

    async def purge_older_than(self, cutoff: datetime) -> Result[int, RateLimitError]:
        """Delete attempts recorded before ``cutoff`` for this rule's scope."""
        ...
