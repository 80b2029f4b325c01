"""Sliding window rate limit rule and decision value objects.

A rule reads "at most ``limit`` attempts per key within the trailing
``window``". The window is half-open ``(now - window, now]``: an attempt
made exactly ``window`` ago no longer counts.

Usage:
    rule = SlidingWindowRule(
        limit=3,
        window=timedelta(minutes=60),
        scope=RateLimitScope.RESEND_SUBJECT,
    )
"""

from dataclasses import dataclass
from datetime import timedelta
from uuid import UUID

from verimail.domain.enums.rate_limit_scope import RateLimitScope


@dataclass(frozen=True, slots=True, kw_only=True)
class SlidingWindowRule:
    """Sliding window rule configuration (value object).

    Attributes:
        limit: Maximum attempts admitted inside one window.
        window: Length of the trailing window.
        scope: Which key the attempts are counted against.

    Raises:
        ValueError: If limit <= 0 or window is not positive.
    """

    limit: int
    window: timedelta
    scope: RateLimitScope

    def __post_init__(self) -> None:
        """Validate rule configuration."""
        if self.limit <= 0:
            raise ValueError(f"limit must be positive, got {self.limit}")
        if self.window <= timedelta(0):
            raise ValueError(f"window must be positive, got {self.window}")


@dataclass(frozen=True, slots=True, kw_only=True)
class RateLimitDecision:
    """Outcome of a rate limit check.

    Attributes:
        allowed: Whether the attempt was admitted (and recorded).
        limit: Rule limit, for response headers.
        remaining: Attempts left in the current window after this one.
        retry_after_seconds: Seconds until the oldest counted attempt leaves
            the window (0 when allowed).
        reservation_id: Id of the recorded attempt, used to release it.
    """

    allowed: bool
    limit: int
    remaining: int
    retry_after_seconds: int = 0
    reservation_id: UUID | None = None
