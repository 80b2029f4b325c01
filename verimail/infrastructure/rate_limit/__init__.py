"""Rate limiting infrastructure."""

from verimail.infrastructure.rate_limit.sliding_window_adapter import (
    SlidingWindowRateLimiter,
)

__all__ = ["SlidingWindowRateLimiter"]
