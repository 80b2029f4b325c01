"""Domain value objects.

Usage:
    from verimail.domain.value_objects import SlidingWindowRule, RateLimitDecision
"""

from verimail.domain.value_objects.rate_limit_rule import (
    RateLimitDecision,
    SlidingWindowRule,
)

__all__ = ["RateLimitDecision", "SlidingWindowRule"]
