"""Rate limit error types.

A denied request is NOT an error: it is a successful check that returns
``allowed=False``. This error type covers system failures of the limiter
itself (lost database connection, deadline exceeded).

Whether such a failure admits or rejects the request is decided by the
caller from the ``rate_limit_fail_open`` setting.
"""

from dataclasses import dataclass

from verimail.core.errors import DomainError


@dataclass(frozen=True, slots=True, kw_only=True)
class RateLimitError(DomainError):
    """Rate limit system failure.

    Attributes:
        code: ErrorCode enum (RATE_LIMIT_CHECK_FAILED, RATE_LIMIT_RELEASE_FAILED).
        message: Human-readable message.
        details: Additional context (scope, key).
    """

    pass
