"""Verification flow errors.

TokenConsumeError carries the internal reason a consume failed. It never
leaves the service: the orchestrator audits it and replies with one generic
message.

VerificationError is what orchestrator callers receive. The ``code`` is the
dispatch key; ``retry_after_seconds`` is set for rate-limited resends.
"""

from dataclasses import dataclass

from verimail.core.errors import DomainError


@dataclass(frozen=True, slots=True, kw_only=True)
class TokenConsumeError(DomainError):
    """Token could not be consumed.

    Attributes:
        code: TOKEN_NOT_FOUND, TOKEN_EXPIRED, TOKEN_ALREADY_USED or
            TOKEN_INVALIDATED.
    """

    pass


@dataclass(frozen=True, slots=True, kw_only=True)
class VerificationError(DomainError):
    """Outward-facing failure of an orchestrator operation.

    Attributes:
        retry_after_seconds: Seconds until a resend may succeed (rate limited only).
        user_action: Suggested next step for the client (check_email,
            register_new_account, login_instead, try_again_later).
    """

    retry_after_seconds: int | None = None
    user_action: str | None = None
