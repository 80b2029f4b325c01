"""Persistence failure surfaced by the token store and identity store."""

from dataclasses import dataclass

from verimail.core.errors import DomainError


@dataclass(frozen=True, slots=True, kw_only=True)
class StorageError(DomainError):
    """Database operation failed or exceeded its deadline.

    A timed out write may still have been applied. Retrying issue/resend
    is safe; retrying a consume reports the token as already used.

    Attributes:
        operation: Store operation that failed (issue, consume, ...).
    """

    operation: str | None = None
