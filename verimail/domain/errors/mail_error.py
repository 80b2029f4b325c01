"""Outbound mail delivery failure."""

from dataclasses import dataclass

from verimail.core.errors import DomainError


@dataclass(frozen=True, slots=True, kw_only=True)
class MailError(DomainError):
    """Mail sender could not deliver a message.

    Attributes:
        provider: Backend that reported the failure (stub, ses).
    """

    provider: str | None = None
