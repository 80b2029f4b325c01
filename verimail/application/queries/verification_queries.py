"""Verification queries (CQRS read operations).

Queries are immutable dataclasses with question-like names. Handlers fetch
and return data; queries never change state.
"""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True, kw_only=True)
class GetVerificationStatus:
    """Get the verification state of one subject.

    Attributes:
        subject_id: Subject (user) identifier.

    Example:
        >>> query = GetVerificationStatus(subject_id=UUID("0192..."))
        >>> result = await handler.handle(query)
    """

    subject_id: UUID


@dataclass(frozen=True, kw_only=True)
class ListVerificationAudit:
    """List the verification audit trail of one subject, newest first.

    Attributes:
        subject_id: Subject (user) identifier.
        only_failures: If True, only return unsuccessful entries.
        limit: Maximum number of entries (capped by the audit store).
    """

    subject_id: UUID
    only_failures: bool = False
    limit: int = 100
