"""IdentityStoreProtocol - port onto the external user store.

The verification core reads users and writes exactly one field,
``confirmed_at``.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID

from verimail.core.result import Result
from verimail.domain.errors import StorageError


@dataclass
class SubjectData:
    """User record as seen by the verification core."""

    id: UUID
    email: str
    confirmed_at: datetime | None = None

    @property
    def is_confirmed(self) -> bool:
        """Whether the email address has been verified."""
        return self.confirmed_at is not None


class IdentityStoreProtocol(Protocol):
    """Identity store operations.

    Implementations:
        - UserRepository (SQLAlchemy): verimail/infrastructure/persistence/repositories/
    """

    async def find_by_email(self, email: str) -> Result[SubjectData | None, StorageError]:
        """Look up a subject by normalized email."""
        ...

    async def find_by_id(self, subject_id: UUID) -> Result[SubjectData | None, StorageError]:
        """Look up a subject by id."""
        ...

    async def mark_confirmed(
        self, subject_id: UUID, at: datetime
    ) -> Result[bool, StorageError]:
        """Set confirmed_at if it is still unset.

        Returns:
            Success(True) if this call confirmed the subject, Success(False)
            if it was already confirmed (or does not exist).
        """
        ...
