"""Repository implementations.

Usage:
    from verimail.infrastructure.persistence.repositories import (
        UserRepository,
        VerificationTokenRepository,
    )
"""

from verimail.infrastructure.persistence.repositories.user_repository import (
    UserRepository,
)
from verimail.infrastructure.persistence.repositories.verification_token_repository import (
    VerificationTokenRepository,
)

__all__ = ["UserRepository", "VerificationTokenRepository"]
