"""Database models for persistence layer.

Models Organization:
    - verification_token.py: Single-use verification tokens (hash only)
    - rate_limit.py: Sliding window anchors and recorded attempts
    - audit_log.py: Append-only verification audit trail
    - user.py: Identity store table (id, email, confirmed_at)

Domain DTOs live in verimail/domain/protocols/; repositories map between
the two.
"""

from verimail.infrastructure.persistence.base import BaseModel
from verimail.infrastructure.persistence.models.audit_log import AuditLogModel
from verimail.infrastructure.persistence.models.rate_limit import (
    RateLimitAttemptModel,
    RateLimitWindowModel,
)
from verimail.infrastructure.persistence.models.user import UserModel
from verimail.infrastructure.persistence.models.verification_token import (
    VerificationTokenModel,
)

__all__ = [
    "AuditLogModel",
    "BaseModel",
    "RateLimitAttemptModel",
    "RateLimitWindowModel",
    "UserModel",
    "VerificationTokenModel",
]
