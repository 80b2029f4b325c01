"""Domain errors package.

Usage:
    from verimail.domain.errors import StorageError, TokenConsumeError
"""

from verimail.domain.errors.audit_error import AuditError
from verimail.domain.errors.mail_error import MailError
from verimail.domain.errors.rate_limit_error import RateLimitError
from verimail.domain.errors.storage_error import StorageError
from verimail.domain.errors.verification_error import (
    TokenConsumeError,
    VerificationError,
)

__all__ = [
    "AuditError",
    "MailError",
    "RateLimitError",
    "StorageError",
    "TokenConsumeError",
    "VerificationError",
]
