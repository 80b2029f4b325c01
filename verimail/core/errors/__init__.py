"""Core errors package.

Usage:
    from verimail.core.errors import DomainError, ValidationError
"""

from verimail.core.errors.common_errors import ValidationError
from verimail.core.errors.domain_error import DomainError

__all__ = [
    "DomainError",
    "ValidationError",
]
