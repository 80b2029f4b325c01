"""Domain enums package.

Usage:
    from verimail.domain.enums import AuditAction, TokenType
"""

from verimail.domain.enums.audit_action import AuditAction
from verimail.domain.enums.invalidation_reason import InvalidationReason
from verimail.domain.enums.rate_limit_scope import RateLimitScope
from verimail.domain.enums.token_type import TokenType

__all__ = ["AuditAction", "InvalidationReason", "RateLimitScope", "TokenType"]
