"""Domain-level error codes (machine-readable).

Error codes follow ENTITY_ACTION_REASON naming convention. Callers dispatch
on these codes, never on message text.

Categories:
- Validation errors (INVALID_*)
- Resource errors (*_NOT_FOUND)
- Token lifecycle errors (TOKEN_*)
- Verification flow errors (VERIFICATION_*, SUBJECT_*)
- Rate limiting (RATE_LIMIT_*)
- Infrastructure failures (STORAGE_*, MAIL_*, AUDIT_*)
"""

from enum import Enum


class ErrorCode(Enum):
    """Domain-level error codes (machine-readable)."""

    # Validation errors
    INVALID_EMAIL = "invalid_email"
    INVALID_TOKEN_FORMAT = "invalid_token_format"

    # Resource errors
    USER_NOT_FOUND = "user_not_found"

    # Token lifecycle
    TOKEN_NOT_FOUND = "token_not_found"
    TOKEN_EXPIRED = "token_expired"
    TOKEN_ALREADY_USED = "token_already_used"
    TOKEN_INVALIDATED = "token_invalidated"
    TOKEN_INVALID = "token_invalid"

    # Verification flow
    SUBJECT_ALREADY_VERIFIED = "subject_already_verified"
    VERIFICATION_RATE_LIMITED = "verification_rate_limited"

    # Rate limiting (system failures, not denials)
    RATE_LIMIT_CHECK_FAILED = "rate_limit_check_failed"
    RATE_LIMIT_RELEASE_FAILED = "rate_limit_release_failed"

    # Infrastructure
    STORAGE_ERROR = "storage_error"
    STORAGE_TIMEOUT = "storage_timeout"
    MAIL_DELIVERY_FAILED = "mail_delivery_failed"
    AUDIT_RECORD_FAILED = "audit_record_failed"
    AUDIT_QUERY_FAILED = "audit_query_failed"
