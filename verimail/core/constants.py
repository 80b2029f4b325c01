"""Centralized constants for internal implementation details.

Values here are fixed properties of the implementation, NOT
environment-specific configuration (see `verimail/core/config.py`).

Example:
    >>> from verimail.core.constants import TOKEN_BYTES
    >>> secrets.token_urlsafe(TOKEN_BYTES)
"""

# =============================================================================
# Token Lengths
# =============================================================================

TOKEN_BYTES: int = 32
"""Minimum number of random bytes per verification token (256 bits)."""

TOKEN_MIN_LENGTH: int = 43
"""Length of a URL-safe base64 token generated from TOKEN_BYTES bytes."""

TOKEN_MAX_LENGTH: int = 128
"""Upper bound on accepted token length (rejects oversized input before I/O)."""

TOKEN_HASH_LENGTH: int = 64
"""Length of the SHA-256 hex digest stored in place of the token."""

TOKEN_PREVIEW_LENGTH: int = 8
"""Characters of a token that may appear in logs and audit details."""

ISSUE_MAX_RETRIES: int = 3
"""Attempts to issue a token when a concurrent issue wins the active slot."""


# =============================================================================
# Audit Limits
# =============================================================================

AUDIT_TEXT_MAX_LENGTH: int = 500
"""Maximum length of any sanitized free-text value in the audit log."""

AUDIT_QUERY_MAX_LIMIT: int = 1000
"""Upper bound on rows returned by a single audit query."""


# =============================================================================
# Verification Metadata
# =============================================================================

GENERATION_METHOD_REGISTRATION: str = "registration"
"""Metadata value for tokens issued at account creation."""

GENERATION_METHOD_RESEND: str = "resend_verification"
"""Metadata value for tokens issued by a resend request."""

GENERIC_COMPLETE_FAILURE_MESSAGE: str = (
    "This verification link is invalid or has expired. "
    "Please request a new verification email."
)
"""Single outward message for every failed verification completion."""
