"""Validation helpers for inbound verification requests.

All validation functions return Result types for consistent error handling.

Usage:
    from verimail.core.validation import validate_email

    match validate_email("User@Example.com"):
        case Success(value=email):
            ...  # "user@example.com"
        case Failure(error=error):
            ...
"""

import re

from email_validator import EmailNotValidError
from email_validator import validate_email as _validate_email

from verimail.core.constants import TOKEN_MAX_LENGTH, TOKEN_MIN_LENGTH
from verimail.core.enums import ErrorCode
from verimail.core.errors import ValidationError
from verimail.core.result import Failure, Result, Success

_TOKEN_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def validate_email(email: str) -> Result[str, ValidationError]:
    """Validate and normalize an email address.

    Uses email-validator for RFC-compliant syntax checks (no DNS lookups).

    Args:
        email: Email address to validate.

    Returns:
        Success with the trimmed, normalized (lowercased) email, Failure
        otherwise.
    """
    try:
        validated = _validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError:
        return Failure(
            error=ValidationError(
                code=ErrorCode.INVALID_EMAIL,
                message="Please enter a valid email address.",
                field="email",
            )
        )
    return Success(value=validated.normalized.lower())


def validate_token_format(token: str) -> Result[str, ValidationError]:
    """Check that a token is plausibly one we issued.

    Rejects empty, oversized, or non URL-safe input before any storage
    lookup happens.

    Args:
        token: Raw token from the verification link.

    Returns:
        Success with the token, Failure with ValidationError otherwise.
    """
    if (
        not isinstance(token, str)
        or not TOKEN_MIN_LENGTH <= len(token) <= TOKEN_MAX_LENGTH
        or not _TOKEN_PATTERN.match(token)
    ):
        return Failure(
            error=ValidationError(
                code=ErrorCode.INVALID_TOKEN_FORMAT,
                message="Malformed verification token",
                field="token",
            )
        )
    return Success(value=token)
