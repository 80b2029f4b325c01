"""Kinds of single-use tokens the store issues."""

from enum import Enum


class TokenType(str, Enum):
    """Token purpose. Each subject holds at most one active token per type."""

    EMAIL_VERIFICATION = "email_verification"
    PASSWORD_RESET = "password_reset"
