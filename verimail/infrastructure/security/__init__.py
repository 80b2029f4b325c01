"""Security primitives."""

from verimail.infrastructure.security.token_generator import (
    VerificationTokenGenerator,
)

__all__ = ["VerificationTokenGenerator"]
