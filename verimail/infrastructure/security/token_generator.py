"""Verification token generation and hashing.

Token Strategy:
    - ``secrets.token_urlsafe`` over at least 32 random bytes (256 bits),
      giving a 43+ character string in the alphabet [A-Za-z0-9_-]
    - Only the SHA-256 hex digest is persisted; lookup is by digest
    - SHA-256 without salt is sufficient because the input is already
      uniformly random and unguessable

Usage:
    generator = VerificationTokenGenerator()
    secret = generator.generate(32)
    token_hash = generator.hash(secret)
"""

import hashlib
import secrets

from verimail.core.constants import TOKEN_BYTES


class VerificationTokenGenerator:
    """Cryptographically secure token generator.

    Stateless and pure; safe to share across requests.
    """

    def generate(self, byte_length: int = TOKEN_BYTES) -> str:
        """Generate a URL-safe secret.

        Args:
            byte_length: Random bytes to draw (minimum 32).

        Returns:
            URL-safe base64 string without padding.

        Raises:
            ValueError: If byte_length is below 32.

        Example:
            >>> len(VerificationTokenGenerator().generate(32))
            43
        """
        if byte_length < TOKEN_BYTES:
            raise ValueError(
                f"byte_length must be at least {TOKEN_BYTES}, got {byte_length}"
            )
        return secrets.token_urlsafe(byte_length)

    def hash(self, secret: str) -> str:
        """Return the SHA-256 hex digest of a secret (64 characters)."""
        return hashlib.sha256(secret.encode("utf-8")).hexdigest()
