"""TokenGeneratorProtocol - port for secret generation and hashing."""

from typing import Protocol


class TokenGeneratorProtocol(Protocol):
    """Creates unguessable secrets and their storage digests.

    Implementations are pure: no I/O, no shared state.

    Implementations:
        - VerificationTokenGenerator: verimail/infrastructure/security/
    """

    def generate(self, byte_length: int) -> str:
        """Return a URL-safe secret built from ``byte_length`` random bytes.

        Raises:
            ValueError: If byte_length is below 32.
        """
        ...

    def hash(self, secret: str) -> str:
        """Return the deterministic digest stored in place of ``secret``."""
        ...
