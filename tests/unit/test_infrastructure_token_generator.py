"""Unit tests for VerificationTokenGenerator."""

import re

import pytest

from verimail.infrastructure.security.token_generator import (
    VerificationTokenGenerator,
)


@pytest.mark.unit
class TestVerificationTokenGenerator:
    """Test secret generation and hashing."""

    def test_generate_default_is_43_url_safe_characters(self):
        token = VerificationTokenGenerator().generate()

        assert len(token) == 43
        assert re.fullmatch(r"[A-Za-z0-9_-]+", token)

    def test_generate_larger_byte_length_gives_longer_token(self):
        assert len(VerificationTokenGenerator().generate(48)) == 64

    def test_generate_rejects_fewer_than_32_bytes(self):
        with pytest.raises(ValueError, match="at least 32"):
            VerificationTokenGenerator().generate(31)

    def test_generate_is_unique(self):
        generator = VerificationTokenGenerator()

        tokens = {generator.generate() for _ in range(200)}

        assert len(tokens) == 200

    def test_hash_is_deterministic_sha256_hex(self):
        generator = VerificationTokenGenerator()

        digest = generator.hash("secret-token")

        assert digest == generator.hash("secret-token")
        assert re.fullmatch(r"[0-9a-f]{64}", digest)
        assert digest != generator.hash("secret-token2")
