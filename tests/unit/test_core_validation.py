"""Unit tests for email and token format validation."""

import pytest

from verimail.core.enums import ErrorCode
from verimail.core.errors import ValidationError
from verimail.core.result import Failure, Success
from verimail.core.validation import validate_email, validate_token_format


@pytest.mark.unit
class TestValidateEmail:
    """Test email syntax validation and normalization."""

    def test_valid_email_is_normalized_to_lowercase(self):
        result = validate_email("Alice.Smith@Example.COM")

        assert isinstance(result, Success)
        assert result.value == "alice.smith@example.com"

    @pytest.mark.parametrize(
        "email",
        ["", "not-an-email", "missing-at.example.com", "user@", "@example.com"],
    )
    def test_invalid_email_returns_failure(self, email):
        result = validate_email(email)

        assert isinstance(result, Failure)
        assert isinstance(result.error, ValidationError)
        assert result.error.code == ErrorCode.INVALID_EMAIL
        assert result.error.field == "email"
        assert result.error.message == "Please enter a valid email address."


@pytest.mark.unit
class TestValidateTokenFormat:
    """Test token shape checks run before any storage lookup."""

    def test_issued_token_shape_is_accepted(self, generator):
        token = generator.generate(32)

        assert isinstance(validate_token_format(token), Success)

    def test_minimum_and_maximum_length_accepted(self):
        assert isinstance(validate_token_format("a" * 43), Success)
        assert isinstance(validate_token_format("A" * 128), Success)

    @pytest.mark.parametrize(
        "token",
        [
            "",
            "a" * 42,
            "a" * 129,
            "a" * 42 + "=",
            "a" * 42 + "/",
            "a" * 40 + "<b>",
            "a" * 42 + " ",
        ],
    )
    def test_malformed_token_is_rejected(self, token):
        result = validate_token_format(token)

        assert isinstance(result, Failure)
        assert result.error.code == ErrorCode.INVALID_TOKEN_FORMAT
        assert result.error.field == "token"
