"""Application commands."""

from verimail.application.commands.verification_commands import (
    CompleteVerification,
    IssueVerification,
    ResendVerification,
    RevokeVerification,
)

__all__ = [
    "CompleteVerification",
    "IssueVerification",
    "ResendVerification",
    "RevokeVerification",
]
