"""Rate limit scope enum.

Defines which key a sliding-window rule counts attempts against.
"""

from enum import Enum


class RateLimitScope(str, Enum):
    """Rate limit scope types.

    Attributes:
        RESEND_SUBJECT: Per-account resend budget (key: subject id).
        RESEND_IP: Per-client resend budget (key: source IP address).
        TOKEN_CHURN: Tokens issued per subject, counted from the token store.
    """

    RESEND_SUBJECT = "resend_subject"
    RESEND_IP = "resend_ip"
    TOKEN_CHURN = "token_churn"
