"""Domain protocols (ports).

Infrastructure adapters satisfy these structurally; none inherit from them.
"""

from verimail.domain.protocols.audit_protocol import AuditProtocol
from verimail.domain.protocols.identity_store_protocol import (
    IdentityStoreProtocol,
    SubjectData,
)
from verimail.domain.protocols.logger_protocol import LoggerProtocol
from verimail.domain.protocols.mail_sender_protocol import MailSenderProtocol
from verimail.domain.protocols.rate_limit_protocol import RateLimitProtocol
from verimail.domain.protocols.token_generator_protocol import (
    TokenGeneratorProtocol,
)
from verimail.domain.protocols.verification_token_store_protocol import (
    IssuedToken,
    VerificationTokenData,
    VerificationTokenStoreProtocol,
)

__all__ = [
    "AuditProtocol",
    "IdentityStoreProtocol",
    "IssuedToken",
    "LoggerProtocol",
    "MailSenderProtocol",
    "RateLimitProtocol",
    "SubjectData",
    "TokenGeneratorProtocol",
    "VerificationTokenData",
    "VerificationTokenStoreProtocol",
]
