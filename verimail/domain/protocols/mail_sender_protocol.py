"""MailSenderProtocol - port for outbound mail delivery.

Implementations:
    - StubMailSender: logs instead of sending (development, tests)
    - SESMailSender: AWS SES via boto3 (production)
"""

from typing import Protocol

from verimail.core.result import Result
from verimail.domain.errors import MailError


class MailSenderProtocol(Protocol):
    """Deliver one rendered message."""

    async def send(
        self,
        *,
        to: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> Result[str, MailError]:
        """Send a message.

        Returns:
            Success(delivery_id) when accepted by the provider,
            Failure(MailError) otherwise.
        """
        ...
