"""Stub mail sender for development and tests.

Logs the message instead of delivering it. The verification link is not
logged in full: only the recipient, subject and body sizes.
"""

from uuid_extensions import uuid7

from verimail.core.result import Result, Success
from verimail.domain.errors import MailError
from verimail.domain.protocols.logger_protocol import LoggerProtocol


class StubMailSender:
    """Mail sender that records sends in the structured log.

    Attributes:
        sent_count: Number of messages accepted so far.
    """

    def __init__(self, *, logger: LoggerProtocol) -> None:
        self._logger = logger
        self.sent_count = 0

    async def send(
        self,
        *,
        to: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> Result[str, MailError]:
        delivery_id = f"stub-{uuid7()}"
        self.sent_count += 1
        self._logger.info(
            "email_stub_sent",
            delivery_id=delivery_id,
            to=to,
            subject=subject,
            html_length=len(html_body),
            text_length=len(text_body),
        )
        return Success(value=delivery_id)
