"""AWS SES mail sender.

boto3 is synchronous; the SES call runs in a worker thread so the event
loop keeps serving requests while the HTTP call to SES is in flight.
"""

import asyncio
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from verimail.core.enums import ErrorCode
from verimail.core.result import Failure, Result, Success
from verimail.domain.errors import MailError
from verimail.domain.protocols.logger_protocol import LoggerProtocol


class SESMailSender:
    """Send mail through AWS SES.

    Attributes:
        from_email: Verified sender address.
        from_name: Sender display name.
    """

    def __init__(
        self,
        *,
        from_email: str,
        from_name: str,
        region: str,
        logger: LoggerProtocol,
        client: Any | None = None,
    ) -> None:
        """Initialize the SES client.

        Args:
            from_email: Verified sender address.
            from_name: Sender display name.
            region: AWS region hosting the SES identity.
            logger: Structured logger.
            client: Pre-built boto3 SES client (tests inject a stub).
        """
        self.from_email = from_email
        self.from_name = from_name
        self._logger = logger
        self._client = client or boto3.client("ses", region_name=region)

    async def send(
        self,
        *,
        to: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> Result[str, MailError]:
        """Send one message via SES.

        Returns:
            Success(SES MessageId) or Failure(MailError).
        """
        try:
            response = await asyncio.to_thread(
                self._client.send_email,
                Source=f"{self.from_name} <{self.from_email}>",
                Destination={"ToAddresses": [to]},
                Message={
                    "Subject": {"Charset": "UTF-8", "Data": subject},
                    "Body": {
                        "Html": {"Charset": "UTF-8", "Data": html_body},
                        "Text": {"Charset": "UTF-8", "Data": text_body},
                    },
                },
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            self._logger.error("ses_send_failed", error=e, ses_error_code=error_code)
            return Failure(
                error=MailError(
                    code=ErrorCode.MAIL_DELIVERY_FAILED,
                    message="Email provider rejected the message",
                    provider="ses",
                    details={"ses_error_code": error_code},
                )
            )
        except BotoCoreError as e:
            self._logger.error("ses_send_failed", error=e)
            return Failure(
                error=MailError(
                    code=ErrorCode.MAIL_DELIVERY_FAILED,
                    message="Email provider unavailable",
                    provider="ses",
                    details={"error_type": type(e).__name__},
                )
            )

        message_id = str(response.get("MessageId", ""))
        self._logger.info("ses_send_succeeded", message_id=message_id)
        return Success(value=message_id)
