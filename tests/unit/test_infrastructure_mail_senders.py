"""Unit tests for the SES and stub mail senders."""

from unittest.mock import Mock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from verimail.core.enums import ErrorCode
from verimail.core.result import Failure, Success
from verimail.infrastructure.email import SESMailSender, StubMailSender

MESSAGE = {
    "to": "alice@example.com",
    "subject": "Verify your email address for Verimail",
    "html_body": "<p>link</p>",
    "text_body": "link",
}


@pytest.fixture
def ses_client():
    return Mock()


@pytest.fixture
def sender(ses_client, logger):
    return SESMailSender(
        from_email="noreply@example.com",
        from_name="Verimail",
        region="us-east-1",
        logger=logger,
        client=ses_client,
    )


@pytest.mark.unit
class TestSESMailSender:
    """Test SES delivery and error mapping."""

    async def test_send_returns_message_id(self, sender, ses_client):
        ses_client.send_email.return_value = {"MessageId": "0100018c-abc"}

        result = await sender.send(**MESSAGE)

        assert result == Success(value="0100018c-abc")
        kwargs = ses_client.send_email.call_args.kwargs
        assert kwargs["Source"] == "Verimail <noreply@example.com>"
        assert kwargs["Destination"] == {"ToAddresses": ["alice@example.com"]}
        assert kwargs["Message"]["Body"]["Text"]["Data"] == "link"

    async def test_client_error_maps_to_mail_error(self, sender, ses_client):
        ses_client.send_email.side_effect = ClientError(
            {"Error": {"Code": "MessageRejected", "Message": "Address not verified"}},
            "SendEmail",
        )

        result = await sender.send(**MESSAGE)

        assert isinstance(result, Failure)
        assert result.error.code == ErrorCode.MAIL_DELIVERY_FAILED
        assert result.error.provider == "ses"
        assert result.error.details == {"ses_error_code": "MessageRejected"}

    async def test_connection_error_maps_to_mail_error(self, sender, ses_client, logger):
        ses_client.send_email.side_effect = EndpointConnectionError(
            endpoint_url="https://email.us-east-1.amazonaws.com"
        )

        result = await sender.send(**MESSAGE)

        assert isinstance(result, Failure)
        assert result.error.message == "Email provider unavailable"
        assert logger.error.call_args.args[0] == "ses_send_failed"


@pytest.mark.unit
class TestStubMailSender:
    """Test the logging stub."""

    async def test_send_counts_and_logs_without_body(self, logger):
        sender = StubMailSender(logger=logger)

        result = await sender.send(**MESSAGE)

        assert isinstance(result, Success)
        assert result.value.startswith("stub-")
        assert sender.sent_count == 1
        logged = logger.info.call_args.kwargs
        assert logged["to"] == "alice@example.com"
        assert "text_body" not in logged
