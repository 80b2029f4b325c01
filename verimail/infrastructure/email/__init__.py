"""Mail sender implementations.

- StubMailSender: structured log instead of delivery (development/testing)
- SESMailSender: AWS SES via boto3 (production)
"""

from verimail.infrastructure.email.ses_mail_sender import SESMailSender
from verimail.infrastructure.email.stub_mail_sender import StubMailSender

__all__ = ["SESMailSender", "StubMailSender"]
