"""Unit tests for container wiring."""

from datetime import timedelta
from unittest.mock import Mock

import pytest

from verimail.application.queries import ListVerificationAuditHandler
from verimail.application.services import CleanupService
from verimail.core.config import settings
from verimail.core.container import (
    build_cleanup_service,
    get_ip_rule,
    get_list_verification_audit_handler,
    get_logger,
    get_mail_sender,
    get_subject_rule,
    get_token_generator,
    get_verification_policy,
)
from verimail.domain.enums import RateLimitScope
from verimail.infrastructure.email import StubMailSender


@pytest.mark.unit
class TestContainer:
    """Test factories built from settings."""

    def test_rules_follow_settings(self):
        subject_rule = get_subject_rule()
        ip_rule = get_ip_rule()

        assert subject_rule.limit == settings.resend_limit
        assert subject_rule.window == settings.resend_window
        assert subject_rule.scope == RateLimitScope.RESEND_SUBJECT
        assert ip_rule.limit == settings.resend_ip_limit
        assert ip_rule.scope == RateLimitScope.RESEND_IP

    def test_policy_follows_settings(self):
        policy = get_verification_policy()

        assert policy.verification_url_base == settings.verification_url_base
        assert policy.token_ttl == settings.token_ttl
        assert policy.token_churn_limit == settings.token_churn_limit
        assert policy.rate_limit_fail_open is settings.rate_limit_fail_open
        assert policy.complete_min_duration == timedelta(
            milliseconds=settings.complete_min_duration_ms
        )
        assert policy.store_timeout == timedelta(
            seconds=settings.store_timeout_seconds
        )

    def test_singletons_are_cached(self):
        assert get_logger() is get_logger()
        assert get_token_generator() is get_token_generator()

    def test_stub_mail_sender_selected(self):
        assert isinstance(get_mail_sender(), StubMailSender)

    def test_build_cleanup_service(self):
        assert isinstance(build_cleanup_service(Mock()), CleanupService)

    async def test_list_audit_handler_wraps_audit_adapter(self):
        audit = Mock()

        handler = await get_list_verification_audit_handler(audit=audit)

        assert isinstance(handler, ListVerificationAuditHandler)
