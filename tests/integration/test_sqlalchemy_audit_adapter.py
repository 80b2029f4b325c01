"""Integration tests for SQLAlchemyAuditAdapter."""

from datetime import timedelta

import pytest
from uuid_extensions import uuid7

from verimail.core.enums import ErrorCode
from verimail.core.result import Failure, Success
from verimail.domain.enums import AuditAction
from verimail.infrastructure.audit import SQLAlchemyAuditAdapter


@pytest.fixture
def audit(session, clock):
    return SQLAlchemyAuditAdapter(session, clock=clock)


@pytest.mark.integration
class TestRecord:
    """Test append-only recording."""

    async def test_record_and_query_roundtrip(self, audit, clock):
        # Arrange
        subject_id, token_id = uuid7(), uuid7()

        # Act
        result = await audit.record(
            action=AuditAction.VERIFICATION_FAILED,
            subject_id=subject_id,
            success=False,
            token_id=token_id,
            source_ip="203.0.113.7",
            user_agent="Mozilla/5.0",
            error_message="token_expired",
            details={"token_preview": "abcdefgh", "attempt_count": 2},
        )

        # Assert
        assert result == Success(value=None)
        entries = (await audit.query(subject_id=subject_id)).value
        assert len(entries) == 1
        entry = entries[0]
        assert entry["action"] == "verification_failed"
        assert entry["subject_id"] == str(subject_id)
        assert entry["token_id"] == str(token_id)
        assert entry["success"] is False
        assert entry["source_ip"] == "203.0.113.7"
        assert entry["error_message"] == "token_expired"
        assert entry["details"] == {"token_preview": "abcdefgh", "attempt_count": 2}
        assert entry["occurred_at"] == clock().isoformat()

    async def test_hostile_text_is_sanitized(self, audit):
        subject_id = uuid7()

        await audit.record(
            action=AuditAction.VERIFICATION_ATTEMPT,
            subject_id=subject_id,
            user_agent="<script>x</script>\r\nX-Forged: 1" + chr(0x202E),
            details={"email": "<b>a@example.com</b>"},
        )

        entry = (await audit.query(subject_id=subject_id)).value[0]
        assert entry["user_agent"] == "&lt;script&gt;x&lt;/script&gt; X-Forged: 1"
        assert entry["details"] == {"email": "&lt;b&gt;a@example.com&lt;/b&gt;"}

    async def test_long_user_agent_truncated(self, audit):
        subject_id = uuid7()

        await audit.record(
            action=AuditAction.VERIFICATION_ATTEMPT,
            subject_id=subject_id,
            user_agent="U" * 2000,
        )

        entry = (await audit.query(subject_id=subject_id)).value[0]
        assert entry["user_agent"] == "U" * 500

    async def test_unexpected_error_discards_pending_entry(self, audit, monkeypatch):
        # Arrange
        subject_id = uuid7()
        real_commit = audit.session.commit

        async def crashing_commit():
            raise RuntimeError("serializer crashed")

        monkeypatch.setattr(audit.session, "commit", crashing_commit)

        # Act
        failed = await audit.record(
            action=AuditAction.VERIFICATION_ATTEMPT, subject_id=subject_id
        )
        monkeypatch.setattr(audit.session, "commit", real_commit)
        recorded = await audit.record(
            action=AuditAction.VERIFICATION_FAILED, subject_id=subject_id, success=False
        )

        # Assert
        assert isinstance(failed, Failure)
        assert failed.error.code == ErrorCode.AUDIT_RECORD_FAILED
        assert failed.error.details["error_type"] == "RuntimeError"
        assert recorded == Success(value=None)
        entries = (await audit.query(subject_id=subject_id)).value
        assert [e["action"] for e in entries] == ["verification_failed"]


@pytest.mark.integration
class TestQuery:
    """Test filtered reads."""

    async def test_filters_and_ordering(self, audit, clock):
        subject_id = uuid7()
        start = clock()
        await audit.record(action=AuditAction.TOKEN_CREATED, subject_id=subject_id)
        clock.advance(minutes=1)
        await audit.record(
            action=AuditAction.VERIFICATION_FAILED, subject_id=subject_id, success=False
        )
        clock.advance(minutes=1)
        await audit.record(action=AuditAction.VERIFICATION_SUCCESS, subject_id=subject_id)
        await audit.record(action=AuditAction.TOKEN_CREATED, subject_id=uuid7())

        newest_first = (await audit.query(subject_id=subject_id)).value
        failures = (await audit.query(subject_id=subject_id, success=False)).value
        created = (
            await audit.query(subject_id=subject_id, action=AuditAction.TOKEN_CREATED)
        ).value
        windowed = (
            await audit.query(
                subject_id=subject_id,
                start_date=start + timedelta(seconds=30),
                end_date=start + timedelta(seconds=90),
            )
        ).value

        assert [e["action"] for e in newest_first] == [
            "verification_success",
            "verification_failed",
            "token_created",
        ]
        assert [e["action"] for e in failures] == ["verification_failed"]
        assert [e["action"] for e in created] == ["token_created"]
        assert [e["action"] for e in windowed] == ["verification_failed"]

    async def test_limit(self, audit):
        subject_id = uuid7()
        for _ in range(5):
            await audit.record(action=AuditAction.RESEND_BLOCKED, subject_id=subject_id)

        entries = (await audit.query(subject_id=subject_id, limit=2)).value

        assert len(entries) == 2
