"""Integration tests for VerificationTokenRepository.

Tests cover:
- Issue stores only the hash and supersedes the previous active token
- Consume: success once, already used, superseded, expired (exact boundary)
- Concurrent consumers: exactly one wins
- Window counting, find_active, revoke, purge

Architecture:
- Real SQLite database per test (file-backed, aiosqlite)
- Injected clock for exact instants
"""

import asyncio
from datetime import timedelta

import pytest
from sqlalchemy import select

from verimail.core.enums import ErrorCode
from verimail.core.result import Failure, Success
from verimail.domain.enums import InvalidationReason, TokenType
from verimail.infrastructure.persistence.models import VerificationTokenModel
from verimail.infrastructure.persistence.repositories import (
    VerificationTokenRepository,
)

TTL = timedelta(hours=24)
EMAIL = TokenType.EMAIL_VERIFICATION


@pytest.fixture
def store(session, generator, clock):
    return VerificationTokenRepository(session, generator, clock=clock)


@pytest.fixture
async def subject_id(create_user):
    return await create_user("alice@example.com")


async def load_rows(session_factory, subject_id):
    async with session_factory() as session:
        result = await session.execute(
            select(VerificationTokenModel)
            .where(VerificationTokenModel.subject_id == subject_id)
            .order_by(VerificationTokenModel.issued_at, VerificationTokenModel.id)
        )
        return list(result.scalars().all())


@pytest.mark.integration
class TestIssue:
    """Test token issuance."""

    async def test_issue_persists_hash_not_secret(
        self, store, subject_id, session_factory, generator, clock
    ):
        # Act
        result = await store.issue(
            subject_id,
            EMAIL,
            TTL,
            metadata={"generation_method": "registration"},
            issued_from_ip="203.0.113.7",
        )

        # Assert
        assert isinstance(result, Success)
        issued = result.value
        assert len(issued.secret) >= 43
        assert issued.expires_at == clock() + TTL
        assert issued.superseded_count == 0
        rows = await load_rows(session_factory, subject_id)
        assert len(rows) == 1
        row = rows[0]
        assert row.id == issued.token_id
        assert row.token_hash == generator.hash(issued.secret)
        assert row.token_hash != issued.secret
        assert row.issued_at == clock()
        assert row.issued_from_ip == "203.0.113.7"
        assert row.attempt_count == 0
        assert row.token_metadata == {"generation_method": "registration"}

    async def test_reissue_supersedes_previous_token(
        self, store, subject_id, session_factory, clock
    ):
        # Arrange
        first = (await store.issue(subject_id, EMAIL, TTL)).value
        clock.advance(minutes=5)

        # Act
        second = (await store.issue(subject_id, EMAIL, TTL)).value

        # Assert
        assert second.superseded_count == 1
        rows = await load_rows(session_factory, subject_id)
        active = [r for r in rows if r.invalidated_at is None and r.used_at is None]
        assert [r.id for r in active] == [second.token_id]
        old = next(r for r in rows if r.id == first.token_id)
        assert old.invalidation_reason == InvalidationReason.SUPERSEDED.value
        assert old.invalidated_at == clock()

        consumed = await store.consume(first.secret)
        assert isinstance(consumed, Failure)
        assert consumed.error.code == ErrorCode.TOKEN_INVALIDATED

    async def test_token_types_are_independent(self, store, subject_id):
        await store.issue(subject_id, EMAIL, TTL)

        reset = await store.issue(subject_id, TokenType.PASSWORD_RESET, TTL)

        assert reset.value.superseded_count == 0

    async def test_concurrent_issue_leaves_one_active_token(
        self, subject_id, session_factory, generator, clock
    ):
        async def issue_once():
            async with session_factory() as session:
                store = VerificationTokenRepository(session, generator, clock=clock)
                return await store.issue(subject_id, EMAIL, TTL)

        results = await asyncio.gather(*(issue_once() for _ in range(4)))

        assert all(isinstance(r, Success) for r in results)
        rows = await load_rows(session_factory, subject_id)
        active = [r for r in rows if r.invalidated_at is None]
        assert len(active) == 1


@pytest.mark.integration
class TestConsume:
    """Test single-use consumption."""

    async def test_consume_once(self, store, subject_id, clock):
        issued = (await store.issue(subject_id, EMAIL, TTL)).value
        clock.advance(hours=1)

        result = await store.consume(issued.secret)

        assert isinstance(result, Success)
        assert result.value.id == issued.token_id
        assert result.value.subject_id == subject_id
        assert result.value.used_at == clock()

    async def test_second_consume_reports_already_used(
        self, store, subject_id, session_factory
    ):
        issued = (await store.issue(subject_id, EMAIL, TTL)).value
        await store.consume(issued.secret)

        result = await store.consume(issued.secret)

        assert isinstance(result, Failure)
        assert result.error.code == ErrorCode.TOKEN_ALREADY_USED
        assert result.error.details["token_id"] == str(issued.token_id)
        assert result.error.details["subject_id"] == str(subject_id)
        assert result.error.details["attempt_count"] == 1
        rows = await load_rows(session_factory, subject_id)
        assert rows[0].attempt_count == 1

    async def test_used_token_reads_as_used_after_expiry(
        self, store, subject_id, clock
    ):
        issued = (await store.issue(subject_id, EMAIL, TTL)).value
        await store.consume(issued.secret)
        clock.advance(hours=48)

        result = await store.consume(issued.secret)

        assert result.error.code == ErrorCode.TOKEN_ALREADY_USED

    async def test_unknown_token(self, store, subject_id, generator):
        await store.issue(subject_id, EMAIL, TTL)

        result = await store.consume(generator.generate())

        assert isinstance(result, Failure)
        assert result.error.code == ErrorCode.TOKEN_NOT_FOUND
        assert result.error.details is None

    async def test_expired_exactly_at_expires_at(self, store, subject_id, clock):
        issued = (await store.issue(subject_id, EMAIL, TTL)).value
        clock.set(issued.expires_at)

        result = await store.consume(issued.secret)

        assert isinstance(result, Failure)
        assert result.error.code == ErrorCode.TOKEN_EXPIRED

    async def test_valid_one_millisecond_before_expiry(
        self, store, subject_id, clock
    ):
        issued = (await store.issue(subject_id, EMAIL, TTL)).value
        clock.set(issued.expires_at - timedelta(milliseconds=1))

        result = await store.consume(issued.secret)

        assert isinstance(result, Success)

    async def test_failed_attempts_accumulate(
        self, store, subject_id, clock, session_factory
    ):
        issued = (await store.issue(subject_id, EMAIL, TTL)).value
        clock.advance(hours=25)

        for expected in (1, 2, 3):
            result = await store.consume(issued.secret)
            assert result.error.details["attempt_count"] == expected

        rows = await load_rows(session_factory, subject_id)
        assert rows[0].attempt_count == 3
        assert rows[0].used_at is None

    async def test_concurrent_consumers_have_one_winner(
        self, store, subject_id, session_factory, generator, clock
    ):
        # Arrange
        issued = (await store.issue(subject_id, EMAIL, TTL)).value

        async def consume_once():
            async with session_factory() as session:
                repo = VerificationTokenRepository(session, generator, clock=clock)
                return await repo.consume(issued.secret)

        # Act
        results = await asyncio.gather(*(consume_once() for _ in range(5)))

        # Assert
        successes = [r for r in results if isinstance(r, Success)]
        failures = [r for r in results if isinstance(r, Failure)]
        assert len(successes) == 1
        assert len(failures) == 4
        assert {f.error.code for f in failures} == {ErrorCode.TOKEN_ALREADY_USED}


@pytest.mark.integration
class TestQueries:
    """Test window counting, active lookup, revoke and purge."""

    async def test_count_issued_within_window_is_exclusive(
        self, store, subject_id, clock
    ):
        start = clock()
        await store.issue(subject_id, EMAIL, TTL)
        clock.advance(minutes=10)
        await store.issue(subject_id, EMAIL, TTL)
        clock.advance(minutes=10)
        await store.issue(subject_id, EMAIL, TTL)

        all_three = await store.count_issued_within_window(
            subject_id, EMAIL, start - timedelta(seconds=1)
        )
        excluding_first = await store.count_issued_within_window(
            subject_id, EMAIL, start
        )

        assert all_three == Success(value=3)
        assert excluding_first == Success(value=2)

    async def test_find_active(self, store, subject_id, clock):
        assert await store.find_active(subject_id, EMAIL) == Success(value=None)
        issued = (await store.issue(subject_id, EMAIL, TTL)).value

        active = await store.find_active(subject_id, EMAIL)

        assert active.value.id == issued.token_id
        assert active.value.is_valid(clock())
        clock.set(issued.expires_at)
        assert await store.find_active(subject_id, EMAIL) == Success(value=None)

    async def test_revoke(self, store, subject_id):
        issued = (await store.issue(subject_id, EMAIL, TTL)).value

        assert await store.revoke(subject_id, EMAIL) == Success(value=1)
        assert await store.revoke(subject_id, EMAIL) == Success(value=0)

        result = await store.consume(issued.secret)
        assert result.error.code == ErrorCode.TOKEN_INVALIDATED
        assert result.error.details["reason"] == "revoked"

    async def test_purge_expired(self, store, subject_id, clock, session_factory):
        old = (await store.issue(subject_id, EMAIL, timedelta(hours=1))).value
        clock.advance(days=10)
        fresh = (await store.issue(subject_id, EMAIL, TTL)).value

        result = await store.purge_expired(clock() - timedelta(days=7))

        assert result == Success(value=1)
        rows = await load_rows(session_factory, subject_id)
        assert [r.id for r in rows] == [fresh.token_id]
        assert old.token_id not in {r.id for r in rows}
