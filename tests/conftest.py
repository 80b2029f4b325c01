"""Pytest configuration.

Settings are loaded at import time, so required environment variables are
set before anything from verimail is imported.

Integration tests run the real repositories and adapters against a
file-backed SQLite database created per test (aiosqlite). Separate sessions
on the same file give real transaction isolation for concurrency tests.
"""

import os

os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("VERIFICATION_URL_BASE", "https://app.example.com/verify")
os.environ.setdefault("EMAIL_BACKEND", "stub")
os.environ.setdefault("ADMIN_API_KEY", "test-admin-key")

from datetime import UTC, datetime, timedelta  # noqa: E402
from unittest.mock import Mock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from verimail.infrastructure.persistence.database import Database  # noqa: E402
from verimail.infrastructure.persistence.models import UserModel  # noqa: E402
from verimail.infrastructure.security.token_generator import (  # noqa: E402
    VerificationTokenGenerator,
)


class FakeClock:
    """Settable UTC clock for exact boundary tests.

    Usage:
        clock = FakeClock(datetime(2026, 1, 1, tzinfo=UTC))
        clock.advance(minutes=30)
        now = clock()
    """

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now

    def set(self, value: datetime) -> None:
        self.now = value


# Pytest markers for different test types
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests with mocked dependencies")
    config.addinivalue_line(
        "markers", "integration: Integration tests with real database"
    )
    config.addinivalue_line("markers", "api: API tests through the FastAPI app")


@pytest.fixture
def clock() -> FakeClock:
    """Clock frozen at 2026-01-01 12:00:00 UTC."""
    return FakeClock(datetime(2026, 1, 1, 12, 0, 0, tzinfo=UTC))


@pytest.fixture
def logger() -> Mock:
    """Mock LoggerProtocol (structured calls are asserted on)."""
    return Mock()


@pytest.fixture
def generator() -> VerificationTokenGenerator:
    return VerificationTokenGenerator()


@pytest_asyncio.fixture
async def database(tmp_path):
    """Fresh file-backed SQLite database with all tables."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'verimail.db'}")
    await db.create_all()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def session(database):
    """Session on the per-test database."""
    async with database.async_session() as session:
        yield session


@pytest.fixture
def session_factory(database):
    """Factory for additional independent sessions (concurrency tests)."""
    return database.async_session


@pytest.fixture
def create_user(database):
    """Insert a user row and return its id.

    Usage:
        user_id = await create_user("alice@example.com")
        user_id = await create_user("bob@example.com", confirmed_at=now)
    """

    async def _create(email: str, confirmed_at: datetime | None = None):
        async with database.async_session() as session:
            user = UserModel(email=email.lower(), confirmed_at=confirmed_at)
            session.add(user)
            await session.commit()
            return user.id

    return _create
