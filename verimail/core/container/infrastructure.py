"""Infrastructure dependency factories.

Application-scoped singletons for core infrastructure services:
- Database (PostgreSQL, SQLite in tests)
- Logging (structlog console)
- Email (stub/AWS SES)
- Token generation

Request-scoped dependencies for database sessions. The audit trail gets its
own session so an audit rollback never touches the token transaction.
"""

from functools import lru_cache
from typing import TYPE_CHECKING, AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from verimail.core.config import settings
from verimail.core.enums import Environment
from verimail.infrastructure.persistence.database import Database

if TYPE_CHECKING:
    from verimail.domain.protocols import (
        LoggerProtocol,
        MailSenderProtocol,
        TokenGeneratorProtocol,
    )


# ============================================================================
# Application-Scoped Dependencies (Singletons)
# ============================================================================


@lru_cache()
def get_database() -> Database:
    """Get database manager singleton (app-scoped).

    Use get_db_session() for per-request sessions.

    Returns:
        Database manager instance.
    """
    return Database(
        database_url=settings.database_url,
        echo=settings.db_echo,
    )


@lru_cache()
def get_logger() -> "LoggerProtocol":
    """Return the application-scoped logger singleton.

    Adapter selection is centralized here (composition root):
    - development: ConsoleAdapter (human-readable)
    - testing/ci/production: ConsoleAdapter (JSON)

    Returns:
        LoggerProtocol: Logger instance implementing the protocol.
    """
    from verimail.infrastructure.logging.console_adapter import ConsoleAdapter

    use_json = settings.environment != Environment.DEVELOPMENT
    return ConsoleAdapter(use_json=use_json, level=settings.log_level)


@lru_cache()
def get_mail_sender() -> "MailSenderProtocol":
    """Get mail sender singleton (app-scoped).

    Container owns factory logic - decides which adapter based on EMAIL_BACKEND:
        - 'stub': StubMailSender (logs instead of sending)
        - 'ses': SESMailSender (AWS SES)

    Returns:
        Mail sender implementing MailSenderProtocol.
    """
    from verimail.infrastructure.email import SESMailSender, StubMailSender

    if settings.email_backend == "ses":
        return SESMailSender(
            from_email=settings.ses_from_email,
            from_name=settings.ses_from_name,
            region=settings.aws_region,
            logger=get_logger(),
        )
    return StubMailSender(logger=get_logger())


@lru_cache()
def get_token_generator() -> "TokenGeneratorProtocol":
    """Get verification token generator singleton (app-scoped)."""
    from verimail.infrastructure.security import VerificationTokenGenerator

    return VerificationTokenGenerator()


# ============================================================================
# Request-Scoped Dependencies (Per-Request)
# ============================================================================


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session (request-scoped).

    Yields:
        Database session for request duration.

    Usage:
        @router.post("/resend")
        async def resend(session: AsyncSession = Depends(get_db_session)):
            ...
    """
    db = get_database()
    async with db.get_session() as session:
        yield session


async def get_audit_session() -> AsyncGenerator[AsyncSession, None]:
    """Get audit session (request-scoped, independent lifecycle).

    Separate from get_db_session() so audit entries persist regardless of
    what happens to the token transaction.

    Yields:
        Database session for audit operations only.
    """
    db = get_database()
    async with db.get_session() as session:
        yield session
