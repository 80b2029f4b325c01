"""Verification dependency factories.

Request-scoped adapters, orchestrator and query handlers, wired from
settings. Every adapter shares the request session except the audit trail.
"""

from typing import TYPE_CHECKING

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from verimail.core.config import settings
from verimail.core.container.infrastructure import (
    get_audit_session,
    get_db_session,
    get_logger,
    get_mail_sender,
    get_token_generator,
)
from verimail.domain.enums import RateLimitScope
from verimail.domain.value_objects import SlidingWindowRule

if TYPE_CHECKING:
    from verimail.application.queries import (
        GetVerificationStatusHandler,
        ListVerificationAuditHandler,
    )
    from verimail.application.services import (
        CleanupService,
        VerificationOrchestrator,
        VerificationPolicy,
    )
    from verimail.domain.protocols import (
        AuditProtocol,
        IdentityStoreProtocol,
        RateLimitProtocol,
        VerificationTokenStoreProtocol,
    )


def get_subject_rule() -> SlidingWindowRule:
    """Per-subject resend rule (default 3 per 60 minutes)."""
    return SlidingWindowRule(
        limit=settings.resend_limit,
        window=settings.resend_window,
        scope=RateLimitScope.RESEND_SUBJECT,
    )


def get_ip_rule() -> SlidingWindowRule:
    """Per-IP resend rule (default 10 per 60 minutes)."""
    return SlidingWindowRule(
        limit=settings.resend_ip_limit,
        window=settings.resend_ip_window,
        scope=RateLimitScope.RESEND_IP,
    )


def get_verification_policy() -> "VerificationPolicy":
    """Build orchestrator tunables from settings."""
    from datetime import timedelta

    from verimail.application.services import VerificationPolicy

    return VerificationPolicy(
        app_name=settings.app_name,
        verification_url_base=settings.verification_url_base,
        token_ttl=settings.token_ttl,
        token_max_attempts=settings.token_max_attempts,
        token_churn_limit=settings.token_churn_limit,
        rate_limit_fail_open=settings.rate_limit_fail_open,
        complete_min_duration=timedelta(
            milliseconds=settings.complete_min_duration_ms
        ),
        store_timeout=timedelta(seconds=settings.store_timeout_seconds),
        mail_timeout=timedelta(seconds=settings.mail_timeout_seconds),
    )


# ============================================================================
# Adapters (Request-Scoped)
# ============================================================================


async def get_token_store(
    session: AsyncSession = Depends(get_db_session),
) -> "VerificationTokenStoreProtocol":
    """Get verification token store (request-scoped)."""
    from verimail.infrastructure.persistence.repositories import (
        VerificationTokenRepository,
    )

    return VerificationTokenRepository(
        session, get_token_generator(), token_bytes=settings.token_bytes
    )


async def get_identity_store(
    session: AsyncSession = Depends(get_db_session),
) -> "IdentityStoreProtocol":
    """Get identity store (request-scoped)."""
    from verimail.infrastructure.persistence.repositories import UserRepository

    return UserRepository(session)


async def get_subject_limiter(
    session: AsyncSession = Depends(get_db_session),
) -> "RateLimitProtocol":
    """Get per-subject resend limiter (request-scoped)."""
    from verimail.infrastructure.rate_limit import SlidingWindowRateLimiter

    return SlidingWindowRateLimiter(
        session=session, rule=get_subject_rule(), logger=get_logger()
    )


async def get_ip_limiter(
    session: AsyncSession = Depends(get_db_session),
) -> "RateLimitProtocol":
    """Get per-IP resend limiter (request-scoped)."""
    from verimail.infrastructure.rate_limit import SlidingWindowRateLimiter

    return SlidingWindowRateLimiter(
        session=session, rule=get_ip_rule(), logger=get_logger()
    )


async def get_audit(
    audit_session: AsyncSession = Depends(get_audit_session),
) -> "AuditProtocol":
    """Get audit trail adapter (request-scoped with separate session)."""
    from verimail.infrastructure.audit import SQLAlchemyAuditAdapter

    return SQLAlchemyAuditAdapter(audit_session)


# ============================================================================
# Orchestrator and Handlers (Request-Scoped)
# ============================================================================


async def get_verification_orchestrator(
    token_store: "VerificationTokenStoreProtocol" = Depends(get_token_store),
    identity_store: "IdentityStoreProtocol" = Depends(get_identity_store),
    subject_limiter: "RateLimitProtocol" = Depends(get_subject_limiter),
    ip_limiter: "RateLimitProtocol" = Depends(get_ip_limiter),
    audit: "AuditProtocol" = Depends(get_audit),
) -> "VerificationOrchestrator":
    """Get verification orchestrator (request-scoped).

    Returns:
        VerificationOrchestrator wired with request-scoped adapters.
    """
    from verimail.application.services import VerificationOrchestrator

    return VerificationOrchestrator(
        token_store=token_store,
        identity_store=identity_store,
        subject_limiter=subject_limiter,
        ip_limiter=ip_limiter,
        audit=audit,
        mail_sender=get_mail_sender(),
        logger=get_logger(),
        policy=get_verification_policy(),
    )


async def get_verification_status_handler(
    token_store: "VerificationTokenStoreProtocol" = Depends(get_token_store),
    identity_store: "IdentityStoreProtocol" = Depends(get_identity_store),
    subject_limiter: "RateLimitProtocol" = Depends(get_subject_limiter),
) -> "GetVerificationStatusHandler":
    """Get verification status handler (request-scoped)."""
    from verimail.application.queries import GetVerificationStatusHandler

    return GetVerificationStatusHandler(identity_store, token_store, subject_limiter)


async def get_list_verification_audit_handler(
    audit: "AuditProtocol" = Depends(get_audit),
) -> "ListVerificationAuditHandler":
    """Get verification audit trail handler (request-scoped)."""
    from verimail.application.queries import ListVerificationAuditHandler

    return ListVerificationAuditHandler(audit)


def build_cleanup_service(session: AsyncSession) -> "CleanupService":
    """Build a cleanup service on ``session`` (scheduled jobs, not requests)."""
    from verimail.application.services import CleanupService
    from verimail.infrastructure.persistence.repositories import (
        VerificationTokenRepository,
    )
    from verimail.infrastructure.rate_limit import SlidingWindowRateLimiter

    logger = get_logger()
    return CleanupService(
        token_store=VerificationTokenRepository(session, get_token_generator()),
        limiters=[
            SlidingWindowRateLimiter(
                session=session, rule=get_subject_rule(), logger=logger
            ),
            SlidingWindowRateLimiter(session=session, rule=get_ip_rule(), logger=logger),
        ],
        logger=logger,
        token_retention=settings.token_retention,
    )
