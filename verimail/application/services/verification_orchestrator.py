"""Verification orchestrator.

Coordinates the token store, rate limiters, identity store, mail sender
and audit trail for the three verification flows.

Resend flow:
1. Validate email syntax
2. Per-IP rate limit (when the client IP is known)
3. Look up the subject (not found / already verified)
4. Per-subject rate limit (denied: audit resend_blocked, store untouched)
5. Token churn cap: tokens issued in the window, delivered or not
6. Issue a new token, superseding the previous one
7. Send the verification email (on failure the token stays valid and the
   per-subject reservation is released)
8. Audit the outcome

Complete flow:
1. Check token format before any I/O
2. Consume the token (at most once)
3. Mark the subject confirmed (only if not already confirmed)
4. Audit; every failure is collapsed into one generic error

Architecture:
- Application layer ONLY imports from domain and core
- Adapters are injected as protocols
- Audit failures go to the log side channel, never to the caller
"""

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass
from datetime import datetime, timedelta
from time import perf_counter
from typing import Any, TypeVar
from uuid import UUID

from verimail.application.commands.verification_commands import (
    CompleteVerification,
    IssueVerification,
    ResendVerification,
    RevokeVerification,
)
from verimail.application.services.verification_message import (
    build_verification_message,
)
from verimail.core.clock import Clock, utc_now
from verimail.core.constants import (
    GENERATION_METHOD_REGISTRATION,
    GENERATION_METHOD_RESEND,
    GENERIC_COMPLETE_FAILURE_MESSAGE,
    TOKEN_PREVIEW_LENGTH,
)
from verimail.core.enums import ErrorCode
from verimail.core.errors import DomainError
from verimail.core.result import Failure, Result, Success
from verimail.core.validation import validate_email, validate_token_format
from verimail.domain.enums import AuditAction, RateLimitScope, TokenType
from verimail.domain.errors import (
    MailError,
    StorageError,
    TokenConsumeError,
    VerificationError,
)
from verimail.domain.protocols import (
    AuditProtocol,
    IdentityStoreProtocol,
    IssuedToken,
    LoggerProtocol,
    MailSenderProtocol,
    RateLimitProtocol,
    VerificationTokenStoreProtocol,
)
from verimail.domain.value_objects import RateLimitDecision

T = TypeVar("T")


class UserAction:
    """Suggested next step returned with a failure."""

    CHECK_EMAIL = "check_email"
    REGISTER_NEW_ACCOUNT = "register_new_account"
    LOGIN_INSTEAD = "login_instead"
    TRY_AGAIN_LATER = "try_again_later"
    REQUEST_NEW_LINK = "request_new_link"


@dataclass(frozen=True, slots=True, kw_only=True)
class VerificationPolicy:
    """Tunables for the verification flows (built from Settings).

    Attributes:
        app_name: Product name used in emails.
        verification_url_base: Page the verification link points to.
        token_ttl: Token lifetime.
        token_max_attempts: Failed consume attempts recorded per token.
        token_churn_limit: Tokens issued per subject within the resend
            window, including those whose delivery failed.
        rate_limit_fail_open: Admit resends when a limiter is unavailable.
        complete_min_duration: Minimum duration of every complete call.
        store_timeout: Deadline for store, limiter and audit calls.
        mail_timeout: Deadline for mail delivery.
    """

    app_name: str
    verification_url_base: str
    token_ttl: timedelta = timedelta(hours=24)
    token_max_attempts: int = 3
    token_churn_limit: int = 6
    rate_limit_fail_open: bool = False
    complete_min_duration: timedelta = timedelta(milliseconds=250)
    store_timeout: timedelta = timedelta(seconds=5)
    mail_timeout: timedelta = timedelta(seconds=10)


@dataclass(frozen=True, slots=True, kw_only=True)
class ResendReceipt:
    """Successful resend.

    Attributes:
        token_id: Id of the newly issued token.
        expires_at: When the new token expires.
        remaining_attempts: Resends left in the current window.
        delivery_id: Mail provider message id.
    """

    token_id: UUID
    expires_at: datetime
    remaining_attempts: int
    delivery_id: str


def _unavailable() -> VerificationError:
    return VerificationError(
        code=ErrorCode.STORAGE_ERROR,
        message="The service is temporarily unavailable. Please try again shortly.",
        user_action=UserAction.TRY_AGAIN_LATER,
    )


def _retry_message(retry_after_seconds: int) -> str:
    minutes = max(1, -(-retry_after_seconds // 60))
    unit = "minute" if minutes == 1 else "minutes"
    return (
        "Too many verification emails requested. "
        f"Please try again in {minutes} {unit}."
    )


class VerificationOrchestrator:
    """Issue, resend and complete email verification.

    Follows hexagonal architecture:
    - Application layer (this service)
    - Domain protocols for every collaborator
    - Infrastructure adapters injected by the container
    """

    def __init__(
        self,
        *,
        token_store: VerificationTokenStoreProtocol,
        identity_store: IdentityStoreProtocol,
        subject_limiter: RateLimitProtocol,
        audit: AuditProtocol,
        mail_sender: MailSenderProtocol,
        logger: LoggerProtocol,
        policy: VerificationPolicy,
        ip_limiter: RateLimitProtocol | None = None,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize orchestrator with dependencies.

        Args:
            token_store: Verification token persistence.
            identity_store: User lookup and confirmation.
            subject_limiter: Per-subject resend limiter.
            audit: Audit trail (own session).
            mail_sender: Outbound mail.
            logger: Structured logger.
            policy: Verification tunables.
            ip_limiter: Optional per-IP resend limiter.
            clock: Source of the current UTC time.
        """
        self._token_store = token_store
        self._identity_store = identity_store
        self._subject_limiter = subject_limiter
        self._ip_limiter = ip_limiter
        self._audit_trail = audit
        self._mail_sender = mail_sender
        self._logger = logger
        self._policy = policy
        self._clock = clock

    # -------------------------------------------------------------------------
    # Issue
    # -------------------------------------------------------------------------
    async def issue_initial(
        self, cmd: IssueVerification
    ) -> Result[IssuedToken, VerificationError]:
        """Issue the first token for a newly registered subject.

        Returns:
            Success(IssuedToken) with the raw secret for the registration
            email, or Failure(VerificationError) with STORAGE_ERROR.
        """
        store_timeout, _ = self._deadlines(cmd.timeout_seconds)
        issued = await self._with_deadline(
            self._token_store.issue(
                cmd.subject_id,
                TokenType.EMAIL_VERIFICATION,
                self._policy.token_ttl,
                metadata={
                    "generation_method": GENERATION_METHOD_REGISTRATION,
                    "email": cmd.email,
                },
                issued_from_ip=cmd.source_ip,
                max_attempts=self._policy.token_max_attempts,
            ),
            store_timeout,
            self._timed_out("issue"),
        )
        match issued:
            case Failure(error=error):
                self._logger.error(
                    "verification_issue_failed",
                    subject_id=str(cmd.subject_id),
                    error_code=error.code.value,
                )
                return Failure(error=_unavailable())
            case Success(value=token):
                pass

        await self._audit(
            action=AuditAction.TOKEN_CREATED,
            subject_id=cmd.subject_id,
            token_id=token.token_id,
            source_ip=cmd.source_ip,
            user_agent=cmd.user_agent,
            details={
                "generation_method": GENERATION_METHOD_REGISTRATION,
                "expires_at": token.expires_at.isoformat(),
                "superseded_count": token.superseded_count,
            },
        )
        self._logger.info(
            "verification_token_issued",
            subject_id=str(cmd.subject_id),
            token_id=str(token.token_id),
        )
        return Success(value=token)

    # -------------------------------------------------------------------------
    # Resend
    # -------------------------------------------------------------------------
    async def resend(
        self, cmd: ResendVerification
    ) -> Result[ResendReceipt, VerificationError]:
        """Issue a new token and email it, subject to rate limits.

        Returns:
            Success(ResendReceipt) or Failure(VerificationError) with code
            INVALID_EMAIL, USER_NOT_FOUND, SUBJECT_ALREADY_VERIFIED,
            VERIFICATION_RATE_LIMITED, MAIL_DELIVERY_FAILED or STORAGE_ERROR.
        """
        store_timeout, mail_timeout = self._deadlines(cmd.timeout_seconds)
        match validate_email(cmd.email):
            case Failure(error=validation_error):
                return Failure(
                    error=VerificationError(
                        code=ErrorCode.INVALID_EMAIL,
                        message=validation_error.message,
                        user_action=UserAction.CHECK_EMAIL,
                    )
                )
            case Success(value=email):
                pass

        if self._ip_limiter is not None and cmd.source_ip:
            ip_check = await self._reserve(
                self._ip_limiter, cmd.source_ip, None, cmd, store_timeout
            )
            if isinstance(ip_check, Failure):
                return ip_check

        lookup = await self._with_deadline(
            self._identity_store.find_by_email(email),
            store_timeout,
            self._timed_out("find_by_email"),
        )
        match lookup:
            case Failure(error=error):
                self._logger.error("resend_lookup_failed", error_code=error.code.value)
                return Failure(error=_unavailable())
            case Success(value=None):
                return Failure(
                    error=VerificationError(
                        code=ErrorCode.USER_NOT_FOUND,
                        message="No account found with this email address. Please register first.",
                        user_action=UserAction.REGISTER_NEW_ACCOUNT,
                    )
                )
            case Success(value=subject) if subject.is_confirmed:
                return Failure(
                    error=VerificationError(
                        code=ErrorCode.SUBJECT_ALREADY_VERIFIED,
                        message="This email address is already verified. You can log in.",
                        user_action=UserAction.LOGIN_INSTEAD,
                    )
                )
            case Success(value=subject):
                pass

        subject_check = await self._reserve(
            self._subject_limiter, str(subject.id), subject.id, cmd, store_timeout
        )
        match subject_check:
            case Failure():
                return subject_check
            case Success(value=decision):
                pass

        issued_count = await self._issued_in_window(subject.id, store_timeout)
        if issued_count is not None and issued_count >= self._policy.token_churn_limit:
            # Released reservations do not count, issued tokens do.
            await self._release(decision, store_timeout)
            return await self._blocked(
                scope=RateLimitScope.TOKEN_CHURN.value,
                limit=self._policy.token_churn_limit,
                retry_after_seconds=int(
                    self._subject_limiter.rule.window.total_seconds()
                ),
                subject_id=subject.id,
                cmd=cmd,
            )
        resend_iteration = None if issued_count is None else issued_count + 1

        issued = await self._with_deadline(
            self._token_store.issue(
                subject.id,
                TokenType.EMAIL_VERIFICATION,
                self._policy.token_ttl,
                metadata={
                    "generation_method": GENERATION_METHOD_RESEND,
                    "resend_iteration": resend_iteration,
                    "email": subject.email,
                },
                issued_from_ip=cmd.source_ip,
                max_attempts=self._policy.token_max_attempts,
            ),
            store_timeout,
            self._timed_out("issue"),
        )
        match issued:
            case Failure(error=error):
                self._logger.error(
                    "resend_issue_failed",
                    subject_id=str(subject.id),
                    error_code=error.code.value,
                )
                await self._release(decision, store_timeout)
                return Failure(error=_unavailable())
            case Success(value=token):
                pass

        await self._audit(
            action=AuditAction.TOKEN_CREATED,
            subject_id=subject.id,
            token_id=token.token_id,
            source_ip=cmd.source_ip,
            user_agent=cmd.user_agent,
            details={
                "generation_method": GENERATION_METHOD_RESEND,
                "resend_iteration": resend_iteration,
                "expires_at": token.expires_at.isoformat(),
                "superseded_count": token.superseded_count,
            },
        )

        message = build_verification_message(
            app_name=self._policy.app_name,
            base_url=self._policy.verification_url_base,
            token=token.secret,
            expires_in_hours=int(self._policy.token_ttl.total_seconds() // 3600),
        )
        sent = await self._with_deadline(
            self._mail_sender.send(
                to=subject.email,
                subject=message.subject,
                html_body=message.html_body,
                text_body=message.text_body,
            ),
            mail_timeout,
            MailError(
                code=ErrorCode.MAIL_DELIVERY_FAILED,
                message="Mail delivery timed out",
            ),
        )
        match sent:
            case Failure(error=mail_error):
                await self._release(decision, store_timeout)
                await self._audit(
                    action=AuditAction.VERIFICATION_EMAIL_FAILED,
                    subject_id=subject.id,
                    success=False,
                    token_id=token.token_id,
                    source_ip=cmd.source_ip,
                    user_agent=cmd.user_agent,
                    error_message=mail_error.message,
                    details={"resend_iteration": resend_iteration},
                )
                self._logger.warning(
                    "verification_email_failed",
                    subject_id=str(subject.id),
                    token_id=str(token.token_id),
                )
                return Failure(
                    error=VerificationError(
                        code=ErrorCode.MAIL_DELIVERY_FAILED,
                        message="We could not send the verification email. Please try again shortly.",
                        user_action=UserAction.TRY_AGAIN_LATER,
                    )
                )
            case Success(value=delivery_id):
                pass

        await self._audit(
            action=AuditAction.VERIFICATION_EMAIL_SENT,
            subject_id=subject.id,
            token_id=token.token_id,
            source_ip=cmd.source_ip,
            user_agent=cmd.user_agent,
            details={
                "delivery_id": delivery_id,
                "email": subject.email,
                "resend_iteration": resend_iteration,
            },
        )
        self._logger.info(
            "verification_email_resent",
            subject_id=str(subject.id),
            token_id=str(token.token_id),
            remaining_attempts=decision.remaining if decision else None,
        )
        return Success(
            value=ResendReceipt(
                token_id=token.token_id,
                expires_at=token.expires_at,
                remaining_attempts=decision.remaining
                if decision
                else self._subject_limiter.rule.limit,
                delivery_id=delivery_id,
            )
        )

    # -------------------------------------------------------------------------
    # Complete
    # -------------------------------------------------------------------------
    async def complete(self, cmd: CompleteVerification) -> Result[UUID, VerificationError]:
        """Redeem a verification token.

        Every call takes at least ``complete_min_duration`` so that failure
        reasons cannot be told apart by timing.

        Returns:
            Success(subject_id) or Failure(VerificationError) with code
            TOKEN_INVALID and a generic message, whatever the reason.
        """
        started = perf_counter()
        outcome = await self._complete(cmd)
        remaining = self._policy.complete_min_duration.total_seconds() - (
            perf_counter() - started
        )
        if remaining > 0:
            await asyncio.sleep(remaining)
        return outcome

    async def _complete(self, cmd: CompleteVerification) -> Result[UUID, VerificationError]:
        store_timeout, _ = self._deadlines(cmd.timeout_seconds)
        token_preview = cmd.token[:TOKEN_PREVIEW_LENGTH]
        await self._audit(
            action=AuditAction.VERIFICATION_ATTEMPT,
            source_ip=cmd.source_ip,
            user_agent=cmd.user_agent,
            details={"token_preview": token_preview},
        )

        subject_id: UUID | None = None
        token_id: UUID | None = None
        details: dict[str, Any] = {"token_preview": token_preview}

        if isinstance(validate_token_format(cmd.token), Failure):
            reason = ErrorCode.INVALID_TOKEN_FORMAT
        else:
            consumed = await self._with_deadline(
                self._token_store.consume(cmd.token),
                store_timeout,
                self._timed_out("consume"),
            )
            match consumed:
                case Success(value=token):
                    confirmed = await self._confirm(
                        token.subject_id, token.id, store_timeout
                    )
                    if confirmed:
                        await self._audit(
                            action=AuditAction.VERIFICATION_SUCCESS,
                            subject_id=token.subject_id,
                            token_id=token.id,
                            source_ip=cmd.source_ip,
                            user_agent=cmd.user_agent,
                            details={"generation_method": token.metadata.get("generation_method")},
                        )
                        self._logger.info(
                            "verification_completed",
                            subject_id=str(token.subject_id),
                            token_id=str(token.id),
                        )
                        return Success(value=token.subject_id)
                    reason = ErrorCode.STORAGE_ERROR
                    subject_id, token_id = token.subject_id, token.id
                case Failure(error=TokenConsumeError() as consume_error):
                    reason = consume_error.code
                    extra = consume_error.details or {}
                    subject_id = UUID(extra["subject_id"]) if "subject_id" in extra else None
                    token_id = UUID(extra["token_id"]) if "token_id" in extra else None
                    if "attempt_count" in extra:
                        details["attempt_count"] = extra["attempt_count"]
                case Failure(error=error):
                    reason = error.code

        await self._audit(
            action=AuditAction.VERIFICATION_FAILED,
            subject_id=subject_id,
            success=False,
            token_id=token_id,
            source_ip=cmd.source_ip,
            user_agent=cmd.user_agent,
            error_message=reason.value,
            details=details,
        )
        self._logger.info(
            "verification_failed",
            reason=reason.value,
            token_preview=token_preview,
        )
        return Failure(
            error=VerificationError(
                code=ErrorCode.TOKEN_INVALID,
                message=GENERIC_COMPLETE_FAILURE_MESSAGE,
                user_action=UserAction.REQUEST_NEW_LINK,
            )
        )

    async def _confirm(
        self, subject_id: UUID, token_id: UUID, store_timeout: timedelta
    ) -> bool:
        """Mark the subject confirmed; False only when the store failed."""
        result = await self._with_deadline(
            self._identity_store.mark_confirmed(subject_id, self._clock()),
            store_timeout,
            self._timed_out("mark_confirmed"),
        )
        match result:
            case Success(value=False):
                self._logger.info(
                    "subject_already_confirmed", subject_id=str(subject_id)
                )
                return True
            case Success():
                return True
            case Failure(error=error):
                # The token is spent; the subject can request a new one.
                self._logger.critical(
                    "token_consumed_subject_not_confirmed",
                    subject_id=str(subject_id),
                    token_id=str(token_id),
                    error_code=error.code.value,
                )
                return False

    # -------------------------------------------------------------------------
    # Revoke
    # -------------------------------------------------------------------------
    async def revoke(self, cmd: RevokeVerification) -> Result[int, VerificationError]:
        """Invalidate the subject's active token.

        Returns:
            Success(number of tokens revoked, 0 or 1).
        """
        store_timeout, _ = self._deadlines(cmd.timeout_seconds)
        result = await self._with_deadline(
            self._token_store.revoke(cmd.subject_id, cmd.token_type),
            store_timeout,
            self._timed_out("revoke"),
        )
        match result:
            case Failure(error=error):
                self._logger.error(
                    "verification_revoke_failed",
                    subject_id=str(cmd.subject_id),
                    error_code=error.code.value,
                )
                return Failure(error=_unavailable())
            case Success(value=revoked):
                pass

        await self._audit(
            action=AuditAction.TOKEN_REVOKED,
            subject_id=cmd.subject_id,
            details={
                "token_type": cmd.token_type.value,
                "revoked_count": revoked,
                "reason": cmd.reason or "unspecified",
            },
        )
        return Success(value=revoked)

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------
    async def _reserve(
        self,
        limiter: RateLimitProtocol,
        key: str,
        subject_id: UUID | None,
        cmd: ResendVerification,
        store_timeout: timedelta,
    ) -> Result[RateLimitDecision | None, VerificationError]:
        """Reserve one attempt; Success(None) means admitted by fail-open."""
        scope = limiter.rule.scope.value
        checked = await self._with_deadline(
            limiter.check_and_reserve(key),
            store_timeout,
            self._timed_out("rate_limit"),
        )
        match checked:
            case Failure(error=error):
                if self._policy.rate_limit_fail_open:
                    self._logger.warning(
                        "rate_limit_unavailable_fail_open",
                        scope=scope,
                        error_code=error.code.value,
                    )
                    return Success(value=None)
                self._logger.error(
                    "rate_limit_unavailable_fail_closed",
                    scope=scope,
                    error_code=error.code.value,
                )
                return Failure(error=_unavailable())
            case Success(value=decision) if decision.allowed:
                return Success(value=decision)
            case Success(value=decision):
                pass

        return await self._blocked(
            scope=scope,
            limit=decision.limit,
            retry_after_seconds=decision.retry_after_seconds,
            subject_id=subject_id,
            cmd=cmd,
        )

    async def _blocked(
        self,
        *,
        scope: str,
        limit: int,
        retry_after_seconds: int,
        subject_id: UUID | None,
        cmd: ResendVerification,
    ) -> Failure[VerificationError]:
        """Audit a denied resend and build the RateLimited failure."""
        await self._audit(
            action=AuditAction.RESEND_BLOCKED,
            subject_id=subject_id,
            success=False,
            source_ip=cmd.source_ip,
            user_agent=cmd.user_agent,
            error_message="rate_limited",
            details={
                "scope": scope,
                "limit": limit,
                "retry_after_seconds": retry_after_seconds,
            },
        )
        self._logger.info(
            "resend_rate_limited",
            scope=scope,
            retry_after=retry_after_seconds,
        )
        return Failure(
            error=VerificationError(
                code=ErrorCode.VERIFICATION_RATE_LIMITED,
                message=_retry_message(retry_after_seconds),
                retry_after_seconds=retry_after_seconds,
                user_action=UserAction.TRY_AGAIN_LATER,
            )
        )

    async def _release(
        self, decision: RateLimitDecision | None, store_timeout: timedelta
    ) -> None:
        if decision is None or decision.reservation_id is None:
            return
        released = await self._with_deadline(
            self._subject_limiter.release(decision.reservation_id),
            store_timeout,
            self._timed_out("rate_limit_release"),
        )
        if isinstance(released, Failure):
            self._logger.warning(
                "rate_limit_release_failed",
                reservation_id=str(decision.reservation_id),
                error_code=released.error.code.value,
            )

    async def _issued_in_window(
        self, subject_id: UUID, store_timeout: timedelta
    ) -> int | None:
        """Tokens issued to the subject within the resend window (None if unknown)."""
        window_start = self._clock() - self._subject_limiter.rule.window
        counted = await self._with_deadline(
            self._token_store.count_issued_within_window(
                subject_id, TokenType.EMAIL_VERIFICATION, window_start
            ),
            store_timeout,
            self._timed_out("count_issued_within_window"),
        )
        match counted:
            case Success(value=count):
                return count
            case Failure(error=error):
                self._logger.warning(
                    "issued_count_unavailable", error_code=error.code.value
                )
                return None

    async def _audit(self, **entry: Any) -> None:
        """Record an audit entry; failures are logged, never raised."""
        recorded = await self._with_deadline(
            self._audit_trail.record(**entry),
            self._policy.store_timeout,
            StorageError(
                code=ErrorCode.AUDIT_RECORD_FAILED,
                message="Audit write timed out",
                operation="audit_record",
            ),
        )
        match recorded:
            case Failure(error=error):
                self._logger.error(
                    "audit_write_failed",
                    action=entry["action"].value,
                    error_code=error.code.value,
                    error_message=error.message,
                )
            case Success():
                pass

    def _deadlines(self, timeout_seconds: float | None) -> tuple[timedelta, timedelta]:
        """Store and mail deadlines for one call."""
        if timeout_seconds is None:
            return self._policy.store_timeout, self._policy.mail_timeout
        override = timedelta(seconds=timeout_seconds)
        return override, override

    @staticmethod
    def _timed_out(operation: str) -> StorageError:
        return StorageError(
            code=ErrorCode.STORAGE_TIMEOUT,
            message=f"{operation} exceeded its deadline and may have been applied",
            operation=operation,
        )

    @staticmethod
    async def _with_deadline(
        operation: Awaitable[Result[T, Any]],
        timeout: timedelta,
        on_timeout: DomainError,
    ) -> Result[T, Any]:
        """Await ``operation``, converting a missed deadline into a Failure."""
        try:
            async with asyncio.timeout(timeout.total_seconds()):
                return await operation
        except TimeoutError:
            return Failure(error=on_timeout)
