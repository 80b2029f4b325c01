"""Verifications resource router.

Endpoints:
    POST /api/v1/verifications/resend              - Send a new verification email
    POST /api/v1/verifications/complete            - Redeem a verification token
    GET  /api/v1/verifications/status/{subject_id} - Verification status
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from verimail.application.commands import (
    CompleteVerification,
    ResendVerification,
)
from verimail.application.queries import (
    GetVerificationStatus,
    GetVerificationStatusHandler,
)
from verimail.application.queries.handlers.get_verification_status_handler import (
    GetVerificationStatusError,
)
from verimail.application.services import VerificationOrchestrator
from verimail.core.constants import TOKEN_MAX_LENGTH
from verimail.core.container import (
    get_verification_orchestrator,
    get_verification_status_handler,
)
from verimail.core.result import Failure, Success
from verimail.presentation.routers.api.v1.errors import (
    ErrorResponseBuilder,
    ProblemDetails,
)
from verimail.schemas.verification_schemas import (
    CompleteVerificationRequest,
    CompleteVerificationResponse,
    ResendVerificationRequest,
    ResendVerificationResponse,
    VerificationStatusResponse,
)

router = APIRouter(prefix="/verifications", tags=["Verifications"])


def _client_ip(request: Request) -> str | None:
    return request.client.host if request.client else None


@router.post(
    "/resend",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=ResendVerificationResponse,
    responses={
        404: {"description": "No account for this email", "model": ProblemDetails},
        409: {"description": "Email already verified", "model": ProblemDetails},
        422: {"description": "Invalid email address", "model": ProblemDetails},
        429: {"description": "Too many resends", "model": ProblemDetails},
        502: {"description": "Mail delivery failed", "model": ProblemDetails},
        503: {"description": "Storage unavailable", "model": ProblemDetails},
    },
    summary="Resend verification email",
    description="Invalidate any outstanding link and email a new one, subject to rate limits.",
)
async def resend_verification(
    request: Request,
    data: ResendVerificationRequest,
    orchestrator: VerificationOrchestrator = Depends(get_verification_orchestrator),
) -> ResendVerificationResponse | JSONResponse:
    """Resend the verification email.

    POST /api/v1/verifications/resend → 202 Accepted
    """
    command = ResendVerification(
        email=data.email,
        source_ip=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )

    match await orchestrator.resend(command):
        case Success(value=receipt):
            return ResendVerificationResponse(
                remaining_attempts=receipt.remaining_attempts,
                expires_at=receipt.expires_at,
            )
        case Failure(error=error):
            return ErrorResponseBuilder.from_verification_error(error, request)


@router.post(
    "/complete",
    status_code=status.HTTP_200_OK,
    response_model=CompleteVerificationResponse,
    responses={
        400: {"description": "Invalid or expired link", "model": ProblemDetails},
    },
    summary="Complete email verification",
    description="Redeem the token from a verification email.",
)
async def complete_verification(
    request: Request,
    data: CompleteVerificationRequest,
    orchestrator: VerificationOrchestrator = Depends(get_verification_orchestrator),
) -> CompleteVerificationResponse | JSONResponse:
    """Complete verification.

    POST /api/v1/verifications/complete → 200 OK

    Every failure (unknown, expired, used, superseded, malformed) returns the
    same 400 response.
    """
    command = CompleteVerification(
        # Longer input is malformed either way; bound what reaches audit and logs.
        token=data.token[: TOKEN_MAX_LENGTH + 1],
        source_ip=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )

    match await orchestrator.complete(command):
        case Success(value=subject_id):
            return CompleteVerificationResponse(subject_id=subject_id)
        case Failure(error=error):
            return ErrorResponseBuilder.from_verification_error(error, request)


@router.get(
    "/status/{subject_id}",
    response_model=VerificationStatusResponse,
    responses={
        404: {"description": "Subject not found", "model": ProblemDetails},
        503: {"description": "Storage unavailable", "model": ProblemDetails},
    },
    summary="Get verification status",
)
async def get_verification_status(
    subject_id: UUID,
    handler: GetVerificationStatusHandler = Depends(get_verification_status_handler),
) -> VerificationStatusResponse:
    """Get verification status of a subject."""
    match await handler.handle(GetVerificationStatus(subject_id=subject_id)):
        case Success(value=result):
            return VerificationStatusResponse(
                subject_id=result.subject_id,
                is_verified=result.is_verified,
                confirmed_at=result.confirmed_at,
                has_valid_token=result.has_valid_token,
                token_expires_at=result.token_expires_at,
                resend_attempts_remaining=result.resend_attempts_remaining,
                tokens_issued_in_window=result.tokens_issued_in_window,
                can_resend=result.can_resend,
            )
        case Failure(error=GetVerificationStatusError.SUBJECT_NOT_FOUND):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found"
            )
        case Failure():
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Verification status is temporarily unavailable",
            )
