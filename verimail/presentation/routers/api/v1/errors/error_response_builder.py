"""Error response builder for RFC 7807 Problem Details.

Converts VerificationError results into Problem Details responses. Status
codes are chosen from the error code, never from message text.

Exports:
    ErrorResponseBuilder: Utility class for building RFC 7807 responses
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse

from verimail.core.config import settings
from verimail.core.enums import ErrorCode
from verimail.domain.errors import VerificationError
from verimail.presentation.routers.api.middleware.trace_middleware import (
    get_trace_id,
)
from verimail.presentation.routers.api.v1.errors.problem_details import (
    ProblemDetails,
)

_STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.INVALID_EMAIL: 422,
    ErrorCode.USER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.SUBJECT_ALREADY_VERIFIED: status.HTTP_409_CONFLICT,
    ErrorCode.VERIFICATION_RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorCode.MAIL_DELIVERY_FAILED: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.STORAGE_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.STORAGE_TIMEOUT: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.TOKEN_INVALID: status.HTTP_400_BAD_REQUEST,
}

_TITLE_BY_STATUS: dict[int, str] = {
    400: "Verification Failed",
    404: "Resource Not Found",
    409: "Resource Conflict",
    422: "Validation Failed",
    429: "Too Many Requests",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
}


class ErrorResponseBuilder:
    """Build RFC 7807 Problem Details error responses.

    Example:
        >>> match await orchestrator.resend(cmd):
        ...     case Failure(error=error):
        ...         return ErrorResponseBuilder.from_verification_error(error, request)
    """

    @staticmethod
    def from_verification_error(
        error: VerificationError, request: Request
    ) -> JSONResponse:
        """Convert VerificationError to an RFC 7807 JSON response.

        Rate-limited responses carry a ``Retry-After`` header.
        """
        status_code = ErrorResponseBuilder.get_status_code(error.code)
        problem = ProblemDetails(
            type=f"{settings.api_base_url}/errors/{error.code.value}",
            title=_TITLE_BY_STATUS.get(status_code, "Error"),
            status=status_code,
            detail=error.message,
            instance=str(request.url.path),
            trace_id=get_trace_id(),
            user_action=error.user_action,
            retry_after=error.retry_after_seconds,
        )

        headers = None
        if error.retry_after_seconds is not None:
            headers = {"Retry-After": str(error.retry_after_seconds)}

        return JSONResponse(
            status_code=status_code,
            content=problem.model_dump(exclude_none=True),
            headers=headers,
        )

    @staticmethod
    def get_status_code(code: ErrorCode) -> int:
        """Map error code to HTTP status code (500 for unmapped codes)."""
        return _STATUS_BY_CODE.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR)
