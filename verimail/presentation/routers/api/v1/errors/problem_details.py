"""RFC 7807 Problem Details for HTTP APIs.

RFC 7807: https://tools.ietf.org/html/rfc7807

Exports:
    ErrorDetail: Individual field-specific error
    ProblemDetails: RFC 7807 compliant error response schema
"""

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Individual field-specific error.

    Attributes:
        field: Name of the field with error
        code: Machine-readable error code
        message: Human-readable error message
    """

    field: str = Field(..., description="Field name")
    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")


class ProblemDetails(BaseModel):
    """RFC 7807 Problem Details for HTTP APIs.

    Attributes:
        type: URI reference identifying the problem type
        title: Short, human-readable summary of the problem type
        status: HTTP status code for this occurrence
        detail: Human-readable explanation specific to this occurrence
        instance: URI reference identifying the specific occurrence
        errors: Optional list of field-specific errors (for validation failures)
        trace_id: Optional request trace ID for debugging
        user_action: Optional suggested next step (extension member)
        retry_after: Optional seconds until retry may succeed (extension member)

    Examples:
        >>> problem = ProblemDetails(
        ...     type="https://api.example.com/errors/verification_rate_limited",
        ...     title="Too Many Requests",
        ...     status=429,
        ...     detail="Too many verification emails requested. Please try again in 30 minutes.",
        ...     instance="/api/v1/verifications/resend",
        ...     retry_after=1800,
        ...     user_action="try_again_later",
        ... )
    """

    type: str = Field(..., description="URI reference identifying the problem type")
    title: str = Field(..., description="Short summary of the problem type")
    status: int = Field(..., description="HTTP status code", ge=400, le=599)
    detail: str = Field(..., description="Explanation specific to this occurrence")
    instance: str = Field(..., description="URI of the specific occurrence")
    errors: list[ErrorDetail] | None = Field(
        default=None, description="Field-specific errors"
    )
    trace_id: str | None = Field(default=None, description="Request trace ID")
    user_action: str | None = Field(default=None, description="Suggested next step")
    retry_after: int | None = Field(
        default=None, description="Seconds until a retry may succeed"
    )
