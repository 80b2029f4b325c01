"""Admin router.

Endpoints:
    GET /api/v1/admin/verifications/{subject_id}/audit - Verification audit trail

All endpoints require the ``X-Admin-Key`` header (see admin_dependencies).
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from verimail.application.queries import (
    ListVerificationAudit,
    ListVerificationAuditHandler,
)
from verimail.core.constants import AUDIT_QUERY_MAX_LIMIT
from verimail.core.container import get_list_verification_audit_handler
from verimail.core.result import Failure, Success
from verimail.presentation.routers.api.middleware.admin_dependencies import (
    require_admin_key,
)
from verimail.presentation.routers.api.v1.errors import ProblemDetails
from verimail.schemas.verification_schemas import (
    VerificationAuditEntry,
    VerificationAuditResponse,
)

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(require_admin_key)],
)


@router.get(
    "/verifications/{subject_id}/audit",
    response_model=VerificationAuditResponse,
    responses={
        403: {"description": "Admin access required", "model": ProblemDetails},
        503: {"description": "Audit store unavailable", "model": ProblemDetails},
    },
    summary="List verification audit trail",
)
async def list_verification_audit(
    subject_id: UUID,
    only_failures: bool = Query(default=False, description="Only failed events"),
    limit: int = Query(default=100, ge=1, le=AUDIT_QUERY_MAX_LIMIT),
    handler: ListVerificationAuditHandler = Depends(
        get_list_verification_audit_handler
    ),
) -> VerificationAuditResponse:
    """List a subject's verification audit trail, newest first.

    GET /api/v1/admin/verifications/{subject_id}/audit → 200 OK
    """
    query = ListVerificationAudit(
        subject_id=subject_id, only_failures=only_failures, limit=limit
    )
    match await handler.handle(query):
        case Success(value=entries):
            return VerificationAuditResponse(
                subject_id=subject_id,
                entries=[VerificationAuditEntry(**entry) for entry in entries],
            )
        case Failure():
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Audit trail is temporarily unavailable",
            )
