"""API v1 routers.

Resources:
    /api/v1/verifications - Email verification (resend, complete, status)
    /api/v1/admin         - Verification audit trail (admin key required)
"""

from fastapi import APIRouter

from verimail.core.config import settings
from verimail.presentation.routers.api.v1.admin import router as admin_router
from verimail.presentation.routers.api.v1.verifications import (
    router as verifications_router,
)

v1_router = APIRouter(prefix=settings.api_v1_prefix)
v1_router.include_router(verifications_router)
v1_router.include_router(admin_router)

__all__ = [
    "v1_router",
]
