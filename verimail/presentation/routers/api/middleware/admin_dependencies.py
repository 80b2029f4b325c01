"""Admin route protection.

Admin routes expose the verification audit trail, which holds client IPs and
user agents. They require the shared key from ``ADMIN_API_KEY`` in the
``X-Admin-Key`` header. When no key is configured every admin request is
refused.

Usage:
    @router.get("/admin/verifications/{subject_id}/audit")
    async def list_audit(
        _admin: None = Depends(require_admin_key),
    ):
        ...
"""

import secrets
from typing import Annotated

from fastapi import Header, HTTPException, status

from verimail.core.config import settings


async def require_admin_key(
    x_admin_key: Annotated[str | None, Header()] = None,
) -> None:
    """Reject the request unless it carries the configured admin key.

    Raises:
        HTTPException 403: Key missing, wrong, or admin routes disabled.
    """
    expected = settings.admin_api_key
    if (
        not expected
        or x_admin_key is None
        or not secrets.compare_digest(x_admin_key.encode(), expected.encode())
    ):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
