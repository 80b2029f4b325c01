"""API middleware."""

from verimail.presentation.routers.api.middleware.admin_dependencies import (
    require_admin_key,
)
from verimail.presentation.routers.api.middleware.trace_middleware import (
    TraceMiddleware,
    get_trace_id,
)

__all__ = ["TraceMiddleware", "get_trace_id", "require_admin_key"]
