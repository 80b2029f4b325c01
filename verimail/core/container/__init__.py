"""Container module - Centralized dependency injection.

The container is organized into modules:
- infrastructure: Core services (database, logging, email, token generator)
- verification: Adapters, orchestrator and query handlers

Usage:
    from verimail.core.container import get_verification_orchestrator
"""

from verimail.core.container.infrastructure import (
    get_audit_session,
    get_database,
    get_db_session,
    get_logger,
    get_mail_sender,
    get_token_generator,
)
from verimail.core.container.verification import (
    build_cleanup_service,
    get_audit,
    get_identity_store,
    get_ip_limiter,
    get_ip_rule,
    get_list_verification_audit_handler,
    get_subject_limiter,
    get_subject_rule,
    get_token_store,
    get_verification_orchestrator,
    get_verification_policy,
    get_verification_status_handler,
)

__all__ = [
    "build_cleanup_service",
    "get_audit",
    "get_audit_session",
    "get_database",
    "get_db_session",
    "get_identity_store",
    "get_ip_limiter",
    "get_ip_rule",
    "get_list_verification_audit_handler",
    "get_logger",
    "get_mail_sender",
    "get_subject_limiter",
    "get_subject_rule",
    "get_token_generator",
    "get_token_store",
    "get_verification_orchestrator",
    "get_verification_policy",
    "get_verification_status_handler",
]
