"""Audit trail infrastructure."""

from verimail.infrastructure.audit.sqlalchemy_adapter import SQLAlchemyAuditAdapter

__all__ = ["SQLAlchemyAuditAdapter"]
