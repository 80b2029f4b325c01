"""API tests for admin endpoints.

Tests:
- GET /api/v1/admin/verifications/{subject_id}/audit

Architecture:
- Uses real app with dependency overrides
- Stubs the audit query handler
"""

import pytest
from fastapi.testclient import TestClient
from uuid_extensions import uuid7

from verimail.core.config import settings
from verimail.core.container import get_list_verification_audit_handler
from verimail.core.result import Failure, Success
from verimail.main import app

SUBJECT_ID = uuid7()
ADMIN_HEADERS = {"X-Admin-Key": "test-admin-key"}


class StubAuditHandler:
    """Stub audit handler recording queries."""

    def __init__(self, result):
        self.result = result
        self.queries = []

    async def handle(self, query):
        self.queries.append(query)
        return self.result


def audit_entry(action: str, success: bool = True) -> dict:
    return {
        "id": str(uuid7()),
        "action": action,
        "subject_id": str(SUBJECT_ID),
        "occurred_at": "2026-01-01T12:00:00+00:00",
        "success": success,
        "token_id": None,
        "source_ip": "203.0.113.7",
        "user_agent": "Mozilla/5.0",
        "error_message": None if success else "token_expired",
        "details": {"token_preview": "abcdefgh"},
    }


@pytest.fixture(autouse=True)
def override_dependencies():
    """Clear dependency overrides after each test."""
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    return TestClient(app, raise_server_exceptions=False)


def use_handler(handler: StubAuditHandler) -> StubAuditHandler:
    app.dependency_overrides[get_list_verification_audit_handler] = lambda: handler
    return handler


@pytest.mark.api
class TestListVerificationAudit:
    """Tests for GET /api/v1/admin/verifications/{subject_id}/audit."""

    def test_list_audit_returns_entries(self, client):
        handler = use_handler(
            StubAuditHandler(
                Success(
                    value=[
                        audit_entry("verification_failed", success=False),
                        audit_entry("token_created"),
                    ]
                )
            )
        )

        response = client.get(
            f"/api/v1/admin/verifications/{SUBJECT_ID}/audit",
            params={"only_failures": "true", "limit": 10},
            headers=ADMIN_HEADERS,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["subject_id"] == str(SUBJECT_ID)
        assert [e["action"] for e in body["entries"]] == [
            "verification_failed",
            "token_created",
        ]
        assert body["entries"][0]["error_message"] == "token_expired"
        query = handler.queries[0]
        assert query.subject_id == SUBJECT_ID
        assert query.only_failures is True
        assert query.limit == 10

    @pytest.mark.parametrize("headers", [{}, {"X-Admin-Key": "wrong-key"}])
    def test_list_audit_requires_admin_key(self, client, headers):
        handler = use_handler(StubAuditHandler(Success(value=[])))

        response = client.get(
            f"/api/v1/admin/verifications/{SUBJECT_ID}/audit", headers=headers
        )

        assert response.status_code == 403
        assert response.json()["detail"] == "Admin access required"
        assert handler.queries == []

    def test_list_audit_disabled_without_configured_key(self, client, monkeypatch):
        use_handler(StubAuditHandler(Success(value=[])))
        monkeypatch.setattr(settings, "admin_api_key", None)

        response = client.get(
            f"/api/v1/admin/verifications/{SUBJECT_ID}/audit", headers=ADMIN_HEADERS
        )

        assert response.status_code == 403

    def test_list_audit_store_unavailable(self, client):
        use_handler(StubAuditHandler(Failure(error="audit_query_failed")))

        response = client.get(
            f"/api/v1/admin/verifications/{SUBJECT_ID}/audit", headers=ADMIN_HEADERS
        )

        assert response.status_code == 503

    def test_list_audit_limit_capped(self, client):
        use_handler(StubAuditHandler(Success(value=[])))

        response = client.get(
            f"/api/v1/admin/verifications/{SUBJECT_ID}/audit",
            params={"limit": 5000},
            headers=ADMIN_HEADERS,
        )

        assert response.status_code == 422
