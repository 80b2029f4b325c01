"""API tests for verification endpoints.

Tests the HTTP request/response cycle:
- POST /api/v1/verifications/resend
- POST /api/v1/verifications/complete
- GET  /api/v1/verifications/status/{subject_id}
- GET  /health

Architecture:
- Uses real app with dependency overrides
- Stubs the orchestrator and query handler
- Verifies status mapping, RFC 7807 bodies and Retry-After
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient
from uuid_extensions import uuid7

import verimail.main as main_module
from verimail.application.queries import VerificationStatus
from verimail.application.services import ResendReceipt, UserAction
from verimail.core.constants import GENERIC_COMPLETE_FAILURE_MESSAGE, TOKEN_MAX_LENGTH
from verimail.core.container import (
    get_verification_orchestrator,
    get_verification_status_handler,
)
from verimail.core.enums import ErrorCode
from verimail.core.result import Failure, Success
from verimail.domain.errors import VerificationError
from verimail.main import app

SUBJECT_ID = uuid7()
EXPIRES_AT = datetime(2026, 1, 2, 12, 0, tzinfo=UTC)


# =============================================================================
# Test Doubles - Stub orchestrator and handler
# =============================================================================


def verification_error(code: ErrorCode, **kwargs) -> Failure:
    return Failure(
        error=VerificationError(code=code, message=f"{code.value} message", **kwargs)
    )


class StubOrchestrator:
    """Stub orchestrator returning a fixed outcome and recording commands."""

    def __init__(self, resend_result=None, complete_result=None):
        self.resend_result = resend_result or Success(
            value=ResendReceipt(
                token_id=uuid7(),
                expires_at=EXPIRES_AT,
                remaining_attempts=2,
                delivery_id="stub-1",
            )
        )
        self.complete_result = complete_result or Success(value=SUBJECT_ID)
        self.commands = []

    async def resend(self, cmd):
        self.commands.append(cmd)
        return self.resend_result

    async def complete(self, cmd):
        self.commands.append(cmd)
        return self.complete_result


class StubStatusHandler:
    """Stub status handler."""

    def __init__(self, result):
        self.result = result

    async def handle(self, query):
        return self.result


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def override_dependencies():
    """Clear dependency overrides after each test."""
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    """Create TestClient for API tests using real app."""
    return TestClient(app, raise_server_exceptions=False)


def use_orchestrator(orchestrator: StubOrchestrator) -> StubOrchestrator:
    app.dependency_overrides[get_verification_orchestrator] = lambda: orchestrator
    return orchestrator


# =============================================================================
# Tests: POST /api/v1/verifications/resend
# =============================================================================


@pytest.mark.api
class TestResendVerification:
    """Tests for POST /api/v1/verifications/resend."""

    def test_resend_success_returns_202(self, client):
        orchestrator = use_orchestrator(StubOrchestrator())

        response = client.post(
            "/api/v1/verifications/resend",
            json={"email": "alice@example.com"},
            headers={"User-Agent": "pytest-agent"},
        )

        assert response.status_code == 202
        body = response.json()
        assert body["remaining_attempts"] == 2
        assert body["message"] == "Verification email sent. Please check your inbox."
        assert datetime.fromisoformat(body["expires_at"]) == EXPIRES_AT
        cmd = orchestrator.commands[0]
        assert cmd.email == "alice@example.com"
        assert cmd.user_agent == "pytest-agent"
        assert cmd.source_ip == "testclient"
        assert response.headers["X-Trace-Id"]

    def test_resend_missing_email_returns_422(self, client):
        use_orchestrator(StubOrchestrator())

        response = client.post("/api/v1/verifications/resend", json={})

        assert response.status_code == 422
        body = response.json()
        assert body["title"] == "Validation Failed"
        assert body["errors"][0]["field"] == "email"

    @pytest.mark.parametrize(
        ("code", "status_code", "title"),
        [
            (ErrorCode.INVALID_EMAIL, 422, "Validation Failed"),
            (ErrorCode.USER_NOT_FOUND, 404, "Resource Not Found"),
            (ErrorCode.SUBJECT_ALREADY_VERIFIED, 409, "Resource Conflict"),
            (ErrorCode.MAIL_DELIVERY_FAILED, 502, "Bad Gateway"),
            (ErrorCode.STORAGE_ERROR, 503, "Service Unavailable"),
        ],
    )
    def test_resend_failures_map_to_status(self, client, code, status_code, title):
        use_orchestrator(
            StubOrchestrator(
                resend_result=verification_error(
                    code, user_action=UserAction.TRY_AGAIN_LATER
                )
            )
        )

        response = client.post(
            "/api/v1/verifications/resend", json={"email": "alice@example.com"}
        )

        assert response.status_code == status_code
        body = response.json()
        assert body["type"].endswith(f"/errors/{code.value}")
        assert body["title"] == title
        assert body["status"] == status_code
        assert body["detail"] == f"{code.value} message"
        assert body["instance"] == "/api/v1/verifications/resend"
        assert body["user_action"] == "try_again_later"
        assert "Retry-After" not in response.headers

    def test_resend_rate_limited_returns_429_with_retry_after(self, client):
        use_orchestrator(
            StubOrchestrator(
                resend_result=verification_error(
                    ErrorCode.VERIFICATION_RATE_LIMITED, retry_after_seconds=1800
                )
            )
        )

        response = client.post(
            "/api/v1/verifications/resend", json={"email": "alice@example.com"}
        )

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "1800"
        assert response.json()["retry_after"] == 1800


# =============================================================================
# Tests: POST /api/v1/verifications/complete
# =============================================================================


@pytest.mark.api
class TestCompleteVerification:
    """Tests for POST /api/v1/verifications/complete."""

    def test_complete_success(self, client):
        orchestrator = use_orchestrator(StubOrchestrator())

        response = client.post(
            "/api/v1/verifications/complete", json={"token": "A" * 43}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["verified"] is True
        assert body["subject_id"] == str(SUBJECT_ID)
        assert orchestrator.commands[0].token == "A" * 43

    def test_complete_failure_is_generic_400(self, client):
        use_orchestrator(
            StubOrchestrator(
                complete_result=Failure(
                    error=VerificationError(
                        code=ErrorCode.TOKEN_INVALID,
                        message=GENERIC_COMPLETE_FAILURE_MESSAGE,
                        user_action=UserAction.REQUEST_NEW_LINK,
                    )
                )
            )
        )

        response = client.post(
            "/api/v1/verifications/complete", json={"token": "expired-or-unknown"}
        )

        assert response.status_code == 400
        body = response.json()
        assert body["detail"] == GENERIC_COMPLETE_FAILURE_MESSAGE
        assert body["title"] == "Verification Failed"
        assert body["user_action"] == "request_new_link"

    def test_complete_oversized_token_gets_generic_failure(self, client):
        orchestrator = use_orchestrator(
            StubOrchestrator(
                complete_result=Failure(
                    error=VerificationError(
                        code=ErrorCode.TOKEN_INVALID,
                        message=GENERIC_COMPLETE_FAILURE_MESSAGE,
                        user_action=UserAction.REQUEST_NEW_LINK,
                    )
                )
            )
        )

        short = client.post("/api/v1/verifications/complete", json={"token": "x" * 50})
        long = client.post("/api/v1/verifications/complete", json={"token": "x" * 2000})

        assert long.status_code == 400
        assert long.json()["detail"] == GENERIC_COMPLETE_FAILURE_MESSAGE
        assert long.json()["title"] == short.json()["title"] == "Verification Failed"
        assert "errors" not in long.json()
        assert len(orchestrator.commands[1].token) == TOKEN_MAX_LENGTH + 1


# =============================================================================
# Tests: GET /api/v1/verifications/status/{subject_id}
# =============================================================================


@pytest.mark.api
class TestVerificationStatus:
    """Tests for GET /api/v1/verifications/status/{subject_id}."""

    def test_status_success(self, client):
        status = VerificationStatus(
            subject_id=SUBJECT_ID,
            is_verified=False,
            confirmed_at=None,
            has_valid_token=True,
            token_expires_at=EXPIRES_AT,
            resend_attempts_remaining=1,
            tokens_issued_in_window=2,
        )
        app.dependency_overrides[get_verification_status_handler] = (
            lambda: StubStatusHandler(Success(value=status))
        )

        response = client.get(f"/api/v1/verifications/status/{SUBJECT_ID}")

        assert response.status_code == 200
        body = response.json()
        assert body["subject_id"] == str(SUBJECT_ID)
        assert body["has_valid_token"] is True
        assert body["can_resend"] is True
        assert body["resend_attempts_remaining"] == 1

    def test_status_not_found(self, client):
        app.dependency_overrides[get_verification_status_handler] = (
            lambda: StubStatusHandler(Failure(error="subject_not_found"))
        )

        response = client.get(f"/api/v1/verifications/status/{uuid7()}")

        assert response.status_code == 404
        assert response.json()["detail"] == "Subject not found"

    def test_status_storage_unavailable(self, client):
        app.dependency_overrides[get_verification_status_handler] = (
            lambda: StubStatusHandler(Failure(error="storage_unavailable"))
        )

        response = client.get(f"/api/v1/verifications/status/{uuid7()}")

        assert response.status_code == 503

    def test_status_invalid_uuid(self, client):
        response = client.get("/api/v1/verifications/status/not-a-uuid")

        assert response.status_code == 422


# =============================================================================
# Tests: GET /health
# =============================================================================


@pytest.mark.api
class TestHealth:
    """Tests for GET /health."""

    def test_health_ok(self, client, monkeypatch):
        database = Mock()
        database.check_connection = AsyncMock(return_value=True)
        monkeypatch.setattr(main_module, "get_database", lambda: database)

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "database": "ok"}

    def test_health_database_down(self, client, monkeypatch):
        database = Mock()
        database.check_connection = AsyncMock(return_value=False)
        monkeypatch.setattr(main_module, "get_database", lambda: database)

        response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["database"] == "unavailable"
