"""
Error Reporting API Tests
"""
from datetime import datetime, timedelta, timezone

import pytest

from microservices.error_service.models import ErrorLog, ErrorSeverity, ErrorType
from tests.api.conftest import USER_ID

pytestmark = [pytest.mark.api]


def _report(**overrides):
    body = {
        "action": "log",
        "errorType": "client",
        "errorMessage": "Cannot read properties of undefined",
        "severity": "high",
        "url": "/checkout",
        "context": {"step": "payment", "cardToken": "tok_1"},
    }
    body.update(overrides)
    return body


@pytest.fixture
def stored_error(storefront):
    return storefront.errors.set_error_log(ErrorLog(
        id="err_1",
        error_type=ErrorType.CLIENT,
        error_message="boom",
        severity=ErrorSeverity.HIGH,
        created_at=datetime.now(timezone.utc) - timedelta(minutes=5),
    ))


class TestLogReport:

    def test_anonymous_report_is_stored(self, client, storefront):
        response = client.post("/api/errors", json=_report(), headers={"User-Agent": "storefront-web"})

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        stored = storefront.errors._data[body["errorId"]]
        assert stored.error_type == ErrorType.CLIENT
        assert stored.severity == ErrorSeverity.HIGH
        assert stored.user_agent == "storefront-web"
        assert stored.context == {"step": "payment", "cardToken": "[REDACTED]"}

    def test_severity_defaults_to_medium(self, client, storefront):
        response = client.post("/api/errors", json=_report(severity=None))

        assert storefront.errors._data[response.json()["errorId"]].severity == ErrorSeverity.MEDIUM

    def test_fields_are_validated(self, client, storefront):
        response = client.post(
            "/api/errors",
            json=_report(errorType="fatal", errorMessage=42, severity="urgent", userId=7, context=["x"]),
        )

        assert response.status_code == 400
        assert response.json()["details"] == [
            "errorType must be one of: client, server, api, database, auth, payment",
            "errorMessage must be a string",
            "severity must be one of: low, medium, high, critical",
            "userId must be a string",
            "context must be an object",
        ]
        storefront.errors.assert_not_called("create_error")

    def test_unknown_action(self, client, storefront):
        response = client.post("/api/errors", json={"action": "purge"})

        assert response.status_code == 400
        assert response.json()["details"] == ["action must be one of: log, resolve"]


class TestResolve:

    def test_requires_token(self, client, stored_error):
        response = client.post("/api/errors", json={"action": "resolve", "errorId": "err_1"})

        assert response.status_code == 401

    def test_resolve_records_caller(self, client, storefront, stored_error, user_headers):
        response = client.post(
            "/api/errors", json={"action": "resolve", "errorId": "err_1"}, headers=user_headers
        )

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert storefront.errors._data["err_1"].resolved_by == USER_ID

    def test_unknown_error(self, client, storefront, user_headers, assertions):
        response = client.post(
            "/api/errors", json={"action": "resolve", "errorId": "err_missing"}, headers=user_headers
        )

        assertions.assert_error(response, 404, "Error log not found")

    def test_error_id_must_be_a_string(self, client, storefront, user_headers):
        response = client.post(
            "/api/errors", json={"action": "resolve", "errorId": 12}, headers=user_headers
        )

        assert response.status_code == 400
        assert response.json()["details"] == ["errorId must be a string"]


class TestDashboard:

    def test_requires_admin(self, client, stored_error, user_headers, assertions):
        response = client.get("/api/errors?action=metrics", headers=user_headers)

        assertions.assert_error(response, 403, "Admin access required")

    def test_metrics(self, client, stored_error, admin_headers):
        response = client.get("/api/errors?action=metrics", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["byType"] == {"client": 1}
        assert body["unresolved"] == 1
        assert body["recentErrors"][0]["id"] == "err_1"

    def test_statistics(self, client, stored_error, admin_headers):
        response = client.get("/api/errors?action=statistics", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()[0]["errorType"] == "client"
        assert response.json()[0]["count"] == 1

    def test_since_narrows_window(self, client, stored_error, admin_headers):
        since = (datetime.now(timezone.utc) - timedelta(minutes=1)).isoformat()

        response = client.get("/api/errors", params={"action": "metrics", "since": since}, headers=admin_headers)

        assert response.json()["total"] == 0

    def test_unknown_action(self, client, storefront, admin_headers):
        response = client.get("/api/errors?action=export", headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["details"] == ["action must be one of: metrics, statistics"]


class TestUnhandledErrors:

    def test_server_error_is_recorded(self, client, storefront):
        storefront.products.set_error(RuntimeError("connection reset"))

        response = client.get("/api/products")

        assert response.status_code == 500
        assert response.json()["error"] == "Internal server error"
        [stored] = storefront.errors._data.values()
        assert stored.error_type == ErrorType.API
        assert stored.severity == ErrorSeverity.CRITICAL
        assert stored.url == "/api/products"
        assert stored.error_message == "connection reset"
