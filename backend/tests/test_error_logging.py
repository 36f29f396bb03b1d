"""
Tests for error logging and exception handling.

Tests verify that:
- Unhandled exceptions are caught and logged
- Error responses are sanitized (no internal details leaked)
- HTTPExceptions are logged at appropriate levels
- Hierarchy errors map to the fixed fetch error payload
"""
import logging

from fastapi import HTTPException

from errors import DataUnavailable, MalformedHierarchy


class TestUnhandledExceptions:
    """Tests for unhandled exception handling"""

    def test_unhandled_exception_logged(self, client, caplog):
        """Test that unhandled exceptions are logged with stack trace."""
        from main import app

        @app.get("/test-error-endpoint")
        def test_error_endpoint():
            raise RuntimeError("Boom! This is a test error")

        with caplog.at_level(logging.ERROR):
            response = client.get("/test-error-endpoint")

            assert response.status_code == 500
            assert response.json()["detail"] == "Internal server error"

            error_logs = [r for r in caplog.records if r.levelno >= logging.ERROR]
            assert len(error_logs) > 0
            assert "Unhandled exception" in error_logs[0].message

    def test_unhandled_exception_sanitized(self, client):
        """Test that error response doesn't leak internal details."""
        from main import app

        @app.get("/test-error-endpoint-2")
        def test_error_endpoint_2():
            raise ValueError("Sensitive internal error: database password is xyz")

        response = client.get("/test-error-endpoint-2")

        assert response.status_code == 500
        data = response.json()
        assert data["detail"] == "Internal server error"
        assert "password" not in response.text


class TestHierarchyErrors:
    """Hierarchy errors raised anywhere in a request become the fixed payload"""

    def test_data_unavailable_payload(self, client):
        from main import app

        @app.get("/test-data-unavailable")
        def test_data_unavailable():
            raise DataUnavailable("query timed out on shard 3")

        response = client.get("/test-data-unavailable")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch data"}

    def test_malformed_hierarchy_logged_as_error(self, client, caplog):
        from main import app

        @app.get("/test-malformed-hierarchy")
        def test_malformed_hierarchy():
            raise MalformedHierarchy("Cyclic parent references: A -> B", names=["A", "B"])

        with caplog.at_level(logging.ERROR):
            response = client.get("/test-malformed-hierarchy")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch data"}
        assert any("Cyclic parent references" in r.message for r in caplog.records)


class TestHTTPExceptions:
    """Tests for HTTPException handling"""

    def test_404_logged_as_warning(self, client, caplog):
        """Test that 4xx errors are logged at WARNING level."""
        with caplog.at_level(logging.WARNING):
            response = client.get("/does-not-exist")

        assert response.status_code == 404
        warning_logs = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warning_logs) > 0
        assert "404" in warning_logs[0].message

    def test_500_exception_logged_as_error(self, client, caplog):
        """Test that 5xx errors are logged at ERROR level."""
        from main import app

        @app.get("/test-500-endpoint")
        def test_500_endpoint():
            raise HTTPException(status_code=500, detail="Internal server error")

        with caplog.at_level(logging.ERROR):
            response = client.get("/test-500-endpoint")

        assert response.status_code == 500
        error_logs = [r for r in caplog.records if r.levelno >= logging.ERROR]
        assert len(error_logs) > 0
        assert "500" in error_logs[0].message

    def test_http_exception_not_double_wrapped(self, client):
        """Test that HTTPExceptions are not double-wrapped."""
        from main import app

        @app.get("/test-http-exception")
        def test_http_exception():
            raise HTTPException(status_code=400, detail="Bad request")

        response = client.get("/test-http-exception")

        assert response.status_code == 400
        assert response.json()["detail"] == "Bad request"
