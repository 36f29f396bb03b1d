"""
Pytest configuration and fixtures for testing the Hierarchy API.

This module provides:
- Test client fixture for FastAPI app
- Mock Neo4j session / driver fixtures
- Sample record fixtures
- Environment variable overrides to prevent real database connections
"""
import pytest
import os
from unittest.mock import MagicMock
from fastapi.testclient import TestClient

from tests.mock_helpers import MockNeo4jResult

# Override environment variables to prevent real connections
os.environ.setdefault("NEO4J_URI", "bolt://localhost:7687")
os.environ.setdefault("NEO4J_USER", "neo4j")
os.environ.setdefault("NEO4J_PASSWORD", "test-password")
os.environ.setdefault("ORPHAN_POLICY", "drop")
os.environ.setdefault("FETCH_MAX_RETRIES", "0")

# Import app after env vars are set
from main import app


@pytest.fixture
def test_app():
    """
    The FastAPI app from main.py. The lifespan does not run unless the client
    is used as a context manager, so no driver is created.
    """
    return app


@pytest.fixture
def client(test_app):
    """
    Test client with raise_server_exceptions=False so exceptions reach the
    exception handlers and come back as responses, as in production.
    """
    return TestClient(test_app, raise_server_exceptions=False)


@pytest.fixture
def mock_neo4j_session():
    """
    MagicMock session whose run() returns an empty MockNeo4jResult by default.

    Usage in tests:
        mock_neo4j_session.run.return_value = mock_helpers.records_result([
            {"name": "A", "description": None, "parent": None},
        ])
    """
    session = MagicMock()
    session.run.return_value = MockNeo4jResult(records=[])
    return session


@pytest.fixture
def mock_neo4j_driver(mock_neo4j_session):
    """Mock driver whose session() hands out mock_neo4j_session."""
    driver = MagicMock()
    driver.session.return_value = mock_neo4j_session
    return driver


@pytest.fixture(autouse=True)
def override_neo4j_dependency(test_app, mock_neo4j_session):
    """
    Route every endpoint's get_neo4j_session through mock_neo4j_session.

    Tests that need the real dependency (to check session cleanup) pop the
    override themselves.
    """
    from db_neo4j import get_neo4j_session

    def get_mock_session():
        yield mock_neo4j_session

    test_app.dependency_overrides[get_neo4j_session] = get_mock_session

    yield

    test_app.dependency_overrides.clear()


@pytest.fixture
def sample_rows():
    """The A/B/C/D example: D hangs off an unknown parent X."""
    return [
        {"name": "A", "description": "root", "parent": None},
        {"name": "B", "description": None, "parent": "A"},
        {"name": "C", "description": "second child", "parent": "A"},
        {"name": "D", "description": None, "parent": "X"},
    ]
