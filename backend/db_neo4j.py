import logging
from typing import Generator, Optional

from fastapi import Request
from neo4j import GraphDatabase, READ_ACCESS  # type: ignore[reportMissingImports]
from neo4j.exceptions import AuthError, Neo4jError, DriverError

from config import NEO4J_URI, NEO4J_USER, NEO4J_PASSWORD, NEO4J_DATABASE
from errors import ConnectionFailure, DataUnavailable

logger = logging.getLogger("hierarchy_api")


def create_driver(uri: Optional[str] = None, user: Optional[str] = None, password: Optional[str] = None):
    """
    Create the Neo4j driver and verify it can reach the server.

    Called once from the application lifespan; the returned driver is owned by
    the app and closed on shutdown.
    """
    uri = uri or NEO4J_URI
    user = user or NEO4J_USER
    password = password if password is not None else NEO4J_PASSWORD
    if not password:
        raise ConnectionFailure(
            "NEO4J_PASSWORD environment variable is required. "
            "Please set it in your .env.local file."
        )

    # Configure driver with connection pooling and keepalive to handle defunct connections
    driver = GraphDatabase.driver(
        uri,
        auth=(user, password),
        max_connection_lifetime=3600,  # 1 hour
        max_connection_pool_size=50,
        connection_acquisition_timeout=30,
        keep_alive=True,
    )
    try:
        server_info = driver.get_server_info()
    except (AuthError, Neo4jError, DriverError, OSError) as e:
        driver.close()
        raise ConnectionFailure(f"Could not connect to Neo4j at {uri}: {e}") from e

    logger.info("Connection established to Neo4j")
    logger.info(f"Server address: {server_info.address}")
    return driver


def get_driver(request: Request):
    """Return the driver owned by the running application."""
    driver = getattr(request.app.state, "neo4j_driver", None)
    if driver is None:
        raise DataUnavailable("Neo4j driver is not initialized")
    return driver


def get_neo4j_session(request: Request) -> Generator:
    """
    FastAPI dependency that yields a read-only Neo4j session.

    The session is closed on every exit path, including when the endpoint raises.
    """
    driver = get_driver(request)
    try:
        session = driver.session(default_access_mode=READ_ACCESS, database=NEO4J_DATABASE)
    except (Neo4jError, DriverError, OSError) as e:
        raise DataUnavailable(f"Could not open Neo4j session: {e}") from e

    try:
        yield session
    finally:
        try:
            session.close()
        except (Neo4jError, DriverError, OSError) as e:
            # Don't mask the original error
            logger.warning(f"Error closing Neo4j session: {e}")
