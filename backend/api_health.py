"""
Health check endpoints for monitoring system status.
"""

from fastapi import APIRouter, Depends, Request

from db_neo4j import get_neo4j_session
from neo4j_utils import get_connection_health_info
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/")
def health_check():
    """Basic health check endpoint."""
    return {"status": "ok", "service": "hierarchy-api"}


@router.get("/neo4j")
def neo4j_health_check(request: Request, session=Depends(get_neo4j_session)):
    """Check Neo4j database connectivity and health."""
    driver = getattr(request.app.state, "neo4j_driver", None)
    try:
        session.run("RETURN 1 AS test").single()

        return {
            "status": "healthy",
            "database": "neo4j",
            "connection": get_connection_health_info(driver),
            "query_test": "passed"
        }
    except Exception as e:
        logger.error(f"Neo4j health check failed: {e}")
        return {
            "status": "unhealthy",
            "database": "neo4j",
            "error": str(e),
            "query_test": "failed"
        }
