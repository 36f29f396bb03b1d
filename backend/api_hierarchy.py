import logging
from typing import List

from fastapi import APIRouter, Depends, Request, Response

from config import HierarchySettings, load_hierarchy_settings
from db_neo4j import get_neo4j_session
from errors import DataUnavailable, HierarchyError
from models import ErrorResponse, TreeNode
from services_hierarchy import build_hierarchy, count_nodes, encode_forest, fetch_records

logger = logging.getLogger("hierarchy_api")

router = APIRouter(prefix="/api", tags=["hierarchy"])


def get_hierarchy_settings(request: Request) -> HierarchySettings:
    settings = getattr(request.app.state, "hierarchy_settings", None)
    if settings is None:
        try:
            settings = load_hierarchy_settings()
        except ValueError as e:
            raise DataUnavailable(f"Invalid hierarchy settings: {e}") from e
    return settings


@router.get(
    "/data",
    response_model=List[TreeNode],
    responses={500: {"model": ErrorResponse}},
)
def get_data(
    session=Depends(get_neo4j_session),
    settings: HierarchySettings = Depends(get_hierarchy_settings),
):
    """
    Return every entity in the graph as a forest of nested nodes.

    Any failure surfaces as 500 {"error": "Failed to fetch data"} via the handlers in main.py.
    """
    try:
        records = fetch_records(
            session,
            query=settings.query,
            timeout=settings.fetch_timeout_s,
            max_retries=settings.max_retries,
            retry_delay=settings.retry_delay_s,
        )
        forest = build_hierarchy(records, orphan_policy=settings.orphan_policy)
        body = encode_forest(forest)
    except HierarchyError:
        raise
    except Exception as e:
        raise DataUnavailable(f"Unexpected error building hierarchy: {e}") from e

    logger.info(f"Built hierarchy: {len(records)} records, {len(forest)} roots, {count_nodes(forest)} nodes")
    return Response(content=body, media_type="application/json")
