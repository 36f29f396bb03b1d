"""
Fetch flat records from Neo4j and rebuild them into a forest of nested nodes.

build_hierarchy is pure: it never touches the session and keeps no state between
calls, so each request works on its own lookup table and forest.
"""
import json
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from neo4j import Query
from pydantic import ValidationError

from config import DEFAULT_HIERARCHY_QUERY, ORPHAN_POLICIES
from errors import DataUnavailable, MalformedHierarchy
from models import FlatRecord, TreeNode
from neo4j_utils import neo4j_retry

logger = logging.getLogger(__name__)

RecordLike = Union[FlatRecord, Mapping[str, Any]]


def parse_record(raw: Mapping[str, Any]) -> FlatRecord:
    """Validate one raw row into a FlatRecord, raising DataUnavailable if it doesn't fit."""
    try:
        return FlatRecord.model_validate(dict(raw))
    except ValidationError as e:
        name = raw.get("name") if hasattr(raw, "get") else None
        raise DataUnavailable(f"Malformed record {name!r}: {e.errors()}") from e


def fetch_records(
    session,
    query: str = DEFAULT_HIERARCHY_QUERY,
    timeout: Optional[float] = None,
    max_retries: int = 0,
    retry_delay: float = 0.5,
) -> List[FlatRecord]:
    """
    Run the hierarchy query and return every row as a FlatRecord.

    The whole result is consumed before returning; a child can arrive before
    its parent, so nothing downstream can start on a partial set.
    """
    @neo4j_retry(max_retries=max_retries, delay=retry_delay)
    def _run_query() -> List[Dict[str, Any]]:
        result = session.run(Query(query, timeout=timeout))
        return [record.data() for record in result]

    try:
        rows = _run_query()
    except Exception as e:
        logger.warning(f"Hierarchy query failed: {e}")
        raise DataUnavailable("Failed to fetch hierarchy records") from e

    records = [parse_record(row) for row in rows]
    logger.debug(f"Fetched {len(records)} hierarchy records")
    return records


def _find_cycle(nodes: Dict[str, TreeNode]) -> Optional[List[str]]:
    """Return the names forming the first parent cycle found, or None."""
    done = set()
    for start in nodes:
        if start in done:
            continue
        path: List[str] = []
        on_path: Dict[str, int] = {}
        name = start
        while name is not None and name in nodes and name not in done:
            if name in on_path:
                return path[on_path[name]:]
            on_path[name] = len(path)
            path.append(name)
            name = nodes[name].parent
        done.update(path)
    return None


def build_hierarchy(records: Iterable[RecordLike], orphan_policy: str = "drop") -> List[TreeNode]:
    """
    Assemble flat records into an ordered forest.

    Two passes over the input: the first indexes every record by name (last
    record with a given name wins), the second attaches each name once, at its
    first appearance, under its parent or onto the root list. The index must be
    complete before attaching so that duplicates resolve to a single node.

    Records whose parent names no known record are handled by ``orphan_policy``:
    ``drop`` leaves them out, ``promote`` makes them roots, ``reject`` raises
    MalformedHierarchy. Cyclic parent chains always raise MalformedHierarchy.
    """
    if orphan_policy not in ORPHAN_POLICIES:
        raise ValueError(f"Unknown orphan policy: {orphan_policy!r}")

    records = [r if isinstance(r, FlatRecord) else parse_record(r) for r in records]

    nodes: Dict[str, TreeNode] = {}
    for record in records:
        nodes[record.name] = TreeNode.from_record(record)

    cycle = _find_cycle(nodes)
    if cycle:
        raise MalformedHierarchy(f"Cyclic parent references: {' -> '.join(cycle)}", names=cycle)

    tree: List[TreeNode] = []
    attached = set()
    for record in records:
        if record.name in attached:
            continue
        attached.add(record.name)

        node = nodes[record.name]
        if node.parent is None:
            tree.append(node)
        elif node.parent in nodes:
            nodes[node.parent].children.append(node)
        elif orphan_policy == "promote":
            tree.append(node)
        elif orphan_policy == "reject":
            raise MalformedHierarchy(
                f"Record {node.name!r} references unknown parent {node.parent!r}",
                names=[node.name],
            )
        else:
            logger.warning(f"Dropping {node.name!r}: parent {node.parent!r} not found")

    return tree


def count_nodes(forest: List[TreeNode]) -> int:
    total = 0
    stack = list(forest)
    while stack:
        node = stack.pop()
        total += 1
        stack.extend(node.children)
    return total


def _push_nodes(stack: list, nodes: List[TreeNode]) -> None:
    # Stack is LIFO: push the closing bracket first and the opening bracket last
    stack.append("]")
    for i in range(len(nodes) - 1, -1, -1):
        stack.append(nodes[i])
        if i:
            stack.append(",")
    stack.append("[")


def encode_forest(forest: List[TreeNode]) -> str:
    """
    Serialize a forest to a JSON array without recursion.

    Recursive encoders (pydantic-core, the json C encoder) stop at a fixed
    nesting depth; a long parent chain is still a valid tree, so nodes are
    written from an explicit stack instead.
    """
    parts: List[str] = []
    stack: list = []
    _push_nodes(stack, forest)
    while stack:
        item = stack.pop()
        if isinstance(item, str):
            parts.append(item)
            continue
        parts.append(
            '{"name":%s,"description":%s,"parent":%s,"children":' % (
                json.dumps(item.name, ensure_ascii=False),
                json.dumps(item.description, ensure_ascii=False),
                json.dumps(item.parent, ensure_ascii=False),
            )
        )
        stack.append("}")
        _push_nodes(stack, item.children)
    return "".join(parts)
