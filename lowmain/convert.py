"""
Canonical JSON conversion for Neo4j values.

convert() is total over the driver's value domain and never raises:

    None, bool, int, float, str    -> unchanged (non-finite floats as text)
    list / tuple                   -> list, order preserved
    dict                           -> dict, insertion order preserved
    Node                           -> {"_id", "_labels", ...properties}
    Relationship                   -> {"_id", "_type", "_start_node_id", "_end_node_id", ...properties}
    Path                           -> {"_type": "path", "nodes", "relationships"}
    Date/Time/DateTime/Duration    -> ISO-8601 text
    Point                          -> "SRID=<srid>;POINT(x y[ z])"
    bytes                          -> base64 text

Reserved keys always win: a user property named like a reserved key is
dropped from the output.
"""

import base64
import logging
import math
import warnings
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, Optional, Sequence

from neo4j.graph import Node, Path, Relationship
from neo4j.spatial import Point
from neo4j.time import Date, DateTime, Duration, Time

logger = logging.getLogger(__name__)

# Largest integer a JSON consumer using IEEE-754 doubles represents exactly.
MAX_SAFE_INTEGER = 2**53 - 1


def safe_id(entity_id: Any) -> Any:
    """Stringify ids that would lose precision as JSON numbers."""
    if isinstance(entity_id, int) and abs(entity_id) > MAX_SAFE_INTEGER:
        return str(entity_id)
    return entity_id


def _legacy_id(entity: Any) -> Any:
    # Integer ids are deprecated in the 5.x driver but remain the addressing
    # scheme for every command (`node get <id>`).
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", DeprecationWarning)
        return entity.id


def _with_properties(reserved: dict[str, Any], properties: Iterable[tuple[str, Any]]) -> dict[str, Any]:
    out = dict(reserved)
    for key, value in properties:
        if key in reserved:
            logger.debug("Property %r shadowed by reserved key", key)
            continue
        out[key] = convert(value)
    return out


def node_to_json(node: Node, labels: Optional[Sequence[str]] = None) -> dict[str, Any]:
    """
    Convert a Neo4j Node to a canonical mapping.

    The driver hands labels back as a frozenset. Pass the list returned by
    `labels(n)` to keep the database's order; otherwise they are sorted.
    """
    reserved = {
        "_id": safe_id(_legacy_id(node)),
        "_labels": list(labels) if labels is not None else sorted(node.labels),
    }
    return _with_properties(reserved, node.items())


def relationship_to_json(rel: Relationship) -> dict[str, Any]:
    """Convert a Neo4j Relationship to a canonical mapping."""
    start, end = rel.start_node, rel.end_node
    reserved = {
        "_id": safe_id(_legacy_id(rel)),
        "_type": rel.type,
        "_start_node_id": safe_id(_legacy_id(start)) if start is not None else None,
        "_end_node_id": safe_id(_legacy_id(end)) if end is not None else None,
    }
    return _with_properties(reserved, rel.items())


def path_to_json(path: Path) -> dict[str, Any]:
    """Convert a Neo4j Path to nodes and relationships in traversal order."""
    return {
        "_type": "path",
        "nodes": [node_to_json(n) for n in path.nodes],
        "relationships": [relationship_to_json(r) for r in path.relationships],
    }


def point_to_text(point: Point) -> str:
    coords = " ".join(repr(float(c)) for c in point)
    return f"SRID={point.srid};POINT({coords})"


def convert(value: Any) -> Any:
    """
    Convert one raw driver value to its canonical JSON-compatible form.

    Args:
        value: Any value returned by the driver

    Returns:
        JSON-serializable value
    """
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        return value
    if isinstance(value, Node):
        return node_to_json(value)
    if isinstance(value, Relationship):
        return relationship_to_json(value)
    if isinstance(value, Path):
        return path_to_json(value)
    # Point and Duration are tuple subclasses; check them before plain lists
    if isinstance(value, Point):
        return point_to_text(value)
    if isinstance(value, (Date, Time, DateTime, Duration)):
        return value.iso_format()
    if isinstance(value, (list, tuple)):
        return [convert(v) for v in value]
    if isinstance(value, dict):
        return {str(k): convert(v) for k, v in value.items()}
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return Duration(days=value.days, seconds=value.seconds, microseconds=value.microseconds).iso_format()
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    return str(value)


def convert_record(record: Any) -> dict[str, Any]:
    """Convert one result record, keeping the column order of the query."""
    return {key: convert(value) for key, value in record.items()}
