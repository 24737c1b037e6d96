"""
Graph fixtures for lowmain tests.

Builds real driver value objects (Node, Relationship, Path, Record) without a
server, and a recording in-memory gateway that stands in for Neo4jGateway.
"""

from collections import defaultdict
from typing import Any, Optional

from neo4j import Record
from neo4j.graph import Graph, Node, Path, Relationship

from lowmain.adapters.base import (
    DEFAULT_LIMIT,
    ConnectivityInfo,
    GraphGateway,
    MetadataKind,
    ReadResult,
    WriteSummary,
)

_graph = Graph()


def make_node(node_id: int, labels=("Person",), **props) -> Node:
    """Create a driver Node with an integer id and element id."""
    return Node(_graph, f"4:test:{node_id}", node_id, labels, props)


def make_relationship(rel_id: int, start: Node, end: Node, rel_type: str = "KNOWS", **props) -> Relationship:
    """Create a driver Relationship between two nodes."""
    rel = _graph.relationship_type(rel_type)(_graph, f"5:test:{rel_id}", rel_id, props)
    rel._start_node = start
    rel._end_node = end
    return rel


def make_path(start: Node, *relationships: Relationship) -> Path:
    return Path(start, *relationships)


def make_record(**values) -> Record:
    """Create a driver Record keeping keyword order as column order."""
    return Record(values)


class FakeGateway(GraphGateway):
    """
    In-memory gateway that records every call.

    Responses are queued per method; a queued exception is raised instead of
    returned. Unqueued calls return an empty result.

    Example:
        gateway = FakeGateway()
        gateway.queue("execute_read", [make_record(n=make_node(1))])
    """

    def __init__(self):
        self.calls: list[tuple] = []
        self.responses: dict[str, list[Any]] = defaultdict(list)
        self.descriptor = None
        self.opened = 0
        self.closed = 0

    def queue(self, method: str, *responses: Any) -> "FakeGateway":
        self.responses[method].extend(responses)
        return self

    def _next(self, method: str, default: Any) -> Any:
        pending = self.responses[method]
        response = pending.pop(0) if pending else default
        if isinstance(response, BaseException):
            raise response
        return response

    def methods_called(self) -> list[str]:
        return [call[0] for call in self.calls]

    async def __aenter__(self) -> "FakeGateway":
        self.opened += 1
        return self

    async def close(self) -> None:
        self.closed += 1

    async def ping(self) -> ConnectivityInfo:
        self.calls.append(("ping",))
        default = ConnectivityInfo(uri=self.descriptor.uri, database=self.descriptor.database)
        return self._next("ping", default)

    async def execute_read(self, cypher: str, params: Optional[dict] = None, limit: int = DEFAULT_LIMIT) -> ReadResult:
        self.calls.append(("execute_read", cypher, params, limit))
        rows = self._next("execute_read", [])
        return ReadResult(rows=list(rows[:limit]), limit=limit, truncated=len(rows) > limit)

    async def execute_write(self, cypher: str, params: Optional[dict] = None) -> WriteSummary:
        self.calls.append(("execute_write", cypher, params))
        return WriteSummary(counters=self._next("execute_write", {}))

    async def execute_mutation(self, cypher: str, params: Optional[dict] = None) -> list[Any]:
        self.calls.append(("execute_mutation", cypher, params))
        return list(self._next("execute_mutation", []))

    async def metadata(self, kind: MetadataKind) -> dict[str, Any]:
        kind = MetadataKind(kind)
        self.calls.append(("metadata", kind))
        return self._next(f"metadata:{kind.value}", {kind.value: []})
