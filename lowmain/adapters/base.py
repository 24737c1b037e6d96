"""
Base gateway interface for lowmain.

Provides the abstract graph gateway every command talks to, plus the plain
result types it returns.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

DEFAULT_LIMIT = 100


class MetadataKind(str, Enum):
    """Schema metadata the gateway can fetch."""

    LABELS = "labels"
    RELATIONSHIP_TYPES = "relationship_types"
    INDEXES = "indexes"
    CONSTRAINTS = "constraints"
    COUNTS = "counts"


# Sub-fetches that make up a full schema, in output order.
FULL_SCHEMA_KINDS = (
    MetadataKind.LABELS,
    MetadataKind.RELATIONSHIP_TYPES,
    MetadataKind.INDEXES,
    MetadataKind.CONSTRAINTS,
)


@dataclass
class ConnectivityInfo:
    """Echo of the descriptor after a successful round trip."""

    uri: str
    database: str
    connected: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {"connected": self.connected, "uri": self.uri, "db": self.database}


@dataclass
class ReadResult:
    """Raw records of a read statement, capped at the limit."""

    rows: list[Any]
    limit: int
    truncated: bool = False

    @property
    def count(self) -> int:
        return len(self.rows)


@dataclass
class WriteSummary:
    """Counters of a write statement; write statements return no rows."""

    counters: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return dict(self.counters)


class GraphGateway(ABC):
    """
    Abstract base class for graph gateways.

    A gateway is an async context manager: entering it acquires the
    connection, leaving it releases the connection on every exit path.

    Example:
        async with Neo4jGateway(descriptor) as gateway:
            info = await gateway.ping()
    """

    async def __aenter__(self) -> "GraphGateway":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        await self.close()
        return False

    @abstractmethod
    async def ping(self) -> ConnectivityInfo:
        """Run a trivial round trip to confirm reachability and credentials."""

    @abstractmethod
    async def execute_read(
        self,
        cypher: str,
        params: Optional[dict[str, Any]] = None,
        limit: int = DEFAULT_LIMIT,
    ) -> ReadResult:
        """Run a read statement and materialize at most `limit` rows."""

    @abstractmethod
    async def execute_write(
        self, cypher: str, params: Optional[dict[str, Any]] = None
    ) -> WriteSummary:
        """Run a write statement and return only its counters."""

    @abstractmethod
    async def execute_mutation(
        self, cypher: str, params: Optional[dict[str, Any]] = None
    ) -> list[Any]:
        """Run a write statement and return its raw records."""

    @abstractmethod
    async def metadata(self, kind: MetadataKind) -> dict[str, Any]:
        """Fetch one kind of schema metadata."""

    async def close(self) -> None:
        """
        Release the connection.

        Override in gateways that hold one.
        """
        pass  # noqa: B027
