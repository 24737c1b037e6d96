"""
Neo4j gateway for lowmain.

Runs every command against a Neo4j server through the official async driver:
- One driver per invocation, created on enter and closed on exit
- One session per operation, closed on every exit path
- Auto-commit transactions only (no driver-side retry loop)
- Driver failures translated into GatewayError subclasses by exception class
  and Neo4j status code, never by message text

Usage:
    async with Neo4jGateway(descriptor) as gateway:
        info = await gateway.ping()
        result = await gateway.execute_read("MATCH (n) RETURN n", {}, limit=5)

Status codes:
    Neo.ClientError.Security.*                          -> AuthRejected
    Neo.ClientError.Statement.SyntaxError               -> StatementInvalid
    Neo.ClientError.Schema.ConstraintValidationFailed   -> ConstraintViolated
    Neo.ClientError.Schema.*AlreadyExists               -> ConstraintViolated
    Neo.TransientError.*                                -> Unreachable
    anything else                                       -> ExecutionFailed
"""

import asyncio
import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

from neo4j import READ_ACCESS, WRITE_ACCESS, AsyncGraphDatabase
from neo4j.exceptions import (
    AuthError,
    ConstraintError,
    DriverError,
    Neo4jError,
    ServiceUnavailable,
    SessionExpired,
    TransientError,
)

from lowmain import __version__
from lowmain.adapters.base import (
    DEFAULT_LIMIT,
    ConnectivityInfo,
    GraphGateway,
    MetadataKind,
    ReadResult,
    WriteSummary,
)
from lowmain.config import ConnectionDescriptor
from lowmain.convert import convert_record
from lowmain.errors import (
    AuthRejected,
    ConstraintViolated,
    ExecutionFailed,
    GatewayError,
    StatementInvalid,
    Unreachable,
)

logger = logging.getLogger(__name__)

PING_QUERY = "RETURN 1 AS ok"

LABELS_QUERY = "CALL db.labels() YIELD label RETURN label ORDER BY label"
RELATIONSHIP_TYPES_QUERY = (
    "CALL db.relationshipTypes() YIELD relationshipType "
    "RETURN relationshipType ORDER BY relationshipType"
)
INDEXES_QUERY = "SHOW INDEXES YIELD name, type, labelsOrTypes, properties, state"
CONSTRAINTS_QUERY = "SHOW CONSTRAINTS YIELD name, type, labelsOrTypes, properties"
NODE_COUNT_QUERY = "MATCH (n) RETURN count(n) AS node_count"
RELATIONSHIP_COUNT_QUERY = "MATCH ()-[r]->() RETURN count(r) AS relationship_count"

SUMMARY_COUNTERS = (
    "nodes_created",
    "nodes_deleted",
    "relationships_created",
    "relationships_deleted",
    "properties_set",
    "labels_added",
    "labels_removed",
    "indexes_added",
    "indexes_removed",
    "constraints_added",
    "constraints_removed",
    "system_updates",
    "contains_updates",
)

SYNTAX_ERROR_CODE = "Neo.ClientError.Statement.SyntaxError"
SECURITY_CODE_PREFIX = "Neo.ClientError.Security."
CONSTRAINT_FAILED_CODE = "Neo.ClientError.Schema.ConstraintValidationFailed"
SCHEMA_CODE_PREFIX = "Neo.ClientError.Schema."
TRANSIENT_CODE_PREFIX = "Neo.TransientError."


# =============================================================================
# Driver Error Translation
# =============================================================================


def translate_driver_error(exc: BaseException) -> GatewayError:
    """
    Map a driver or socket failure to a GatewayError.

    Args:
        exc: Exception raised by the neo4j driver or the network stack

    Returns:
        GatewayError subclass matching the failure category
    """
    message = str(exc) or type(exc).__name__

    if isinstance(exc, (ServiceUnavailable, SessionExpired, OSError, asyncio.TimeoutError)):
        return Unreachable(f"Connection failed: {message}")

    code = getattr(exc, "code", None) or ""

    if isinstance(exc, AuthError) or code.startswith(SECURITY_CODE_PREFIX):
        return AuthRejected(f"Authentication failed: {message}", context={"code": code})
    if code == SYNTAX_ERROR_CODE:
        return StatementInvalid(f"Cypher syntax error: {message}", context={"code": code})
    if (
        isinstance(exc, ConstraintError)
        or code == CONSTRAINT_FAILED_CODE
        or (code.startswith(SCHEMA_CODE_PREFIX) and code.endswith("AlreadyExists"))
    ):
        return ConstraintViolated(f"Constraint violation: {message}", context={"code": code})
    if isinstance(exc, TransientError) or code.startswith(TRANSIENT_CODE_PREFIX):
        return Unreachable(f"Transient failure: {message}", context={"code": code})

    context = {"code": code} if code else {"error_type": type(exc).__name__}
    return ExecutionFailed(f"Query failed: {message}", context=context)


@contextmanager
def driver_errors() -> Iterator[None]:
    """Re-raise driver failures as GatewayError, chaining the original."""
    try:
        yield
    except (Neo4jError, DriverError, OSError, asyncio.TimeoutError) as exc:
        raise translate_driver_error(exc) from exc


# =============================================================================
# Session Context Manager
# =============================================================================


class Neo4jSessionContext:
    """
    Async context manager for one Neo4j session.

    Provides:
    - Session creation against the configured database
    - Read or write access mode
    - Exception-safe session close

    Usage:
        async with gateway.session_context(READ_ACCESS) as session:
            result = await session.run(query, params)
    """

    def __init__(self, driver, database: str, access_mode: str = READ_ACCESS):
        self._driver = driver
        self._database = database
        self._access_mode = access_mode
        self._session = None

    async def __aenter__(self):
        self._session = self._driver.session(
            database=self._database, default_access_mode=self._access_mode
        )
        return self._session

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._session is not None:
            try:
                await self._session.close()
            except Exception as close_error:
                # The original failure is the one worth reporting
                if exc_type is None:
                    raise
                logger.debug("Session close failed after error: %s", close_error)
        return False


# =============================================================================
# Gateway
# =============================================================================


class Neo4jGateway(GraphGateway):
    """
    Graph gateway backed by a Neo4j server.

    Connection Lifecycle:
        Entering the gateway creates the driver; leaving it closes the driver,
        whether the command succeeded, failed, or returned early. Each
        operation borrows a session for its own round trip(s) only.

    Timeouts:
        descriptor.timeout bounds both connection establishment and pool
        acquisition; expiry surfaces as Unreachable (CONNECTION_FAILED).
    """

    def __init__(
        self,
        descriptor: ConnectionDescriptor,
        driver_factory: Optional[Callable[..., Any]] = None,
    ):
        """
        Initialize the gateway.

        Args:
            descriptor: Resolved connection settings
            driver_factory: Callable building the async driver (defaults to
                AsyncGraphDatabase.driver)
        """
        self._descriptor = descriptor
        self._driver_factory = driver_factory or AsyncGraphDatabase.driver
        self._driver = None

    async def __aenter__(self) -> "Neo4jGateway":
        logger.debug("Connecting to %s (db=%s)", self._descriptor.uri, self._descriptor.database)
        with driver_errors():
            try:
                self._driver = self._driver_factory(
                    self._descriptor.uri,
                    auth=self._descriptor.auth,
                    connection_timeout=self._descriptor.timeout,
                    connection_acquisition_timeout=self._descriptor.timeout,
                    max_connection_pool_size=1,
                    user_agent=f"lowmain/{__version__}",
                )
            except ValueError as exc:
                raise ExecutionFailed(f"Invalid driver configuration: {exc}") from exc
        return self

    async def close(self) -> None:
        """Close the driver connection."""
        if self._driver is not None:
            driver, self._driver = self._driver, None
            await driver.close()

    def session_context(self, access_mode: str = READ_ACCESS) -> Neo4jSessionContext:
        if self._driver is None:
            raise RuntimeError("Neo4jGateway used outside `async with`")
        return Neo4jSessionContext(self._driver, self._descriptor.database, access_mode)

    # =========================================================================
    # Operations
    # =========================================================================

    async def ping(self) -> ConnectivityInfo:
        """Check Neo4j connectivity and credentials."""
        with driver_errors():
            async with self.session_context(READ_ACCESS) as session:
                result = await session.run(PING_QUERY)
                record = await result.single()
                summary = await result.consume()

        if record is None or record["ok"] != 1:
            raise ExecutionFailed("Neo4j health check returned no result")

        server = getattr(summary, "server", None)
        logger.debug("Connected to %s", getattr(server, "agent", "unknown server"))
        return ConnectivityInfo(uri=self._descriptor.uri, database=self._descriptor.database)

    async def execute_read(
        self,
        cypher: str,
        params: Optional[dict[str, Any]] = None,
        limit: int = DEFAULT_LIMIT,
    ) -> ReadResult:
        """
        Run a read statement and keep at most `limit` records.

        Records past the limit are never materialized; `truncated` reports
        whether at least one more record existed.
        """
        logger.debug("read: %s", cypher)
        rows: list[Any] = []
        truncated = False

        with driver_errors():
            async with self.session_context(READ_ACCESS) as session:
                result = await session.run(cypher, params or {})
                async for record in result:
                    if len(rows) >= limit:
                        truncated = True
                        break
                    rows.append(record)
                await result.consume()

        return ReadResult(rows=rows, limit=limit, truncated=truncated)

    async def execute_write(
        self, cypher: str, params: Optional[dict[str, Any]] = None
    ) -> WriteSummary:
        """Run a write statement, discarding rows and returning counters."""
        logger.debug("write: %s", cypher)
        with driver_errors():
            async with self.session_context(WRITE_ACCESS) as session:
                result = await session.run(cypher, params or {})
                summary = await result.consume()

        counters = summary.counters
        return WriteSummary(
            counters={name: getattr(counters, name) for name in SUMMARY_COUNTERS}
        )

    async def execute_mutation(
        self, cypher: str, params: Optional[dict[str, Any]] = None
    ) -> list[Any]:
        """Run a write statement and return every record it produced."""
        logger.debug("mutation: %s", cypher)
        with driver_errors():
            async with self.session_context(WRITE_ACCESS) as session:
                result = await session.run(cypher, params or {})
                records = [record async for record in result]
                await result.consume()
        return records

    async def metadata(self, kind: MetadataKind) -> dict[str, Any]:
        """Fetch labels, relationship types, indexes, constraints or counts."""
        kind = MetadataKind(kind)

        if kind is MetadataKind.LABELS:
            records = await self._fetch_all(LABELS_QUERY)
            return {"labels": [r["label"] for r in records]}

        if kind is MetadataKind.RELATIONSHIP_TYPES:
            records = await self._fetch_all(RELATIONSHIP_TYPES_QUERY)
            return {"relationship_types": [r["relationshipType"] for r in records]}

        if kind is MetadataKind.INDEXES:
            records = await self._fetch_all(INDEXES_QUERY)
            return {"indexes": [convert_record(r) for r in records]}

        if kind is MetadataKind.CONSTRAINTS:
            records = await self._fetch_all(CONSTRAINTS_QUERY)
            return {"constraints": [convert_record(r) for r in records]}

        node_rows = await self._fetch_all(NODE_COUNT_QUERY)
        rel_rows = await self._fetch_all(RELATIONSHIP_COUNT_QUERY)
        return {
            "node_count": node_rows[0]["node_count"] if node_rows else 0,
            "relationship_count": rel_rows[0]["relationship_count"] if rel_rows else 0,
        }

    async def _fetch_all(self, cypher: str) -> list[Any]:
        with driver_errors():
            async with self.session_context(READ_ACCESS) as session:
                result = await session.run(cypher)
                return [record async for record in result]
