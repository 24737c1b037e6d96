"""
lowmain Error Handling.

Provides the closed exception hierarchy for every failure a command can hit,
and the classifier that turns any exception into an ErrorRecord for the
response envelope.

Hierarchy:
    LowmainError
    ├── ConfigError
    │   ├── ConnectionNotConfigured
    │   └── InvalidParams
    └── GatewayError
        ├── Unreachable
        ├── AuthRejected
        ├── StatementInvalid
        ├── ConstraintViolated
        ├── ExecutionFailed
        └── EntityNotFound
            ├── NodeNotFound
            └── RelationshipNotFound

classify() is total: anything outside the hierarchy degrades to QUERY_FAILED.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Closed set of error codes surfaced to callers."""

    CONNECTION_FAILED = "CONNECTION_FAILED"
    AUTH_FAILED = "AUTH_FAILED"
    CONNECTION_NOT_CONFIGURED = "CONNECTION_NOT_CONFIGURED"
    CYPHER_SYNTAX_ERROR = "CYPHER_SYNTAX_ERROR"
    CONSTRAINT_VIOLATION = "CONSTRAINT_VIOLATION"
    QUERY_FAILED = "QUERY_FAILED"
    NODE_NOT_FOUND = "NODE_NOT_FOUND"
    REL_NOT_FOUND = "REL_NOT_FOUND"
    INVALID_PARAMS = "INVALID_PARAMS"


@dataclass(frozen=True)
class ErrorRecord:
    """Terminal error outcome of one command."""

    code: ErrorCode
    message: str
    retryable: bool
    fix: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "retryable": self.retryable,
            "fix": self.fix,
        }


class LowmainError(Exception):
    """
    Base exception for all lowmain errors.

    Attributes:
        message: Human-readable error description
        context: Additional context about the error
        fix: Remediation hint overriding the catalog default (optional)
    """

    def __init__(
        self,
        message: str,
        context: Optional[dict[str, Any]] = None,
        fix: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.fix = fix

    def __str__(self) -> str:
        return self.message

    @property
    def retryable(self) -> bool:
        return classify(self).retryable

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "retryable": self.retryable,
        }


# Configuration and Input Errors


class ConfigError(LowmainError):
    """Problem with the invocation itself, detected before any network call."""


class ConnectionNotConfigured(ConfigError):
    """No password was supplied by flag or environment."""

    def __init__(self, message: str = "Connection not configured: NEO4J_PASSWORD is required"):
        super().__init__(message)


class InvalidParams(ConfigError):
    """Malformed flags, arguments or JSON input."""

    def __init__(self, reason: str, context: Optional[dict[str, Any]] = None, fix: Optional[str] = None):
        super().__init__(f"Invalid parameters: {reason}", context=context, fix=fix)
        self.reason = reason


# Gateway Errors


class GatewayError(LowmainError):
    """Failure reported by the graph gateway during a round trip."""


class Unreachable(GatewayError):
    """
    The database could not be reached, or the connection timed out.

    The only retryable failure: repeating the same invocation may succeed.
    """


class AuthRejected(GatewayError):
    """The server refused the supplied credentials."""


class StatementInvalid(GatewayError):
    """The Cypher statement failed to parse."""


class ConstraintViolated(GatewayError):
    """A schema constraint or a delete-with-relationships check failed."""


class ExecutionFailed(GatewayError):
    """The statement was valid but the server could not execute it."""


class EntityNotFound(GatewayError):
    """A node or relationship addressed by id does not exist."""

    kind = "entity"

    def __init__(self, entity_id: Any, message: Optional[str] = None):
        super().__init__(
            message or f"{self.kind.capitalize()} not found: {entity_id}",
            context={"id": entity_id},
        )
        self.entity_id = entity_id


class NodeNotFound(EntityNotFound):
    kind = "node"


class RelationshipNotFound(EntityNotFound):
    kind = "relationship"


# =============================================================================
# Error Catalog
# =============================================================================

# (code, retryable, default fix); "{id}" is filled from EntityNotFound.
ERROR_CATALOG: dict[type, tuple[ErrorCode, bool, str]] = {
    ConnectionNotConfigured: (
        ErrorCode.CONNECTION_NOT_CONFIGURED,
        False,
        "Set NEO4J_PASSWORD env var or pass --password. Example: NEO4J_PASSWORD=secret lowmain ping",
    ),
    InvalidParams: (
        ErrorCode.INVALID_PARAMS,
        False,
        "Check parameter format. --params, --props and --set expect a JSON object, ids expect integers",
    ),
    Unreachable: (
        ErrorCode.CONNECTION_FAILED,
        True,
        "Check that Neo4j is running and the URI is correct. Default: bolt://localhost:7687",
    ),
    AuthRejected: (
        ErrorCode.AUTH_FAILED,
        False,
        "Check NEO4J_USER and NEO4J_PASSWORD, or pass --user and --password",
    ),
    StatementInvalid: (
        ErrorCode.CYPHER_SYNTAX_ERROR,
        False,
        "Check Cypher syntax. Run `lowmain schema` to see available labels and types",
    ),
    ConstraintViolated: (
        ErrorCode.CONSTRAINT_VIOLATION,
        False,
        "Check `lowmain schema constraints` for active constraints",
    ),
    ExecutionFailed: (
        ErrorCode.QUERY_FAILED,
        False,
        "Check the query and parameters. Run `lowmain schema` to explore the database",
    ),
    NodeNotFound: (
        ErrorCode.NODE_NOT_FOUND,
        False,
        "No node with ID {id}. Run `lowmain node find --label=<label>` to list nodes",
    ),
    RelationshipNotFound: (
        ErrorCode.REL_NOT_FOUND,
        False,
        "No relationship with ID {id}. Run `lowmain rel find` to list relationships",
    ),
}

FALLBACK_ENTRY: tuple[ErrorCode, bool, str] = ERROR_CATALOG[ExecutionFailed]

# Follow-up commands attached to failure envelopes.
ERROR_NEXT_ACTIONS: dict[ErrorCode, list[str]] = {
    ErrorCode.CONNECTION_FAILED: ["lowmain ping"],
    ErrorCode.AUTH_FAILED: ["lowmain ping --user=<user> --password=<password>"],
    ErrorCode.CONNECTION_NOT_CONFIGURED: ["lowmain ping --password=<password>"],
    ErrorCode.CYPHER_SYNTAX_ERROR: ["lowmain schema"],
    ErrorCode.CONSTRAINT_VIOLATION: ["lowmain schema constraints"],
    ErrorCode.QUERY_FAILED: ["lowmain schema"],
    ErrorCode.NODE_NOT_FOUND: ["lowmain node find --label=<label>"],
    ErrorCode.REL_NOT_FOUND: ["lowmain rel find"],
    ErrorCode.INVALID_PARAMS: [],
}


def _catalog_entry(error: BaseException) -> Optional[tuple[ErrorCode, bool, str]]:
    for cls in type(error).__mro__:
        entry = ERROR_CATALOG.get(cls)
        if entry is not None:
            return entry
    return None


def classify(error: BaseException) -> ErrorRecord:
    """
    Map any exception onto exactly one ErrorRecord.

    Args:
        error: Exception raised while running a command

    Returns:
        ErrorRecord with code, message, retryable flag and fix hint
    """
    entry = _catalog_entry(error)
    if entry is None:
        code, retryable, fix = FALLBACK_ENTRY
        return ErrorRecord(
            code=code,
            message=f"Query failed: {type(error).__name__}: {error}",
            retryable=retryable,
            fix=fix,
        )

    code, retryable, fix = entry
    if isinstance(error, LowmainError) and error.fix:
        fix = error.fix
    elif isinstance(error, EntityNotFound):
        fix = fix.format(id=error.entity_id)

    message = error.message if isinstance(error, LowmainError) else str(error)
    return ErrorRecord(code=code, message=message, retryable=retryable, fix=fix)


def log_error_with_context(
    error: BaseException,
    component: str = "lowmain",
    additional_context: Optional[dict[str, Any]] = None,
) -> None:
    """
    Log an error with full context for debugging.

    Args:
        error: Exception to log
        component: Component name where error occurred
        additional_context: Extra context to include in log
    """
    context = dict(additional_context or {})

    if isinstance(error, LowmainError):
        context.update(error.to_dict())
        logger.warning(
            f"[{component}] {classify(error).code.value}: {error.message}",
            extra={"lowmain_context": context},
        )
    else:
        logger.error(
            f"[{component}] Unexpected error: {error}",
            extra={"context": context},
            exc_info=error,
        )
