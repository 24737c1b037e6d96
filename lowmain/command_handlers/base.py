"""
Base handler for lowmain commands.

Every command handler validates its input first, then resolves the connection
and opens the gateway. Nothing touches the network until validation passes.

Classes:
    BaseHandler: Dependency injection (environment, gateway factory) plus the
        shared argument parsers used by every handler

Functions:
    validate_identifier: Check and backtick-quote a label, relationship type
        or property key before it is placed in Cypher text

Cypher construction:
    Labels, relationship types and property keys cannot be passed as query
    parameters, so they are validated and quoted. Every value (ids, property
    maps, filter values, limits) is passed as a parameter.

Example:
    class MyHandler(BaseHandler):
        async def handle_thing(self, args) -> CommandResult:
            node_id = self.parse_id(args.id, "node")
            async with self.connect(args) as gateway:
                ...
"""

import json
import math
from typing import Any, Callable, Mapping, Optional, Tuple

from lowmain.adapters.base import DEFAULT_LIMIT, GraphGateway
from lowmain.config import CONNECTION_SOURCES, ConnectionDescriptor, resolve
from lowmain.errors import InvalidParams

GatewayFactory = Callable[[ConnectionDescriptor], GraphGateway]

NEXT_NODE_GET_LIMIT = 5

# Ids and limits travel to the server as Bolt integers (signed 64-bit).
MAX_INT64 = 2**63 - 1


def _reject_json_constant(name: str):
    raise ValueError(f"{name} is not a comparable value")


def validate_identifier(name: Optional[str], kind: str = "identifier") -> Tuple[str, Optional[str]]:
    """
    Validate a Cypher identifier and return it backtick-quoted.

    Args:
        name: Label, relationship type or property key supplied by the caller
        kind: What the identifier names, for error messages

    Returns:
        tuple: (quoted_identifier, error_message)
            - If valid: ("`Person`", None)
            - If invalid: (original_input, error_message)

    Examples:
        >>> validate_identifier("Person", "label")
        ("`Person`", None)

        >>> validate_identifier("we`ird", "label")
        ("`we``ird`", None)
    """
    if name is None or not name.strip():
        return name, f"Missing {kind}"
    if "\x00" in name:
        return name, f"Invalid {kind} {name!r}: NUL characters are not allowed"
    return "`" + name.replace("`", "``") + "`", None


class BaseHandler:
    """
    Base class for all command handlers.

    Provides connection resolution and the argument parsers shared by the
    handlers. Each specific handler (NodeHandler, RelHandler, etc.) inherits
    from this.
    """

    def __init__(self, environ: Mapping[str, str], gateway_factory: GatewayFactory):
        """
        Initialize with injected dependencies.

        Args:
            environ: Environment mapping consulted after CLI flags
            gateway_factory: Callable building a GraphGateway from a descriptor
        """
        self.environ = environ
        self.gateway_factory = gateway_factory

    # =========================================================================
    # Connection
    # =========================================================================

    def connection_flags(self, args) -> dict[str, Optional[str]]:
        """Collect connection flags from parsed arguments."""
        return {flag: getattr(args, flag, None) for flag, _ in CONNECTION_SOURCES.values()}

    def connect(self, args) -> GraphGateway:
        """
        Resolve the connection and build the gateway.

        Raises:
            ConnectionNotConfigured: No password by flag or environment
            InvalidParams: Malformed URI or timeout
        """
        descriptor = resolve(self.connection_flags(args), self.environ)
        return self.gateway_factory(descriptor)

    # =========================================================================
    # Argument Parsing
    # =========================================================================

    @staticmethod
    def parse_json_object(raw: Optional[str], flag: str) -> dict[str, Any]:
        """Decode a flag that must hold a JSON object."""
        if raw is None:
            raise InvalidParams(f"Missing {flag}. Provide a JSON object, e.g. {flag}='{{\"name\":\"Alice\"}}'")
        try:
            value = json.loads(raw)
        except ValueError as e:
            raise InvalidParams(f"Invalid {flag} JSON: {e}", context={"flag": flag})
        if not isinstance(value, dict):
            raise InvalidParams(
                f"{flag} must be a JSON object, got {type(value).__name__}",
                context={"flag": flag},
            )
        return value

    @staticmethod
    def parse_id(raw: Optional[str], what: str = "node", flag: Optional[str] = None) -> int:
        """Parse an integer entity id from a positional argument or flag."""
        label = flag or f"{what} ID"
        if raw is None or not str(raw).strip():
            raise InvalidParams(f"Missing {label}")
        try:
            entity_id = int(str(raw).strip())
        except ValueError:
            raise InvalidParams(f"Invalid {label}: {raw}")
        if entity_id < 0:
            raise InvalidParams(f"Invalid {label}: {raw} (ids are non-negative)")
        if entity_id > MAX_INT64:
            raise InvalidParams(f"Invalid {label}: {raw} (ids are 64-bit integers)")
        return entity_id

    @staticmethod
    def parse_limit(raw: Optional[str]) -> int:
        """Parse --limit; defaults to 100 and must be a positive integer."""
        if raw is None:
            return DEFAULT_LIMIT
        try:
            limit = int(str(raw).strip())
        except ValueError:
            limit = 0
        if limit < 1 or limit > MAX_INT64:
            raise InvalidParams(f"Invalid --limit: {raw}. Use a positive integer up to {MAX_INT64}")
        return limit

    @staticmethod
    def quote_identifier(name: Optional[str], kind: str) -> str:
        """validate_identifier() that raises InvalidParams instead of returning the error."""
        quoted, error = validate_identifier(name, kind)
        if error:
            raise InvalidParams(error)
        return quoted

    @staticmethod
    def parse_where(clauses: Optional[list[str]]) -> list[tuple[str, Any]]:
        """
        Parse repeated --where key=value filters.

        Values are decoded as JSON when possible (age=30 -> 30, ok=true -> True)
        and otherwise compared as plain strings. NaN, Infinity, overflowing
        numbers and null can never compare equal, so they stay strings.
        """
        filters = []
        for clause in clauses or []:
            key, sep, raw_value = clause.partition("=")
            if not sep or not key.strip():
                raise InvalidParams(f"Invalid --where format: {clause!r}. Use prop=value")
            try:
                value = json.loads(raw_value, parse_constant=_reject_json_constant)
            except ValueError:
                value = raw_value
            if value is None or (isinstance(value, float) and not math.isfinite(value)):
                value = raw_value
            elif isinstance(value, int) and not isinstance(value, bool):
                if not -MAX_INT64 - 1 <= value <= MAX_INT64:
                    value = raw_value
            filters.append((key.strip(), value))
        return filters
