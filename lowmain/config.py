"""
Connection configuration resolution.

Every field resolves from: explicit CLI flag > environment variable > default.
The password has no default; without it no gateway call is attempted.
"""

from dataclasses import dataclass, field
from typing import Mapping, Optional

from lowmain.errors import ConnectionNotConfigured, InvalidParams

DEFAULT_URI = "bolt://localhost:7687"
DEFAULT_USER = "neo4j"
DEFAULT_DB = "neo4j"
DEFAULT_TIMEOUT = 10.0

VALID_SCHEMES = ("bolt", "bolt+s", "bolt+ssc", "neo4j", "neo4j+s", "neo4j+ssc")

# field name -> (flag name, environment variable)
CONNECTION_SOURCES = {
    "uri": ("uri", "NEO4J_URI"),
    "user": ("user", "NEO4J_USER"),
    "password": ("password", "NEO4J_PASSWORD"),
    "database": ("db", "NEO4J_DB"),
    "timeout": ("timeout", "NEO4J_TIMEOUT"),
}


@dataclass(frozen=True)
class ConnectionDescriptor:
    """Everything needed to reach one database for one invocation."""

    uri: str
    user: str
    password: str = field(repr=False)
    database: str
    timeout: float = DEFAULT_TIMEOUT

    @property
    def auth(self) -> tuple[str, str]:
        return (self.user, self.password)


def resolve_value(
    flags: Mapping[str, Optional[str]],
    environ: Mapping[str, str],
    field_name: str,
    default: Optional[str] = None,
) -> Optional[str]:
    """Resolve one field; empty strings count as absent."""
    flag, env_key = CONNECTION_SOURCES[field_name]
    value = flags.get(flag)
    if value:
        return value
    value = environ.get(env_key)
    if value:
        return value
    return default


def _validate_uri(uri: str) -> str:
    scheme, sep, rest = uri.partition("://")
    if not sep or scheme.lower() not in VALID_SCHEMES or not rest:
        raise InvalidParams(
            f"Unsupported Neo4j URI: {uri!r}",
            fix=f"Use a URI like {DEFAULT_URI}. Supported schemes: {', '.join(VALID_SCHEMES)}",
        )
    return uri


def _parse_timeout(raw: str) -> float:
    try:
        timeout = float(raw)
    except ValueError:
        timeout = 0.0
    if not timeout > 0 or timeout == float("inf"):
        raise InvalidParams(
            f"Invalid timeout: {raw!r}",
            fix="Pass --timeout (or NEO4J_TIMEOUT) as a positive number of seconds",
        )
    return timeout


def connection_info(
    flags: Mapping[str, Optional[str]], environ: Mapping[str, str]
) -> tuple[str, str]:
    """Return the URI and database name for display, without requiring a password."""
    uri = resolve_value(flags, environ, "uri", DEFAULT_URI)
    db = resolve_value(flags, environ, "database", DEFAULT_DB)
    return uri, db


def resolve(
    flags: Mapping[str, Optional[str]], environ: Mapping[str, str]
) -> ConnectionDescriptor:
    """
    Build the ConnectionDescriptor for this invocation.

    Args:
        flags: Connection flags from the command line (uri, user, password, db, timeout)
        environ: Environment mapping (usually os.environ)

    Returns:
        ConnectionDescriptor

    Raises:
        ConnectionNotConfigured: Neither --password nor NEO4J_PASSWORD is set
        InvalidParams: URI scheme or timeout is malformed
    """
    password = resolve_value(flags, environ, "password")
    if not password:
        raise ConnectionNotConfigured()

    uri, database = connection_info(flags, environ)
    return ConnectionDescriptor(
        uri=_validate_uri(uri),
        user=resolve_value(flags, environ, "user", DEFAULT_USER),
        password=password,
        database=database,
        timeout=_parse_timeout(resolve_value(flags, environ, "timeout", str(DEFAULT_TIMEOUT))),
    )
