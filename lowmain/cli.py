#!/usr/bin/env python3
"""
lowmain command line.

Usage:
    lowmain ping
    lowmain query "MATCH (n) RETURN n" [--params='{"k":1}'] [--limit=N] [--write]
    lowmain schema [labels|types|indexes|constraints|count]
    lowmain node find --label=Person [--where=name=Alice] [--limit=N]
    lowmain node get <id>
    lowmain node create --label=Person --props='{"name":"Alice"}'
    lowmain node update <id> --set='{"age":31}'
    lowmain node delete <id> [--detach]
    lowmain rel find [--from=<id>] [--to=<id>] [--type=KNOWS] [--limit=N]
    lowmain rel create --from=<id> --to=<id> --type=KNOWS [--props=<json>]
    lowmain rel delete <id>

Connection flags (--uri, --user, --password, --db, --timeout) are accepted
before or after the command and override NEO4J_URI, NEO4J_USER,
NEO4J_PASSWORD, NEO4J_DB and NEO4J_TIMEOUT. A .env file in the working
directory is loaded first.

Output:
    Exactly one JSON line on stdout. Logs go to stderr (--log-level or
    LOWMAIN_LOG_LEVEL, default WARNING).

Exit status:
    0 on success, 1 on failure.

--help and --version are the exceptions: argparse prints plain text to
stdout and exits 0 without an envelope. Every other invocation, including
usage errors, emits exactly one envelope.
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import Mapping, Optional, Sequence, TextIO

from dotenv import load_dotenv

from lowmain import __version__
from lowmain.adapters.neo4j_adapter import Neo4jGateway
from lowmain.command_handlers import GatewayFactory
from lowmain.envelope import CommandResult, emit
from lowmain.errors import InvalidParams
from lowmain.routing import build_registry

LOG_LEVEL_ENV = "LOWMAIN_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

SUBCOMMANDS = {
    "schema": ("labels", "types", "indexes", "constraints", "count"),
    "node": ("find", "get", "create", "update", "delete"),
    "rel": ("find", "create", "delete"),
}


class LowmainArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports usage errors as InvalidParams instead of exiting."""

    def error(self, message):
        raise InvalidParams(message, fix=f"Run `{self.prog} --help` for usage")


def _connection_parent() -> argparse.ArgumentParser:
    # SUPPRESS keeps a flag given before the command from being reset by
    # the subcommand parser.
    parent = LowmainArgumentParser(add_help=False)
    group = parent.add_argument_group("connection")
    group.add_argument("--uri", default=argparse.SUPPRESS, help="Neo4j URI (env NEO4J_URI)")
    group.add_argument("--user", default=argparse.SUPPRESS, help="Username (env NEO4J_USER)")
    group.add_argument("--password", default=argparse.SUPPRESS, help="Password (env NEO4J_PASSWORD)")
    group.add_argument("--db", default=argparse.SUPPRESS, help="Database name (env NEO4J_DB)")
    group.add_argument("--timeout", default=argparse.SUPPRESS, help="Connect timeout in seconds (env NEO4J_TIMEOUT)")
    group.add_argument("--log-level", default=argparse.SUPPRESS, help=f"Log level (env {LOG_LEVEL_ENV})")
    return parent


def build_parser() -> LowmainArgumentParser:
    """Build the full lowmain argument parser."""
    conn = _connection_parent()
    parser = LowmainArgumentParser(
        prog="lowmain",
        description="Agent-first Neo4j CLI. Prints one JSON envelope per invocation.",
        parents=[conn],
    )
    parser.add_argument("--version", action="version", version=f"lowmain {__version__}")
    commands = parser.add_subparsers(dest="group", metavar="command")

    # ping
    ping = commands.add_parser("ping", parents=[conn], help="Check connectivity")
    ping.set_defaults(operation="ping")

    # query
    query = commands.add_parser("query", parents=[conn], help="Run a Cypher statement")
    query.add_argument("cypher", nargs="?", help="Cypher statement")
    query.add_argument("--params", help="Parameters as a JSON object")
    query.add_argument("--limit", help="Maximum rows to return (default 100)")
    query.add_argument("--write", action="store_true", help="Run in write mode, return counters")
    query.set_defaults(operation="query")

    # schema
    schema = commands.add_parser("schema", parents=[conn], help="Inspect the schema")
    schema.set_defaults(operation="schema")
    schema_commands = schema.add_subparsers(dest="subcommand", metavar="subcommand")
    for name in SUBCOMMANDS["schema"]:
        sub = schema_commands.add_parser(name, parents=[conn], help=f"Show {name}")
        sub.set_defaults(operation=f"schema {name}")

    # node
    node = commands.add_parser("node", parents=[conn], help="Node commands")
    node.set_defaults(operation="node")
    node_commands = node.add_subparsers(dest="subcommand", metavar="subcommand")

    node_find = node_commands.add_parser("find", parents=[conn], help="Find nodes by label")
    node_find.add_argument("--label", help="Node label")
    node_find.add_argument("--where", action="append", help="Property filter prop=value (repeatable)")
    node_find.add_argument("--limit", help="Maximum nodes to return (default 100)")

    node_get = node_commands.add_parser("get", parents=[conn], help="Get a node by id")
    node_get.add_argument("id", nargs="?", help="Node id")

    node_create = node_commands.add_parser("create", parents=[conn], help="Create a node")
    node_create.add_argument("--label", help="Node label")
    node_create.add_argument("--props", help="Properties as a JSON object")

    node_update = node_commands.add_parser("update", parents=[conn], help="Merge properties into a node")
    node_update.add_argument("id", nargs="?", help="Node id")
    node_update.add_argument("--set", help="Properties to set as a JSON object (null removes)")

    node_delete = node_commands.add_parser("delete", parents=[conn], help="Delete a node")
    node_delete.add_argument("id", nargs="?", help="Node id")
    node_delete.add_argument("--detach", action="store_true", help="Also delete its relationships")

    for name, sub in (
        ("find", node_find),
        ("get", node_get),
        ("create", node_create),
        ("update", node_update),
        ("delete", node_delete),
    ):
        sub.set_defaults(operation=f"node {name}")

    # rel
    rel = commands.add_parser("rel", parents=[conn], help="Relationship commands")
    rel.set_defaults(operation="rel")
    rel_commands = rel.add_subparsers(dest="subcommand", metavar="subcommand")

    rel_find = rel_commands.add_parser("find", parents=[conn], help="Find relationships")
    rel_find.add_argument("--from", dest="from_id", help="Start node id")
    rel_find.add_argument("--to", dest="to_id", help="End node id")
    rel_find.add_argument("--type", help="Relationship type")
    rel_find.add_argument("--limit", help="Maximum relationships to return (default 100)")

    rel_create = rel_commands.add_parser("create", parents=[conn], help="Create a relationship")
    rel_create.add_argument("--from", dest="from_id", help="Start node id")
    rel_create.add_argument("--to", dest="to_id", help="End node id")
    rel_create.add_argument("--type", help="Relationship type")
    rel_create.add_argument("--props", help="Properties as a JSON object")

    rel_delete = rel_commands.add_parser("delete", parents=[conn], help="Delete a relationship")
    rel_delete.add_argument("id", nargs="?", help="Relationship id")

    for name, sub in (("find", rel_find), ("create", rel_create), ("delete", rel_delete)):
        sub.set_defaults(operation=f"rel {name}")

    return parser


def command_label(argv: Sequence[str]) -> str:
    """Best-effort operation name for envelopes built before parsing succeeds."""
    words = []
    for token in argv:
        if token.startswith("-"):
            break
        words.append(token)
    if not words:
        return "lowmain"
    group = words[0]
    if len(words) > 1 and words[1] in SUBCOMMANDS.get(group, ()):
        return f"{group} {words[1]}"
    return group


def configure_logging(level_name: Optional[str]) -> None:
    """Send logs to stderr at the requested level; stdout carries only the envelope."""
    level = logging.getLevelName((level_name or "WARNING").upper())
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)
    logging.getLogger("lowmain").setLevel(level)
    # The driver is chatty at INFO; only show it when debugging.
    logging.getLogger("neo4j").setLevel(level if level <= logging.DEBUG else logging.ERROR)


def main(
    argv: Optional[Sequence[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
    gateway_factory: Optional[GatewayFactory] = None,
    stream: Optional[TextIO] = None,
) -> int:
    """
    Run one lowmain invocation.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])
        environ: Environment mapping; when omitted, .env is loaded into
            os.environ and os.environ is used
        gateway_factory: Callable building the gateway (defaults to Neo4jGateway)
        stream: Where the JSON envelope is written (defaults to stdout)

    Returns:
        Process exit status: 0 on success, 1 on failure
    """
    if environ is None:
        load_dotenv()
        environ = os.environ
    argv = list(sys.argv[1:] if argv is None else argv)

    try:
        args = build_parser().parse_args(argv)
    except InvalidParams as e:
        configure_logging(environ.get(LOG_LEVEL_ENV))
        return emit(CommandResult.from_exception(command_label(argv), e), stream)

    configure_logging(getattr(args, "log_level", None) or environ.get(LOG_LEVEL_ENV))

    registry = build_registry(environ, gateway_factory or Neo4jGateway)
    result = asyncio.run(registry.dispatch(getattr(args, "operation", None), args))
    return emit(result, stream)


if __name__ == "__main__":
    sys.exit(main())
