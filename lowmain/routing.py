"""
CommandRegistry - Operation registration, lookup and dispatch.

Maps operation names ("ping", "node find", "schema labels", ...) to handler
coroutines. dispatch() is the single place where exceptions become failure
envelopes: whatever a handler raises, the caller gets a CommandResult.
"""

import logging
from typing import Any, Awaitable, Callable, Mapping, Optional

from lowmain.command_handlers import (
    GatewayFactory,
    NodeHandler,
    PingHandler,
    QueryHandler,
    RelHandler,
    SchemaHandler,
)
from lowmain.envelope import CommandResult
from lowmain.errors import InvalidParams, classify, log_error_with_context

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Awaitable[CommandResult]]


class CommandRegistry:
    """
    Manages registration and lookup of lowmain operations.

    Operation names are space-separated paths; the first word is the command
    group. A group may itself be an operation (`schema`) or only a namespace
    for its subcommands (`node`).

    Example:
        registry = CommandRegistry()
        registry.register("ping", ping.handle_ping, "Check connectivity")

        result = await registry.dispatch("ping", args)
    """

    def __init__(self):
        """Initialize an empty command registry."""
        # {operation: (handler_coroutine, description)}
        self._commands: dict[str, tuple[Handler, str]] = {}

    def register(self, operation: str, handler: Handler, description: str) -> None:
        """
        Register a single operation with its handler.

        Args:
            operation: Operation name, e.g. "node get"
            handler: Coroutine function taking the parsed arguments
            description: Human-readable description for help text
        """
        self._commands[operation] = (handler, description)

    def register_batch(self, commands: dict[str, tuple[Handler, str]]) -> None:
        """Register multiple operations at once."""
        for operation, (handler, description) in commands.items():
            self.register(operation, handler, description)

    def get(self, operation: str) -> Optional[tuple[Handler, str]]:
        """Get (handler, description) for an operation, or None."""
        return self._commands.get(operation)

    def has_command(self, operation: str) -> bool:
        return operation in self._commands

    def get_command_names(self) -> list[str]:
        """All operation names in registration order."""
        return list(self._commands)

    def groups(self) -> list[str]:
        """Top-level command names, in registration order."""
        seen = []
        for operation in self._commands:
            group = operation.split(" ", 1)[0]
            if group not in seen:
                seen.append(group)
        return seen

    def subcommands(self, group: str) -> list[str]:
        """Operations nested under a group, e.g. "node" -> ["node find", ...]."""
        prefix = group + " "
        return [op for op in self._commands if op.startswith(prefix)]

    async def dispatch(self, operation: Optional[str], args: Any) -> CommandResult:
        """
        Run one operation and always return a CommandResult.

        Args:
            operation: Operation name from the parser (None when no command given)
            args: Parsed arguments handed to the handler

        Returns:
            Success envelope from the handler, or a failure envelope built
            from whatever the handler raised
        """
        entry = self.get(operation) if operation else None
        if entry is None:
            return self._missing_command(operation)

        handler, _ = entry
        logger.debug("Dispatching %s", operation)
        try:
            return await handler(args)
        except Exception as e:
            log_error_with_context(e, component=operation)
            return CommandResult.from_exception(operation, e)

    def _missing_command(self, operation: Optional[str]) -> CommandResult:
        if operation and self.subcommands(operation):
            error = InvalidParams(f"Missing subcommand for `{operation}`")
            next_actions = [f"lowmain {op}" for op in self.subcommands(operation)]
            return CommandResult.fail(operation, classify(error), next_actions)

        error = InvalidParams(f"Unknown command: {operation}" if operation else "Missing command")
        next_actions = [f"lowmain {group}" for group in self.groups()]
        return CommandResult.fail(operation or "lowmain", classify(error), next_actions)


def build_registry(environ: Mapping[str, str], gateway_factory: GatewayFactory) -> CommandRegistry:
    """
    Create the registry with every lowmain operation wired to its handler.

    Args:
        environ: Environment mapping for connection resolution
        gateway_factory: Callable building a GraphGateway from a descriptor

    Returns:
        Populated CommandRegistry
    """
    ping = PingHandler(environ, gateway_factory)
    query = QueryHandler(environ, gateway_factory)
    schema = SchemaHandler(environ, gateway_factory)
    node = NodeHandler(environ, gateway_factory)
    rel = RelHandler(environ, gateway_factory)

    registry = CommandRegistry()
    registry.register_batch(
        {
            "ping": (ping.handle_ping, "Check connectivity and credentials"),
            "query": (query.handle_query, "Run a Cypher statement"),
            "schema": (schema.handle_schema, "Labels, relationship types, indexes and constraints"),
            "schema labels": (schema.handle_labels, "List node labels"),
            "schema types": (schema.handle_types, "List relationship types"),
            "schema indexes": (schema.handle_indexes, "List indexes"),
            "schema constraints": (schema.handle_constraints, "List constraints"),
            "schema count": (schema.handle_count, "Count nodes and relationships"),
            "node find": (node.handle_find, "Find nodes by label"),
            "node get": (node.handle_get, "Get a node by id"),
            "node create": (node.handle_create, "Create a node"),
            "node update": (node.handle_update, "Merge properties into a node"),
            "node delete": (node.handle_delete, "Delete a node"),
            "rel find": (rel.handle_find, "Find relationships"),
            "rel create": (rel.handle_create, "Create a relationship"),
            "rel delete": (rel.handle_delete, "Delete a relationship"),
        }
    )
    return registry
