"""
lowmain Command Handlers

Each handler module manages one category of commands:

- ping_handler: Connectivity check (ping)
- query_handler: Raw Cypher (query)
- schema_handler: Schema introspection (schema, schema labels, ...)
- node_handler: Node CRUD (node find/get/create/update/delete)
- rel_handler: Relationship commands (rel find/create/delete)

All handlers inherit from BaseHandler, which resolves the connection and
provides the shared argument parsers.

Usage:
    from lowmain.command_handlers import NodeHandler

    handler = NodeHandler(os.environ, Neo4jGateway)
    result = await handler.handle_get(args)
"""

from lowmain.command_handlers.base import BaseHandler, GatewayFactory, validate_identifier
from lowmain.command_handlers.node_handler import NodeHandler
from lowmain.command_handlers.ping_handler import PingHandler
from lowmain.command_handlers.query_handler import QueryHandler
from lowmain.command_handlers.rel_handler import RelHandler
from lowmain.command_handlers.schema_handler import SchemaHandler

__all__ = [
    "BaseHandler",
    "GatewayFactory",
    "NodeHandler",
    "PingHandler",
    "QueryHandler",
    "RelHandler",
    "SchemaHandler",
    "validate_identifier",
]
