"""
Graph gateways for lowmain.

Exports:
- GraphGateway: Abstract gateway every command talks to
- Neo4jGateway: Gateway backed by the official Neo4j async driver
- ConnectivityInfo, ReadResult, WriteSummary: Gateway result types
- MetadataKind: Schema metadata selector
"""

from lowmain.adapters.base import (
    DEFAULT_LIMIT,
    FULL_SCHEMA_KINDS,
    ConnectivityInfo,
    GraphGateway,
    MetadataKind,
    ReadResult,
    WriteSummary,
)
from lowmain.adapters.neo4j_adapter import Neo4jGateway, translate_driver_error

__all__ = [
    "DEFAULT_LIMIT",
    "FULL_SCHEMA_KINDS",
    "ConnectivityInfo",
    "GraphGateway",
    "MetadataKind",
    "Neo4jGateway",
    "ReadResult",
    "WriteSummary",
    "translate_driver_error",
]
