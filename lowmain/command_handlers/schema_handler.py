"""
SchemaHandler - Handles schema introspection commands.

Commands:
    schema                      - Labels, relationship types, indexes and constraints
    schema labels               - Node labels
    schema types                - Relationship types
    schema indexes              - Indexes
    schema constraints          - Constraints
    schema count                - Node and relationship totals

A full `schema` is all-or-nothing: if any sub-fetch fails the command fails
with that error and no partial schema is returned.
"""

from lowmain.adapters.base import FULL_SCHEMA_KINDS, MetadataKind
from lowmain.command_handlers.base import BaseHandler
from lowmain.envelope import CommandResult

# Suggested follow-ups per discovered label, capped to keep output small.
MAX_LABEL_ACTIONS = 5


def _label_actions(labels: list[str]) -> list[str]:
    return [f"lowmain node find --label={label}" for label in labels[:MAX_LABEL_ACTIONS]]


class SchemaHandler(BaseHandler):
    """
    Handler for schema introspection commands.

    Each subcommand fetches exactly one MetadataKind; the bare `schema`
    command fetches every kind in FULL_SCHEMA_KINDS in order.
    """

    async def handle_schema(self, args) -> CommandResult:
        """Handle bare `schema` - everything except node and relationship totals."""
        data = {}
        async with self.connect(args) as gateway:
            for kind in FULL_SCHEMA_KINDS:
                data.update(await gateway.metadata(kind))

        next_actions = _label_actions(data.get("labels", []))
        next_actions += ['lowmain query "<cypher>"', "lowmain schema count"]
        return CommandResult.ok("schema", data, next_actions=next_actions)

    async def _fetch(self, args, kind: MetadataKind) -> dict:
        async with self.connect(args) as gateway:
            return await gateway.metadata(kind)

    async def handle_labels(self, args) -> CommandResult:
        """Handle `schema labels`."""
        data = await self._fetch(args, MetadataKind.LABELS)
        next_actions = _label_actions(data["labels"]) or ["lowmain node create --label=<label> --props=<json>"]
        return CommandResult.ok("schema labels", data, next_actions=next_actions)

    async def handle_types(self, args) -> CommandResult:
        """Handle `schema types`."""
        data = await self._fetch(args, MetadataKind.RELATIONSHIP_TYPES)
        next_actions = [f"lowmain rel find --type={t}" for t in data["relationship_types"][:MAX_LABEL_ACTIONS]]
        next_actions.append("lowmain rel create --from=<id> --to=<id> --type=<type>")
        return CommandResult.ok("schema types", data, next_actions=next_actions)

    async def handle_indexes(self, args) -> CommandResult:
        """Handle `schema indexes`."""
        data = await self._fetch(args, MetadataKind.INDEXES)
        return CommandResult.ok("schema indexes", data, next_actions=["lowmain schema constraints"])

    async def handle_constraints(self, args) -> CommandResult:
        """Handle `schema constraints`."""
        data = await self._fetch(args, MetadataKind.CONSTRAINTS)
        return CommandResult.ok("schema constraints", data, next_actions=["lowmain schema indexes"])

    async def handle_count(self, args) -> CommandResult:
        """Handle `schema count`."""
        data = await self._fetch(args, MetadataKind.COUNTS)
        return CommandResult.ok("schema count", data, next_actions=["lowmain schema labels", "lowmain schema types"])
