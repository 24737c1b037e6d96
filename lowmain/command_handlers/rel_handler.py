"""
RelHandler - Handles relationship commands.

Commands:
    rel find [--from=<id>] [--to=<id>] [--type=T] [--limit=N]
    rel create --from=<id> --to=<id> --type=T [--props=<json>]
    rel delete <id>

Relationships are always directed from --from to --to.
"""

import logging

from lowmain.command_handlers.base import BaseHandler
from lowmain.convert import convert, relationship_to_json
from lowmain.envelope import CommandResult
from lowmain.errors import ExecutionFailed, NodeNotFound, RelationshipNotFound

logger = logging.getLogger(__name__)

CREATE_REL = (
    "MATCH (a), (b) WHERE id(a) = $from_id AND id(b) = $to_id "
    "CREATE (a)-[r:{rel_type}]->(b) SET r = $props RETURN r"
)
ENDPOINTS_EXIST = (
    "OPTIONAL MATCH (a) WHERE id(a) = $from_id "
    "OPTIONAL MATCH (b) WHERE id(b) = $to_id "
    "RETURN a IS NOT NULL AS from_exists, b IS NOT NULL AS to_exists"
)
DELETE_REL = "MATCH ()-[r]->() WHERE id(r) = $id DELETE r RETURN count(r) AS deleted"


class RelHandler(BaseHandler):
    """Handler for relationship commands."""

    async def handle_find(self, args) -> CommandResult:
        """
        Handle `rel find` - list relationships, optionally filtered.

        Args:
            args: Parsed arguments with from_id, to_id, type and limit

        Returns:
            CommandResult with {relationships, count}
        """
        params = {"limit": self.parse_limit(args.limit)}
        conditions = []
        if args.from_id is not None:
            params["from_id"] = self.parse_id(args.from_id, flag="--from")
            conditions.append("id(a) = $from_id")
        if args.to_id is not None:
            params["to_id"] = self.parse_id(args.to_id, flag="--to")
            conditions.append("id(b) = $to_id")
        rel_type = ""
        if args.type is not None:
            rel_type = ":" + self.quote_identifier(args.type, "--type")

        cypher = f"MATCH (a)-[r{rel_type}]->(b)"
        if conditions:
            cypher += " WHERE " + " AND ".join(conditions)
        cypher += " RETURN r LIMIT $limit"

        async with self.connect(args) as gateway:
            result = await gateway.execute_read(cypher, params, params["limit"])

        relationships = [relationship_to_json(record["r"]) for record in result.rows]

        next_actions = []
        if "from_id" in params:
            next_actions.append(f"lowmain node get {params['from_id']}")
        if "to_id" in params:
            next_actions.append(f"lowmain node get {params['to_id']}")
        next_actions += [
            "lowmain rel create --from=<id> --to=<id> --type=<type>",
            "lowmain schema types",
        ]
        return CommandResult.ok(
            "rel find",
            {"relationships": relationships, "count": len(relationships)},
            next_actions=next_actions,
        )

    async def handle_create(self, args) -> CommandResult:
        """
        Handle `rel create` - connect two existing nodes.

        When the create matches nothing, one more read finds which endpoint
        is missing so the failure names it.
        """
        from_id = self.parse_id(args.from_id, flag="--from")
        to_id = self.parse_id(args.to_id, flag="--to")
        rel_type = self.quote_identifier(args.type, "--type")
        props = {}
        if args.props is not None:
            props = self.parse_json_object(args.props, "--props")

        ids = {"from_id": from_id, "to_id": to_id}
        async with self.connect(args) as gateway:
            records = await gateway.execute_mutation(
                CREATE_REL.format(rel_type=rel_type), dict(ids, props=props)
            )
            if not records:
                check = await gateway.execute_read(ENDPOINTS_EXIST, ids, limit=1)
                row = check.rows[0] if check.rows else None
                if row is None or not row["from_exists"]:
                    raise NodeNotFound(from_id)
                if not row["to_exists"]:
                    raise NodeNotFound(to_id)
                raise ExecutionFailed("CREATE returned no relationship")

        relationship = relationship_to_json(records[0]["r"])
        return CommandResult.ok(
            "rel create",
            {"created": True, "relationship": relationship},
            next_actions=[
                f"lowmain rel find --from={from_id}",
                f"lowmain node get {to_id}",
                f"lowmain rel delete {relationship['_id']}",
            ],
        )

    async def handle_delete(self, args) -> CommandResult:
        """Handle `rel delete <id>`."""
        rel_id = self.parse_id(args.id, "relationship")

        async with self.connect(args) as gateway:
            records = await gateway.execute_mutation(DELETE_REL, {"id": rel_id})

        deleted = convert(records[0]["deleted"]) if records else 0
        if not deleted:
            raise RelationshipNotFound(rel_id)
        logger.info("Deleted relationship %s", rel_id)
        return CommandResult.ok(
            "rel delete",
            {"deleted": True, "id": rel_id},
            next_actions=["lowmain rel find", "lowmain schema count"],
        )
