"""
NodeHandler - Handles node CRUD commands.

Commands:
    node find --label=L [--where=k=v ...] [--limit=N]
    node get <id>
    node create --label=L --props=<json>
    node update <id> --set=<json>
    node delete <id> [--detach]

Nodes are addressed by their integer id. Every property value reaches the
database as a query parameter; only the label and property keys are placed
in Cypher text, validated and backtick-quoted.
"""

import logging

from lowmain.command_handlers.base import NEXT_NODE_GET_LIMIT, BaseHandler
from lowmain.convert import convert, node_to_json
from lowmain.envelope import CommandResult
from lowmain.errors import ConstraintViolated, ExecutionFailed, InvalidParams, NodeNotFound

logger = logging.getLogger(__name__)

GET_NODE = "MATCH (n) WHERE id(n) = $id RETURN n, labels(n) AS labels"
CREATE_NODE = "CREATE (n:{label}) SET n = $props RETURN n, labels(n) AS labels"
UPDATE_NODE = "MATCH (n) WHERE id(n) = $id SET n += $props RETURN n, labels(n) AS labels"
DELETE_NODE = "MATCH (n) WHERE id(n) = $id {detach}DELETE n RETURN count(n) AS deleted"


def _record_node(record) -> dict:
    # labels(n) keeps the server's label order; Node.labels is a frozenset
    return node_to_json(record["n"], record.get("labels"))


def _node_actions(node_id) -> list[str]:
    return [
        f"lowmain node update {node_id} --set=<json>",
        f"lowmain rel find --from={node_id}",
        f"lowmain rel find --to={node_id}",
        f"lowmain rel create --from={node_id} --to=<id> --type=<type>",
        f"lowmain node delete {node_id}",
    ]


class NodeHandler(BaseHandler):
    """
    Handler for node commands.

    Provides functionality for:
    - Finding nodes by label with optional property equality filters
    - Reading, creating and updating single nodes
    - Deleting nodes, optionally with their relationships
    """

    async def handle_find(self, args) -> CommandResult:
        """
        Handle `node find` - list nodes carrying a label.

        Args:
            args: Parsed arguments with label, where and limit

        Returns:
            CommandResult with {label, cypher, nodes, count}
        """
        label = self.quote_identifier(args.label, "--label")
        filters = self.parse_where(args.where)
        limit = self.parse_limit(args.limit)

        params = {"limit": limit}
        conditions = []
        for i, (key, value) in enumerate(filters):
            conditions.append(f"n.{self.quote_identifier(key, '--where property')} = $where_{i}")
            params[f"where_{i}"] = value

        cypher = f"MATCH (n:{label})"
        if conditions:
            cypher += " WHERE " + " AND ".join(conditions)
        cypher += " RETURN n, labels(n) AS labels LIMIT $limit"

        async with self.connect(args) as gateway:
            result = await gateway.execute_read(cypher, params, limit)

        nodes = [_record_node(record) for record in result.rows]
        next_actions = [f"lowmain node get {node['_id']}" for node in nodes[:NEXT_NODE_GET_LIMIT]]
        next_actions.append(f"lowmain node create --label={args.label} --props=<json>")
        return CommandResult.ok(
            "node find",
            {"label": args.label, "cypher": cypher, "nodes": nodes, "count": len(nodes)},
            next_actions=next_actions,
        )

    async def handle_get(self, args) -> CommandResult:
        """Handle `node get <id>`."""
        node_id = self.parse_id(args.id, "node")

        async with self.connect(args) as gateway:
            result = await gateway.execute_read(GET_NODE, {"id": node_id}, limit=1)

        if not result.rows:
            raise NodeNotFound(node_id)
        node = _record_node(result.rows[0])
        return CommandResult.ok("node get", {"node": node}, next_actions=_node_actions(node["_id"]))

    async def handle_create(self, args) -> CommandResult:
        """
        Handle `node create` - create one node with one label.

        --props is required; pass '{}' for a node without properties.
        """
        label = self.quote_identifier(args.label, "--label")
        props = self.parse_json_object(args.props, "--props")

        async with self.connect(args) as gateway:
            records = await gateway.execute_mutation(CREATE_NODE.format(label=label), {"props": props})

        if not records:
            raise ExecutionFailed("CREATE returned no node")
        node = _record_node(records[0])
        node_id = node["_id"]
        return CommandResult.ok(
            "node create",
            {"created": True, "node": node},
            next_actions=[
                f"lowmain node get {node_id}",
                f"lowmain rel create --from={node_id} --to=<id> --type=<type>",
                f"lowmain node find --label={args.label}",
            ],
        )

    async def handle_update(self, args) -> CommandResult:
        """
        Handle `node update <id> --set=<json>`.

        Properties are merged; a null value removes the property.
        """
        node_id = self.parse_id(args.id, "node")
        changes = self.parse_json_object(args.set, "--set")
        if not changes:
            raise InvalidParams("--set must contain at least one property")

        async with self.connect(args) as gateway:
            records = await gateway.execute_mutation(UPDATE_NODE, {"id": node_id, "props": changes})

        if not records:
            raise NodeNotFound(node_id)
        node = _record_node(records[0])
        return CommandResult.ok(
            "node update",
            {"updated": True, "node": node},
            next_actions=[f"lowmain node get {node['_id']}"],
        )

    async def handle_delete(self, args) -> CommandResult:
        """
        Handle `node delete <id> [--detach]`.

        Without --detach, a node that still has relationships is refused by
        the database and reported as CONSTRAINT_VIOLATION.
        """
        node_id = self.parse_id(args.id, "node")
        detach = bool(args.detach)
        cypher = DELETE_NODE.format(detach="DETACH " if detach else "")

        async with self.connect(args) as gateway:
            try:
                records = await gateway.execute_mutation(cypher, {"id": node_id})
            except ConstraintViolated as e:
                if detach:
                    raise
                raise ConstraintViolated(
                    f"Node {node_id} still has relationships: {e.message}",
                    context=e.context,
                    fix=f"Use `lowmain node delete {node_id} --detach` to delete the node and its relationships",
                ) from e

        deleted = convert(records[0]["deleted"]) if records else 0
        if not deleted:
            raise NodeNotFound(node_id)
        logger.info("Deleted node %s (detach=%s)", node_id, detach)
        return CommandResult.ok(
            "node delete",
            {"deleted": True, "id": node_id, "detach": detach},
            next_actions=["lowmain schema count"],
        )
