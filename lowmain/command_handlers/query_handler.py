"""
QueryHandler - Handles raw Cypher execution.

Commands:
    query "<cypher>" [--params=<json>] [--limit=N] [--write]

Read mode (default) returns up to --limit rows converted to canonical JSON.
Write mode (--write) returns the statement's counters instead of rows.
"""

from lowmain.command_handlers.base import BaseHandler
from lowmain.convert import convert_record
from lowmain.envelope import CommandResult
from lowmain.errors import InvalidParams

COMMAND = "query"


class QueryHandler(BaseHandler):
    """Handler for the query command."""

    async def handle_query(self, args) -> CommandResult:
        """
        Handle `query` - run one Cypher statement.

        Args:
            args: Parsed arguments with cypher, params, limit and write

        Returns:
            CommandResult with rows (read) or counters (write)
        """
        cypher = (args.cypher or "").strip()
        if not cypher:
            raise InvalidParams('Missing Cypher query. Usage: lowmain query "MATCH (n) RETURN n"')

        params = {}
        if args.params is not None:
            params = self.parse_json_object(args.params, "--params")
        limit = self.parse_limit(args.limit)

        async with self.connect(args) as gateway:
            if args.write:
                summary = await gateway.execute_write(cypher, params)
            else:
                result = await gateway.execute_read(cypher, params, limit)

        if args.write:
            data = {"cypher": cypher, "mode": "write", "written": True}
            data.update(summary.to_dict())
            return CommandResult.ok(
                COMMAND,
                data,
                next_actions=['lowmain query "<cypher>"', "lowmain schema count"],
            )

        rows = [convert_record(record) for record in result.rows]
        data = {
            "cypher": cypher,
            "mode": "read",
            "rows": rows,
            "count": len(rows),
            "limit": result.limit,
            "truncated": result.truncated,
        }
        next_actions = ['lowmain query "<cypher>"', "lowmain schema"]
        if result.truncated:
            next_actions.insert(0, f'lowmain query "<cypher>" --limit={limit * 2}')
        return CommandResult.ok(COMMAND, data, next_actions=next_actions)
