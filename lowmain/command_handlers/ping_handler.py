"""
PingHandler - Handles the connectivity check.

Commands:
    ping    - Confirm the database is reachable and the credentials work

Example:
    handler = PingHandler(os.environ, Neo4jGateway)
    result = await handler.handle_ping(args)
    # result.data == {"connected": True, "uri": "bolt://localhost:7687", "db": "neo4j"}
"""

from lowmain.command_handlers.base import BaseHandler
from lowmain.envelope import CommandResult

COMMAND = "ping"


class PingHandler(BaseHandler):
    """Handler for the ping command."""

    async def handle_ping(self, args) -> CommandResult:
        """
        Handle `ping` - one trivial round trip.

        Returns:
            CommandResult echoing the resolved URI and database name
        """
        async with self.connect(args) as gateway:
            info = await gateway.ping()

        return CommandResult.ok(
            COMMAND,
            info.to_dict(),
            next_actions=[
                "lowmain schema",
                'lowmain query "<cypher>"',
                "lowmain node find --label=<label>",
            ],
        )
