"""
Response envelope shared by every command.

Success:  {"ok": true,  "command": ..., "result": {...}, "next_actions": [...]}
Failure:  {"ok": false, "command": ..., "error": {code, message, retryable, fix}, "next_actions": [...]}
"""

import json
import sys
from dataclasses import dataclass, field
from typing import Any, Optional, TextIO

from lowmain.errors import ERROR_NEXT_ACTIONS, ErrorRecord, classify

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


@dataclass
class CommandResult:
    """Outcome of one command invocation."""

    success: bool
    command: str
    data: Optional[dict[str, Any]] = None
    error: Optional[ErrorRecord] = None
    next_actions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary for serialization."""
        out: dict[str, Any] = {"ok": self.success, "command": self.command}
        if self.success:
            out["result"] = self.data if self.data is not None else {}
        else:
            out["error"] = self.error.to_dict()
        out["next_actions"] = list(self.next_actions)
        return out

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    @property
    def exit_code(self) -> int:
        return EXIT_SUCCESS if self.success else EXIT_FAILURE

    def next_action(self, command: str) -> "CommandResult":
        """Append one suggested follow-up command."""
        self.next_actions.append(command)
        return self

    @classmethod
    def ok(cls, command: str, data: dict[str, Any], next_actions: Optional[list[str]] = None) -> "CommandResult":
        """Create a successful result."""
        return cls(success=True, command=command, data=data, next_actions=list(next_actions or []))

    @classmethod
    def fail(cls, command: str, error: ErrorRecord, next_actions: Optional[list[str]] = None) -> "CommandResult":
        """Create a failed result."""
        if next_actions is None:
            next_actions = ERROR_NEXT_ACTIONS.get(error.code, [])
        return cls(success=False, command=command, error=error, next_actions=list(next_actions))

    @classmethod
    def from_exception(cls, command: str, exc: BaseException) -> "CommandResult":
        """Create a failed result from any exception via the error classifier."""
        return cls.fail(command, classify(exc))


def emit(result: CommandResult, stream: Optional[TextIO] = None) -> int:
    """
    Write the envelope as one JSON line and return the process exit status.

    Args:
        result: CommandResult to serialize
        stream: Output stream (defaults to sys.stdout)

    Returns:
        0 for success, 1 for failure
    """
    stream = stream or sys.stdout
    stream.write(result.to_json() + "\n")
    stream.flush()
    return result.exit_code
