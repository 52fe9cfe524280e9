"""Agent interface shared by all execution agents."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from repomirror.exceptions import InvalidArgumentError

if TYPE_CHECKING:
    import threading

    from repomirror.agents.models import AgentResult


class Agent(ABC):
    """Runs an instruction set against a working directory.

    Agents are stateless per invocation: every call to ``execute`` stands on
    its own and nothing is retained between calls.
    """

    name: str

    @abstractmethod
    def execute(
        self,
        instructions: str,
        working_dir: str,
        *,
        cancel_event: threading.Event | None = None,
    ) -> AgentResult:
        """Execute instructions in a working directory.

        Args:
            instructions: The full instruction document for the agent.
            working_dir: Absolute path the agent runs in.
            cancel_event: Optional event; when set, the agent stops early.

        Returns:
            AgentResult with the agent's text output.

        Raises:
            InvalidArgumentError: If working_dir is not absolute or
                instructions are empty.
            AgentError: If the agent fails.
        """

    @staticmethod
    def validate_request(instructions: str, working_dir: str) -> None:
        """Check the preconditions every agent shares."""
        if not working_dir or not os.path.isabs(working_dir):
            raise InvalidArgumentError(f"Working directory must be absolute path: {working_dir}")
        if not instructions or not instructions.strip():
            raise InvalidArgumentError("Instructions are required")
