"""Claude Code agent - runs the Claude Code CLI against a target repository."""

from __future__ import annotations

import logging
import subprocess
import time
from typing import TYPE_CHECKING

from repomirror.agents.base import Agent
from repomirror.agents.exceptions import (
    AgentCancelledError,
    AgentError,
    AgentExecutionError,
    AgentNotInstalledError,
    AgentTimeoutError,
)
from repomirror.agents.models import AgentKind, AgentResult
from repomirror.logging import truncate_output

if TYPE_CHECKING:
    import threading

logger = logging.getLogger("repomirror.agents.claude_code")

DEFAULT_TIMEOUT = 300  # 5 minutes
DEFAULT_PERMISSION_MODE = "acceptEdits"


class ClaudeCodeAgent(Agent):
    """Agent that invokes the Claude Code CLI.

    Spawns ``claude`` as a subprocess in the working directory with the
    instructions as its prompt. The agent may edit files and commit in the
    working directory; this class does not inspect those changes, it only
    reports the exit status and output.
    """

    name = AgentKind.CLAUDE_CODE.value

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        executable: str = "claude",
        permission_mode: str = DEFAULT_PERMISSION_MODE,
        poll_interval: float = 0.5,
    ) -> None:
        """Initialize the Claude Code agent.

        Args:
            timeout: Wall-clock timeout in seconds for one invocation.
            executable: Name or path of the Claude Code CLI.
            permission_mode: Value passed to ``--permission-mode``.
            poll_interval: Seconds between cancellation checks while waiting.
        """
        self.timeout = timeout
        self.executable = executable
        self.permission_mode = permission_mode
        self.poll_interval = poll_interval

    def build_command(self, instructions: str) -> list[str]:
        """Build the CLI command line for a set of instructions."""
        return [
            self.executable,
            "-p",
            instructions,
            "--permission-mode",
            self.permission_mode,
        ]

    def execute(
        self,
        instructions: str,
        working_dir: str,
        *,
        cancel_event: threading.Event | None = None,
    ) -> AgentResult:
        self.validate_request(instructions, working_dir)

        logger.info("Running Claude Code in %s", working_dir)
        logger.debug("Instructions (%d chars)", len(instructions))
        start = time.monotonic()

        try:
            process = subprocess.Popen(
                self.build_command(instructions),
                cwd=working_dir,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except FileNotFoundError as e:
            logger.error("Claude Code CLI not found in PATH")
            raise AgentNotInstalledError(
                f"Claude Code CLI not found. Ensure '{self.executable}' is installed and in PATH."
            ) from e
        except OSError as e:
            logger.error("Failed to execute Claude Code: %s", e)
            raise AgentError(f"Failed to execute Claude Code: {e}") from e

        stdout, stderr = self._wait(process, start, cancel_event)
        duration_ms = int((time.monotonic() - start) * 1000)

        if process.returncode != 0:
            message = stderr.strip() or stdout.strip() or "Unknown error"
            logger.error("Claude Code exited with code %s", process.returncode)
            logger.debug("Output: %s", truncate_output(message, 500))
            raise AgentExecutionError(process.returncode, message)

        logger.info("Claude Code completed in %d ms", duration_ms)
        logger.debug("Output (%d chars): %s", len(stdout), truncate_output(stdout, 500))
        return AgentResult(agent_name=self.name, output=stdout, duration_ms=duration_ms)

    def _wait(
        self,
        process: subprocess.Popen[str],
        start: float,
        cancel_event: threading.Event | None,
    ) -> tuple[str, str]:
        """Collect process output, enforcing the timeout and cancellation.

        Returns:
            Tuple of (stdout, stderr).
        """
        deadline = start + self.timeout
        while True:
            remaining = deadline - time.monotonic()
            try:
                stdout, stderr = process.communicate(
                    timeout=max(0.0, min(self.poll_interval, remaining))
                )
                return stdout or "", stderr or ""
            except subprocess.TimeoutExpired:
                if cancel_event is not None and cancel_event.is_set():
                    self._kill(process)
                    logger.warning("Claude Code cancelled")
                    raise AgentCancelledError("Claude Code execution was cancelled") from None
                if time.monotonic() >= deadline:
                    self._kill(process)
                    logger.error("Claude Code timed out after %s seconds", self.timeout)
                    raise AgentTimeoutError(
                        f"Claude Code execution timed out after {self.timeout} seconds"
                    ) from None

    @staticmethod
    def _kill(process: subprocess.Popen[str]) -> None:
        process.kill()
        process.communicate()
