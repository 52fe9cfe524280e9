"""Custom exceptions for agents."""

from repomirror.exceptions import RepoMirrorError


class AgentError(RepoMirrorError):
    """Base exception for agent errors."""


class UnknownAgentError(AgentError):
    """Requested agent kind is not registered."""


class AgentNotInstalledError(AgentError):
    """Agent executable could not be found."""


class AgentTimeoutError(AgentError):
    """Agent did not finish within its wall-clock timeout."""


class AgentCancelledError(AgentError):
    """Agent invocation was cancelled before it finished."""


class AgentExecutionError(AgentError):
    """Agent process exited with a non-zero status."""

    def __init__(self, exit_code: int, output: str) -> None:
        self.exit_code = exit_code
        self.output = output
        super().__init__(f"Agent execution failed (exit code {exit_code}): {output}")
