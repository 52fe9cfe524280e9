"""Data models for agents."""

from dataclasses import dataclass
from enum import StrEnum


class AgentKind(StrEnum):
    """Closed set of agents a sync job may select."""

    CLAUDE_CODE = "claude_code"
    AMP = "amp"


@dataclass(frozen=True)
class AgentResult:
    """Result of one agent invocation.

    Attributes:
        agent_name: Name of the agent that produced the output.
        output: Text output returned by the agent.
        duration_ms: Wall-clock duration of the invocation in milliseconds.
    """

    agent_name: str
    output: str
    duration_ms: int
