"""Registry mapping agent kinds to agent implementations."""

from __future__ import annotations

from typing import Any

from repomirror.agents.amp import AmpAgent
from repomirror.agents.base import Agent
from repomirror.agents.claude_code import ClaudeCodeAgent
from repomirror.agents.exceptions import UnknownAgentError
from repomirror.agents.models import AgentKind

_AGENTS: dict[AgentKind, type[Agent]] = {
    AgentKind.CLAUDE_CODE: ClaudeCodeAgent,
    AgentKind.AMP: AmpAgent,
}


def available_agents() -> list[str]:
    """Get the names of all registered agents."""
    return [kind.value for kind in _AGENTS]


def is_agent_available(name: str) -> bool:
    """Check whether an agent name is registered."""
    return name in available_agents()


def get_agent(kind: AgentKind | str, **options: Any) -> Agent:
    """Create the agent registered for a kind.

    Args:
        kind: Agent kind or its string name.
        **options: Constructor options for the agent (e.g. ``timeout``).

    Returns:
        A fresh agent instance.

    Raises:
        UnknownAgentError: If no agent is registered under that name.
    """
    try:
        agent_cls = _AGENTS[AgentKind(kind)]
    except ValueError:
        raise UnknownAgentError(
            f"Unknown agent: {kind}. Available agents: {', '.join(available_agents())}"
        ) from None
    return agent_cls(**options)
