"""Agents - pluggable executors that carry out migration instructions."""

from repomirror.agents.amp import AmpAgent
from repomirror.agents.base import Agent
from repomirror.agents.claude_code import ClaudeCodeAgent
from repomirror.agents.exceptions import (
    AgentCancelledError,
    AgentError,
    AgentExecutionError,
    AgentNotInstalledError,
    AgentTimeoutError,
    UnknownAgentError,
)
from repomirror.agents.models import AgentKind, AgentResult
from repomirror.agents.registry import available_agents, get_agent, is_agent_available

__all__ = [
    "Agent",
    "AgentCancelledError",
    "AgentError",
    "AgentExecutionError",
    "AgentKind",
    "AgentNotInstalledError",
    "AgentResult",
    "AgentTimeoutError",
    "AmpAgent",
    "ClaudeCodeAgent",
    "UnknownAgentError",
    "available_agents",
    "get_agent",
    "is_agent_available",
]
