"""Workflow dispatch - runs the sync in CI via GitHub Actions."""

from repomirror.dispatch.client import (
    DEFAULT_WORKFLOW,
    WorkflowDispatcher,
    get_github_token,
    parse_github_repo,
)
from repomirror.dispatch.exceptions import DispatchError

__all__ = [
    "DEFAULT_WORKFLOW",
    "DispatchError",
    "WorkflowDispatcher",
    "get_github_token",
    "parse_github_repo",
]
