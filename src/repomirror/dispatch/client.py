"""WorkflowDispatcher - triggers the sync workflow in GitHub Actions."""

from __future__ import annotations

import logging
import os
import re
import subprocess

import httpx

from repomirror.dispatch.exceptions import DispatchError

logger = logging.getLogger("repomirror.dispatch")

DEFAULT_WORKFLOW = "repomirror.yml"

_GITHUB_URL = re.compile(r"github\.com[:/]([^/]+)/([^/]+?)(?:\.git)?/?$")

_HINTS = {
    401: "authentication failed; check GITHUB_TOKEN or run 'gh auth login'",
    403: "token lacks permission to dispatch workflows",
    404: "workflow not found in the repository",
    422: "workflow does not have a 'workflow_dispatch' trigger",
}


def parse_github_repo(url: str) -> str | None:
    """Extract "owner/repo" from a GitHub remote URL.

    Args:
        url: HTTPS or SSH remote URL.

    Returns:
        "owner/repo", or None if the URL is not a GitHub URL.
    """
    match = _GITHUB_URL.search(url.strip())
    if not match:
        return None
    return f"{match.group(1)}/{match.group(2)}"


def get_github_token() -> str:
    """Get GitHub token from environment or gh CLI."""
    token = os.environ.get("GITHUB_TOKEN")
    if token:
        return token
    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout.strip()
    except (subprocess.CalledProcessError, FileNotFoundError):
        return ""


class WorkflowDispatcher:
    """Dispatches a GitHub Actions workflow through the REST API."""

    def __init__(
        self,
        repo: str,
        token: str,
        base_url: str = "https://api.github.com",
    ) -> None:
        """Initialize the dispatcher.

        Args:
            repo: GitHub repo in "owner/repo" format
            token: GitHub personal access token
            base_url: GitHub API base URL (for testing/enterprise)
        """
        self.repo = repo
        self.token = token
        self.base_url = base_url.rstrip("/")
        self._client: httpx.Client | None = None

    @property
    def client(self) -> httpx.Client:
        """Get or create HTTP client for GitHub API."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.base_url,
                headers={
                    "Authorization": f"Bearer {self.token}",
                    "Accept": "application/vnd.github+json",
                    "X-GitHub-Api-Version": "2022-11-28",
                },
                timeout=30.0,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def dispatch(self, workflow: str = DEFAULT_WORKFLOW, ref: str = "main") -> None:
        """Trigger a workflow_dispatch event.

        Args:
            workflow: Workflow file name or ID.
            ref: Branch or tag the workflow runs on.

        Raises:
            DispatchError: If GitHub rejects the request.
        """
        logger.info("Dispatching %s on %s@%s", workflow, self.repo, ref)
        try:
            response = self.client.post(
                f"/repos/{self.repo}/actions/workflows/{workflow}/dispatches",
                json={"ref": ref},
            )
        except httpx.HTTPError as e:
            logger.error("Failed to reach GitHub: %s", e)
            raise DispatchError(f"Failed to reach GitHub: {e}") from e

        if response.status_code != 204:
            hint = _HINTS.get(response.status_code, "unexpected response")
            logger.error("Failed to dispatch %s: %s", workflow, response.text)
            raise DispatchError(
                f"Failed to dispatch workflow '{workflow}': {response.status_code} - {hint}",
                status_code=response.status_code,
            )
        logger.info("Dispatched %s", workflow)

    def actions_url(self) -> str:
        """Web URL where workflow runs can be monitored."""
        return f"https://github.com/{self.repo}/actions"
