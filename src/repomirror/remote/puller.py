"""SourcePuller - pulls upstream source changes and optionally syncs afterwards."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from repomirror.remote.exceptions import (
    PullConflictError,
    PullFailedError,
    SourceRepositoryError,
)
from repomirror.remote.models import PostPullAction, PullOutcome

if TYPE_CHECKING:
    from collections.abc import Callable

    from repomirror.remote.manager import RemoteSync

logger = logging.getLogger("repomirror.remote.puller")


class SourcePuller:
    """Brings a source repository up to date with its upstream remote.

    This is where the remote layer meets the sync pipeline: after a clean
    pull it can run a single sync batch or hand off to the continuous loop.
    """

    def __init__(
        self,
        remote_sync: RemoteSync,
        remote: str = "upstream",
        branch: str = "main",
        auto_sync: bool = False,
        sync_once: Callable[[], object] | None = None,
        sync_forever: Callable[[], object] | None = None,
    ) -> None:
        """Initialize the puller.

        Args:
            remote_sync: RemoteSync bound to the source repository.
            remote: Upstream remote name.
            branch: Upstream branch.
            auto_sync: Run a single sync after every successful pull.
            sync_once: Runs one sync batch.
            sync_forever: Runs the continuous sync loop.
        """
        self.remote_sync = remote_sync
        self.remote = remote
        self.branch = branch
        self.auto_sync = auto_sync
        self.sync_once = sync_once
        self.sync_forever = sync_forever

    def run(
        self,
        check_only: bool = False,
        source_only: bool = False,
        sync_after: bool = False,
    ) -> PullOutcome:
        """Check, pull and optionally sync.

        Args:
            check_only: Only preview incoming commits.
            source_only: Pull without triggering any sync.
            sync_after: Start the continuous sync loop after pulling.

        Returns:
            PullOutcome describing what happened.

        Raises:
            SourceRepositoryError: If the source is not a git repository or
                has no remotes.
            RemoteError: If the remote cannot be checked.
            PullConflictError: If the pull stopped on merge conflicts.
            PullFailedError: If the pull failed for another reason.
        """
        repo_path = self.remote_sync.repo_path
        if not repo_path.exists():
            raise SourceRepositoryError(f"Source directory {repo_path} does not exist")

        status = self.remote_sync.check_status()
        if not status.is_git_repo:
            raise SourceRepositoryError(f"Source directory {repo_path} is not a git repository")
        if not status.has_remotes:
            raise SourceRepositoryError("Source repository has no configured remotes")
        if status.has_uncommitted_changes:
            logger.warning("Source repository has uncommitted changes")

        outcome = PullOutcome(status=status)
        outcome.summary = self.remote_sync.preview_remote_changes(self.remote, self.branch)
        if not outcome.summary.has_new_commits or check_only:
            return outcome

        outcome.result = self.remote_sync.pull(self.remote, self.branch)
        if outcome.result.conflicts_detected:
            raise PullConflictError(
                f"Merge conflicts while pulling {self.remote}/{self.branch}; "
                "resolve them manually in the source repository"
            )
        if not outcome.result.success:
            raise PullFailedError(
                f"Failed to pull from {self.remote}/{self.branch} ({outcome.result.failure})",
                outcome.result,
            )

        if source_only:
            return outcome

        if sync_after and self.sync_forever is not None:
            logger.info("Starting continuous sync after pull")
            outcome.action = PostPullAction.SYNC_FOREVER
            self.sync_forever()
        elif self.auto_sync and self.sync_once is not None:
            logger.info("Running sync after pull")
            outcome.action = PostPullAction.SYNC_ONCE
            self.sync_once()

        return outcome
