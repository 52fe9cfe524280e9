"""RemoteSync - inspects, previews, pulls and pushes git remotes."""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from repomirror.logging import sanitize_for_log, truncate_output
from repomirror.remote.exceptions import PushError, RemoteError, error_for
from repomirror.remote.models import (
    MAX_PREVIEW_MESSAGES,
    FailureKind,
    PullResult,
    PullSummary,
    RepoStatus,
)

logger = logging.getLogger("repomirror.remote")

DEFAULT_TIMEOUT = 60

# Substrings git prints when a merge stops on conflicts. Localized or
# reformatted output will not match, so detection can under-fire.
CONFLICT_MARKERS = ("CONFLICT", "Automatic merge failed")

_FAILURE_PATTERNS: list[tuple[FailureKind, tuple[str, ...]]] = [
    (
        FailureKind.AUTHENTICATION,
        (
            "authentication failed",
            "permission denied",
            "could not read username",
            "invalid username or password",
        ),
    ),
    (FailureKind.REF_NOT_FOUND, ("couldn't find remote ref", "unknown revision")),
    (FailureKind.REJECTED, ("[rejected]", "failed to push some refs")),
    (
        FailureKind.UNREACHABLE,
        (
            "could not resolve host",
            "unable to access",
            "connection refused",
            "connection timed out",
            "does not appear to be a git repository",
            "could not read from remote repository",
        ),
    ),
]


def has_conflicts(output: str) -> bool:
    """Check git output for merge conflict indicators."""
    return any(marker in output for marker in CONFLICT_MARKERS)


def classify_failure(output: str) -> FailureKind:
    """Classify failed git output for user guidance.

    Args:
        output: Combined stdout/stderr of the failed command.

    Returns:
        The best matching FailureKind, OTHER if nothing matches.
    """
    if has_conflicts(output):
        return FailureKind.CONFLICT
    lowered = output.lower()
    for kind, patterns in _FAILURE_PATTERNS:
        if any(pattern in lowered for pattern in patterns):
            return kind
    return FailureKind.OTHER


class RemoteSync:
    """Git remote operations on a local repository.

    All commands run through the git CLI with a bounded timeout and are
    parsed as text. Terminal prompts are disabled so a missing credential
    fails instead of blocking.
    """

    def __init__(self, repo_path: str | Path, timeout: float = DEFAULT_TIMEOUT) -> None:
        """Initialize RemoteSync.

        Args:
            repo_path: Path to the local repository.
            timeout: Timeout in seconds for each git command.
        """
        self.repo_path = Path(repo_path)
        self.timeout = timeout

    def _git(self, *args: str, check: bool = True) -> subprocess.CompletedProcess[str]:
        """Run a git command in the repo directory.

        Raises:
            subprocess.CalledProcessError: If check is set and the command fails.
            subprocess.TimeoutExpired: If the command exceeds the timeout.
        """
        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
        return subprocess.run(
            ["git", *args],
            cwd=self.repo_path,
            capture_output=True,
            text=True,
            check=check,
            timeout=self.timeout,
            env=env,
        )

    def _run_git(self, *args: str) -> str:
        """Run a git command and return its stripped stdout."""
        return self._git(*args).stdout.strip()

    def check_status(self) -> RepoStatus:
        """Inspect the repository without changing it.

        Returns:
            RepoStatus. Anything that prevents inspection (missing directory,
            not a repository, git missing) yields ``is_git_repo=False``.
        """
        try:
            self._run_git("rev-parse", "--git-dir")
            current_branch = self._run_git("branch", "--show-current")
            remotes = self._run_git("remote")
            status = self._run_git("status", "--porcelain")
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as e:
            logger.debug("%s is not a usable git repository: %s", self.repo_path, e)
            return RepoStatus(is_git_repo=False)

        return RepoStatus(
            is_git_repo=True,
            has_remotes=bool(remotes),
            current_branch=current_branch or None,
            has_uncommitted_changes=bool(status),
        )

    def preview_remote_changes(self, remote: str, branch: str) -> PullSummary:
        """Fetch a remote and summarize the commits HEAD does not have.

        Args:
            remote: Remote name (e.g. 'upstream').
            branch: Branch on the remote.

        Returns:
            PullSummary. Zero new commits is a normal result.

        Raises:
            RemoteError: If fetching or counting fails, classified by cause.
        """
        ref = f"{remote}/{branch}"
        logger.info("Checking for changes from %s", ref)
        with self._classified(f"Failed to check for remote changes from {ref}"):
            self._run_git("fetch", remote)
            count_output = self._run_git("rev-list", "--count", f"HEAD..{ref}")

        try:
            commit_count = int(count_output)
        except ValueError:
            commit_count = 0

        if commit_count <= 0:
            logger.info("%s has no new commits", ref)
            return PullSummary(has_new_commits=False)

        with self._classified(f"Failed to list commits from {ref}"):
            log_output = self._run_git(
                "log",
                "--oneline",
                f"-{min(commit_count, MAX_PREVIEW_MESSAGES)}",
                f"HEAD..{ref}",
            )

        messages = [line for line in log_output.splitlines() if line.strip()]
        logger.info("%s has %d new commit(s)", ref, commit_count)
        return PullSummary(
            has_new_commits=True,
            commit_count=commit_count,
            preview_messages=messages[:MAX_PREVIEW_MESSAGES],
        )

    def pull(self, remote: str, branch: str) -> PullResult:
        """Merge a remote branch into the current branch.

        Always merges (``--no-rebase --no-edit``), whatever pull.rebase is set to.
        Conflicts and other git failures are reported in the result rather
        than raised; nothing is resolved automatically.

        Args:
            remote: Remote name.
            branch: Branch on the remote.

        Returns:
            PullResult describing the outcome.
        """
        ref = f"{remote}/{branch}"
        logger.info("Pulling changes from %s", ref)
        try:
            completed = self._git("pull", "--no-rebase", "--no-edit", remote, branch, check=False)
        except subprocess.TimeoutExpired:
            logger.error("Pull from %s timed out after %ss", ref, self.timeout)
            return PullResult(success=False, failure=FailureKind.TIMEOUT)
        except OSError as e:
            logger.error("Could not run git pull in %s: %s", self.repo_path, e)
            return PullResult(success=False, failure=FailureKind.OTHER, output=str(e))

        output = "\n".join(part for part in (completed.stdout, completed.stderr) if part)

        if has_conflicts(output):
            logger.error("Pull from %s stopped with merge conflicts", ref)
            return PullResult(
                success=False,
                conflicts_detected=True,
                failure=FailureKind.CONFLICT,
                output=output,
            )

        if completed.returncode != 0:
            kind = classify_failure(output)
            logger.error(
                "Pull from %s failed (%s): %s",
                ref,
                kind,
                truncate_output(sanitize_for_log(output), 1000),
            )
            return PullResult(success=False, failure=kind, output=output)

        logger.info("Pulled %s", ref)
        return PullResult(success=True, output=output)

    def has_changes(self) -> bool:
        """Check for staged, unstaged or untracked changes."""
        return bool(self._run_git("status", "--porcelain"))

    def remote_url(self, name: str = "origin") -> str | None:
        """Get the URL of a remote, or None if it is not configured."""
        try:
            return self._run_git("remote", "get-url", name) or None
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError):
            return None

    def is_reachable(self, url: str) -> bool:
        """Check whether a remote URL answers ``git ls-remote``."""
        try:
            self._run_git("ls-remote", "--heads", url)
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as e:
            logger.debug("Remote is not reachable: %s", sanitize_for_log(str(e)))
            return False
        return True

    def head_short_hash(self) -> str | None:
        """Get the abbreviated HEAD commit, or None if unavailable."""
        try:
            return self._run_git("rev-parse", "--short", "HEAD") or None
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError):
            return None

    def commit_all(self, message: str) -> None:
        """Stage every change and commit it.

        Raises:
            RemoteError: If staging or committing fails.
        """
        try:
            self._run_git("add", ".")
            self._run_git("commit", "-m", message)
        except subprocess.CalledProcessError as e:
            raise RemoteError(f"Git commit failed: {sanitize_for_log(e.stderr or '')}") from e
        logger.info("Committed changes in %s", self.repo_path)

    def push(self, remote: str, branch: str, dry_run: bool = False) -> str:
        """Push a branch to a remote.

        Args:
            remote: Remote name.
            branch: Branch to push.
            dry_run: Only report what would be pushed.

        Returns:
            Git's output.

        Raises:
            PushError: If the push fails, with a classified kind.
        """
        args = ["push"]
        if dry_run:
            args.append("--dry-run")
        args.extend([remote, branch])

        logger.info("Pushing to %s/%s%s", remote, branch, " (dry run)" if dry_run else "")
        try:
            completed = self._git(*args)
        except subprocess.CalledProcessError as e:
            output = "\n".join(part for part in (e.stdout, e.stderr) if part)
            kind = classify_failure(output)
            logger.error("Push to %s/%s failed (%s)", remote, branch, kind)
            raise PushError(
                f"Push to {remote}/{branch} failed: {sanitize_for_log(output.strip())}", kind
            ) from e
        except subprocess.TimeoutExpired as e:
            raise PushError(
                f"Push to {remote}/{branch} timed out after {self.timeout}s", FailureKind.TIMEOUT
            ) from e

        logger.info("Pushed to %s/%s", remote, branch)
        return "\n".join(part for part in (completed.stdout, completed.stderr) if part)

    def _remote_error(self, message: str, error: subprocess.CalledProcessError) -> RemoteError:
        output = "\n".join(part for part in (error.stdout, error.stderr) if part)
        kind = classify_failure(output)
        detail = sanitize_for_log(output.strip())
        logger.error("%s (%s): %s", message, kind, truncate_output(detail, 1000))
        return error_for(kind, f"{message}: {detail}" if detail else message)

    @contextmanager
    def _classified(self, message: str) -> Iterator[None]:
        """Turn git failures inside the block into classified RemoteErrors."""
        try:
            yield
        except subprocess.CalledProcessError as e:
            raise self._remote_error(message, e) from e
        except subprocess.TimeoutExpired as e:
            logger.error("%s: timed out after %ss", message, self.timeout)
            raise RemoteError(
                f"{message}: timed out after {self.timeout}s", FailureKind.TIMEOUT
            ) from e
        except OSError as e:
            logger.error("%s: %s", message, e)
            raise RemoteError(f"{message}: {e}") from e
