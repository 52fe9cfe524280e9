"""Data models for the remote sync layer."""

from dataclasses import dataclass, field
from enum import StrEnum

MAX_PREVIEW_MESSAGES = 5


class FailureKind(StrEnum):
    """Classification of a failed git remote operation.

    Used to pick guidance for the user; every kind is handled the same way.
    """

    CONFLICT = "conflict"
    AUTHENTICATION = "authentication"
    REF_NOT_FOUND = "ref_not_found"
    UNREACHABLE = "unreachable"
    REJECTED = "rejected"
    TIMEOUT = "timeout"
    OTHER = "other"


@dataclass(frozen=True)
class RemoteDescriptor:
    """A configured remote of the target repository."""

    name: str
    url: str
    branch: str = "main"
    auto_push: bool = False


@dataclass(frozen=True)
class RepoStatus:
    """Snapshot of a repository's git state."""

    is_git_repo: bool
    has_remotes: bool = False
    current_branch: str | None = None
    has_uncommitted_changes: bool = False


@dataclass(frozen=True)
class PullSummary:
    """Commits available on a remote branch but not yet in HEAD.

    Attributes:
        has_new_commits: Whether the remote is ahead of HEAD.
        commit_count: Number of commits HEAD is behind.
        preview_messages: Up to five one-line commit messages, newest first.
    """

    has_new_commits: bool
    commit_count: int = 0
    preview_messages: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class PullResult:
    """Outcome of a pull.

    Attributes:
        success: Whether the pull completed cleanly.
        conflicts_detected: Whether merge conflicts were found in the output.
        failure: Classification of a failed pull.
        output: Combined git output.
    """

    success: bool
    conflicts_detected: bool = False
    failure: FailureKind | None = None
    output: str = ""


class PostPullAction(StrEnum):
    """What ran after a successful pull."""

    NONE = "none"
    SYNC_ONCE = "sync_once"
    SYNC_FOREVER = "sync_forever"


@dataclass
class PullOutcome:
    """Everything a pull request produced, for reporting.

    Attributes:
        status: Repository status checked before pulling.
        summary: Incoming commits, if the remote was checked.
        result: Pull result, if a pull was attempted.
        action: Sync action triggered after the pull.
    """

    status: RepoStatus
    summary: PullSummary | None = None
    result: PullResult | None = None
    action: PostPullAction = PostPullAction.NONE
