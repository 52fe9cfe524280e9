"""Remote sync layer - upstream inspection, pull and push for git repositories."""

from repomirror.remote.exceptions import (
    AuthenticationFailedError,
    PullConflictError,
    PullFailedError,
    PushError,
    RefNotFoundError,
    RemoteError,
    RemoteUnreachableError,
    SourceRepositoryError,
)
from repomirror.remote.manager import RemoteSync, classify_failure, has_conflicts
from repomirror.remote.models import (
    FailureKind,
    PostPullAction,
    PullOutcome,
    PullResult,
    PullSummary,
    RemoteDescriptor,
    RepoStatus,
)
from repomirror.remote.puller import SourcePuller

__all__ = [
    "AuthenticationFailedError",
    "FailureKind",
    "PostPullAction",
    "PullConflictError",
    "PullFailedError",
    "PullOutcome",
    "PullResult",
    "PullSummary",
    "PushError",
    "RefNotFoundError",
    "RemoteDescriptor",
    "RemoteError",
    "RemoteSync",
    "RemoteUnreachableError",
    "RepoStatus",
    "SourcePuller",
    "SourceRepositoryError",
    "classify_failure",
    "has_conflicts",
]
