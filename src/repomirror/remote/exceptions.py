"""Custom exceptions for the remote sync layer."""

from __future__ import annotations

from typing import TYPE_CHECKING

from repomirror.exceptions import RepoMirrorError
from repomirror.remote.models import FailureKind

if TYPE_CHECKING:
    from repomirror.remote.models import PullResult


class RemoteError(RepoMirrorError):
    """Base exception for remote operations."""

    def __init__(self, message: str, kind: FailureKind = FailureKind.OTHER) -> None:
        super().__init__(message)
        self.kind = kind


class AuthenticationFailedError(RemoteError):
    """Remote rejected the credentials."""


class RemoteUnreachableError(RemoteError):
    """Remote host could not be contacted."""


class RefNotFoundError(RemoteError):
    """Requested branch does not exist on the remote."""


class SourceRepositoryError(RemoteError):
    """Source path is missing, not a git repository, or has no remotes."""


class PullConflictError(RemoteError):
    """Pull stopped on merge conflicts that need manual resolution."""

    def __init__(self, message: str) -> None:
        super().__init__(message, FailureKind.CONFLICT)


class PullFailedError(RemoteError):
    """Pull failed for a reason other than conflicts."""

    def __init__(self, message: str, result: PullResult) -> None:
        super().__init__(message, result.failure or FailureKind.OTHER)
        self.result = result


class PushError(RemoteError):
    """Error pushing to a remote."""


_ERRORS_BY_KIND: dict[FailureKind, type[RemoteError]] = {
    FailureKind.AUTHENTICATION: AuthenticationFailedError,
    FailureKind.UNREACHABLE: RemoteUnreachableError,
    FailureKind.REF_NOT_FOUND: RefNotFoundError,
}


def error_for(kind: FailureKind, message: str) -> RemoteError:
    """Build the RemoteError subclass matching a failure kind."""
    return _ERRORS_BY_KIND.get(kind, RemoteError)(message, kind)
