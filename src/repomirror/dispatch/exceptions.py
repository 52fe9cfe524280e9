"""Custom exceptions for workflow dispatch."""

from repomirror.exceptions import RepoMirrorError


class DispatchError(RepoMirrorError):
    """Error dispatching a CI workflow."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
