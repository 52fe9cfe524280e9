"""Base exceptions shared across repomirror components."""


class RepoMirrorError(Exception):
    """Base exception for repomirror errors."""


class InvalidArgumentError(RepoMirrorError, ValueError):
    """Malformed input passed to a core function."""
