"""Loop driver - continuous sync with failure isolation."""

from repomirror.loop.driver import DEFAULT_INTERVAL, LoopDriver
from repomirror.loop.models import IterationResult, LoopSummary

__all__ = [
    "DEFAULT_INTERVAL",
    "IterationResult",
    "LoopDriver",
    "LoopSummary",
]
