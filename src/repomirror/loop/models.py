"""Data models for the loop driver."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class IterationResult:
    """Outcome of one loop iteration.

    Attributes:
        iteration: 1-based iteration number.
        success: Whether the whole batch completed.
        completed: Jobs that completed in this iteration.
        total: Jobs in the batch, or 0 if the batch never started.
        error: Error message when the iteration failed.
    """

    iteration: int
    success: bool
    completed: int = 0
    total: int = 0
    error: str | None = None
    finished_at: datetime = field(default_factory=datetime.now)


@dataclass
class LoopSummary:
    """Iterations run by a loop driver before it stopped."""

    iterations: list[IterationResult] = field(default_factory=list)
    cancelled: bool = False

    @property
    def failures(self) -> int:
        return sum(1 for it in self.iterations if not it.success)
