"""Exceptions for the sync pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING

from repomirror.exceptions import RepoMirrorError

if TYPE_CHECKING:
    from repomirror.pipeline.models import BatchResult


class PipelineError(RepoMirrorError):
    """Base exception for pipeline errors."""


class SyncBatchError(PipelineError):
    """A job failed and the rest of the batch was not attempted."""

    def __init__(self, result: BatchResult) -> None:
        self.result = result
        failed = result.failed_run
        detail = ""
        if failed is not None:
            outcome = failed.outcome
            detail = f": job {failed.index} failed at {outcome.failed_stage}: {outcome.reason}"
        super().__init__(f"{result.completed} of {result.total} jobs completed{detail}")
