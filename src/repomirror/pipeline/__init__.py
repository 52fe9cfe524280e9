"""Sync pipeline - stages a job from prompt compilation to agent invocation."""

from repomirror.pipeline.exceptions import PipelineError, SyncBatchError
from repomirror.pipeline.models import (
    BatchResult,
    PipelineArtifacts,
    PipelineRun,
    PipelineStage,
    RunOutcome,
    SyncJob,
)
from repomirror.pipeline.pipeline import SyncPipeline
from repomirror.pipeline.scratch import ScratchDirectory

__all__ = [
    "BatchResult",
    "PipelineArtifacts",
    "PipelineError",
    "PipelineRun",
    "PipelineStage",
    "RunOutcome",
    "ScratchDirectory",
    "SyncBatchError",
    "SyncJob",
    "SyncPipeline",
]
