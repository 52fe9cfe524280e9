"""Data models for the sync pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from repomirror.agents.models import AgentKind
from repomirror.exceptions import InvalidArgumentError


class PipelineStage(StrEnum):
    """Stages a pipeline run moves through, in order."""

    INIT = "init"
    SOURCE_ANALYSIS_WRITTEN = "source_analysis_written"
    TARGET_ANALYSIS_WRITTEN = "target_analysis_written"
    MIGRATION_PROMPT_WRITTEN = "migration_prompt_written"
    AGENT_INVOKED = "agent_invoked"
    DONE = "done"


@dataclass(frozen=True)
class SyncJob:
    """One declarative sync job.

    Attributes:
        source_path: Repository or directory being migrated from.
        target_repo: Repository being migrated into.
        instructions: Free-text migration instructions.
        agent: Agent that executes the migration.
    """

    source_path: str
    target_repo: str
    instructions: str
    agent: AgentKind | str = AgentKind.CLAUDE_CODE

    def __post_init__(self) -> None:
        for name in ("source_path", "target_repo", "instructions"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise InvalidArgumentError(f"SyncJob.{name} must be a non-empty string")


@dataclass
class PipelineArtifacts:
    """Paths of the files written during a run, plus the agent's output."""

    source_analysis: str | None = None
    target_analysis: str | None = None
    migration_prompt: str | None = None
    agent_output: str | None = None


@dataclass(frozen=True)
class RunOutcome:
    """Final outcome of a pipeline run.

    A failed outcome records the stage that was being attempted and why it
    failed.
    """

    success: bool
    failed_stage: PipelineStage | None = None
    reason: str | None = None

    @classmethod
    def succeeded(cls) -> RunOutcome:
        return cls(success=True)

    @classmethod
    def failed(cls, stage: PipelineStage, reason: str) -> RunOutcome:
        return cls(success=False, failed_stage=stage, reason=reason)


@dataclass
class PipelineRun:
    """Transient record of one job execution."""

    job: SyncJob
    index: int
    stage: PipelineStage = PipelineStage.INIT
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: datetime | None = None
    artifacts: PipelineArtifacts = field(default_factory=PipelineArtifacts)
    outcome: RunOutcome | None = None
    error: BaseException | None = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is not None and self.outcome.success


@dataclass
class BatchResult:
    """Result of running a job list.

    Attributes:
        total: Number of jobs in the batch.
        runs: Runs that were started, in order. Jobs after a failure never
            start and have no run.
    """

    total: int
    runs: list[PipelineRun] = field(default_factory=list)

    @property
    def completed(self) -> int:
        return sum(1 for run in self.runs if run.succeeded)

    @property
    def success(self) -> bool:
        return self.completed == self.total

    @property
    def failed_run(self) -> PipelineRun | None:
        for run in self.runs:
            if not run.succeeded:
                return run
        return None
