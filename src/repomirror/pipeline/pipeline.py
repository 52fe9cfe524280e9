"""Sync pipeline - drives one job through its stages."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from repomirror.agents import get_agent
from repomirror.exceptions import InvalidArgumentError
from repomirror.logging import truncate_output
from repomirror.pipeline.exceptions import PipelineError, SyncBatchError
from repomirror.pipeline.models import (
    BatchResult,
    PipelineRun,
    PipelineStage,
    RunOutcome,
    SyncJob,
)
from repomirror.prompts import (
    compile_migration,
    compile_source_analysis,
    compile_target_analysis,
)

if TYPE_CHECKING:
    import threading
    from collections.abc import Callable, Mapping, Sequence

    from repomirror.agents import Agent
    from repomirror.pipeline.scratch import ScratchDirectory

logger = logging.getLogger("repomirror.pipeline")

# Stage reached when the step taken from the key stage succeeds
_NEXT_STAGE = {
    PipelineStage.INIT: PipelineStage.SOURCE_ANALYSIS_WRITTEN,
    PipelineStage.SOURCE_ANALYSIS_WRITTEN: PipelineStage.TARGET_ANALYSIS_WRITTEN,
    PipelineStage.TARGET_ANALYSIS_WRITTEN: PipelineStage.MIGRATION_PROMPT_WRITTEN,
    PipelineStage.MIGRATION_PROMPT_WRITTEN: PipelineStage.AGENT_INVOKED,
    PipelineStage.AGENT_INVOKED: PipelineStage.DONE,
}


class SyncPipeline:
    """Runs sync jobs through their stages and reports the outcome.

    For each job the pipeline:
    - Ensures the scratch directory exists
    - Writes the source analysis, target analysis and migration prompts
    - Invokes the job's agent against the target repository

    Committing changes and updating the implementation plan are left to the
    agent. The pipeline never retries; a failed stage ends the run.
    """

    def __init__(
        self,
        scratch: ScratchDirectory,
        plan_path: str | Path | None = None,
        agent_factory: Callable[..., Agent] = get_agent,
        agent_options: Mapping[str, dict[str, Any]] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            scratch: Directory the prompt artifacts are written to.
            plan_path: Implementation plan file embedded in the migration
                prompt. A missing file is not an error.
            agent_factory: Returns the agent for a job's agent kind.
            agent_options: Constructor options per agent name, passed to the
                factory (e.g. {"claude_code": {"timeout": 600}}).
            cancel_event: Passed to agents so long invocations can stop early.
        """
        self.scratch = scratch
        self.plan_path = Path(plan_path) if plan_path is not None else None
        self.agent_factory = agent_factory
        self.agent_options = dict(agent_options or {})
        self.cancel_event = cancel_event

    def run(self, job: SyncJob, index: int = 1) -> PipelineRun:
        """Run one job through every stage.

        Args:
            job: The job to execute.
            index: 1-based position of the job in its batch, used to name
                the artifacts.

        Returns:
            PipelineRun whose outcome records success or the failed stage.
        """
        run = PipelineRun(job=job, index=index)
        logger.info(
            "Sync %d: %s -> %s (agent=%s)",
            index,
            job.source_path,
            job.target_repo,
            job.agent,
        )

        try:
            self.scratch.ensure()
        except Exception as e:
            return self._fail(run, PipelineStage.INIT, e)

        while run.stage != PipelineStage.DONE:
            attempted = _NEXT_STAGE[run.stage]
            try:
                self._advance(run)
            except Exception as e:
                return self._fail(run, attempted, e)
            run.stage = attempted
            logger.debug("Sync %d reached stage %s", index, run.stage)

        run.finished_at = datetime.now()
        run.outcome = RunOutcome.succeeded()
        logger.info("Sync %d completed", index)
        return run

    def run_batch(self, jobs: Sequence[SyncJob]) -> BatchResult:
        """Run a job list in order, stopping at the first failure.

        Args:
            jobs: Jobs to run; must contain at least one job.

        Returns:
            BatchResult with one successful run per job.

        Raises:
            InvalidArgumentError: If the job list is empty.
            SyncBatchError: If a job fails. Later jobs are not started.
        """
        if not jobs:
            raise InvalidArgumentError("At least one sync job is required")

        result = BatchResult(total=len(jobs))
        for index, job in enumerate(jobs, start=1):
            logger.info("Processing sync %d/%d", index, result.total)
            run = self.run(job, index)
            result.runs.append(run)
            if not run.succeeded:
                logger.error("%d of %d jobs completed", result.completed, result.total)
                raise SyncBatchError(result)

        logger.info("All %d sync jobs completed", result.total)
        return result

    def _advance(self, run: PipelineRun) -> None:
        """Perform the step that leaves the run's current stage."""
        job = run.job
        match run.stage:
            case PipelineStage.INIT:
                path = self.scratch.write_artifact(
                    f"source_analysis_{run.index}.md",
                    compile_source_analysis(job.source_path),
                )
                run.artifacts.source_analysis = str(path)
            case PipelineStage.SOURCE_ANALYSIS_WRITTEN:
                path = self.scratch.write_artifact(
                    f"target_analysis_{run.index}.md",
                    compile_target_analysis(job.target_repo),
                )
                run.artifacts.target_analysis = str(path)
            case PipelineStage.TARGET_ANALYSIS_WRITTEN:
                prompt = compile_migration(
                    job.source_path,
                    job.target_repo,
                    job.instructions,
                    self._read_plan(),
                )
                path = self.scratch.write_artifact(f"migration_prompt_{run.index}.md", prompt)
                run.artifacts.migration_prompt = str(path)
            case PipelineStage.MIGRATION_PROMPT_WRITTEN:
                run.artifacts.agent_output = self._invoke_agent(run)
            case PipelineStage.AGENT_INVOKED:
                pass
            case _:
                raise PipelineError(f"Unknown pipeline stage: {run.stage}")

    def _read_plan(self) -> str | None:
        if self.plan_path is None or not self.plan_path.is_file():
            logger.debug("No implementation plan found, using reference placeholder")
            return None
        return self.plan_path.read_text(encoding="utf-8")

    def _invoke_agent(self, run: PipelineRun) -> str:
        options = self.agent_options.get(str(run.job.agent), {})
        agent = self.agent_factory(run.job.agent, **options)
        working_dir = str(Path(run.job.target_repo).resolve())
        prompt = self.scratch.read_artifact(f"migration_prompt_{run.index}.md")

        result = agent.execute(prompt, working_dir, cancel_event=self.cancel_event)
        logger.info(
            "Agent %s completed in %d ms (%d chars of output)",
            result.agent_name,
            result.duration_ms,
            len(result.output),
        )
        return result.output

    def _fail(self, run: PipelineRun, stage: PipelineStage, error: Exception) -> PipelineRun:
        reason = str(error) or type(error).__name__
        run.finished_at = datetime.now()
        run.outcome = RunOutcome.failed(stage, reason)
        run.error = error
        logger.error(
            "Sync %d failed at stage %s: %s",
            run.index,
            stage,
            truncate_output(reason, 1000),
        )
        return run
