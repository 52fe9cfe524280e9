"""Loop driver - runs sync batches continuously until cancelled."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from repomirror.loop.models import IterationResult, LoopSummary
from repomirror.pipeline import SyncBatchError

if TYPE_CHECKING:
    from collections.abc import Callable

    from repomirror.pipeline import BatchResult

logger = logging.getLogger("repomirror.loop")

DEFAULT_INTERVAL = 10.0


class LoopDriver:
    """Repeats a sync batch forever with a fixed sleep between iterations.

    A failed iteration is logged and recorded; it never stops the loop. The
    batch callable is invoked fresh on every iteration, so a callable that
    reloads configuration picks up edits without a restart.

    Cancellation is cooperative: the event is checked before each batch and
    the sleep between batches wakes as soon as it is set.
    """

    def __init__(
        self,
        run_batch: Callable[[], BatchResult],
        interval: float = DEFAULT_INTERVAL,
        cancel_event: threading.Event | None = None,
        max_iterations: int | None = None,
    ) -> None:
        """Initialize the loop driver.

        Args:
            run_batch: Runs one full batch and returns its result. Raising
                marks the iteration as failed.
            interval: Seconds to sleep between iterations.
            cancel_event: Event that stops the loop when set.
            max_iterations: Stop after this many iterations (None = forever).
        """
        self.run_batch = run_batch
        self.interval = interval
        self.cancel_event = cancel_event if cancel_event is not None else threading.Event()
        self.max_iterations = max_iterations

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def stop(self) -> None:
        """Ask the loop to stop at its next cancellation check."""
        logger.info("Stop requested")
        self.cancel_event.set()

    def run(self) -> LoopSummary:
        """Run iterations until cancelled or max_iterations is reached.

        Returns:
            LoopSummary of every iteration that ran.
        """
        summary = LoopSummary()
        iteration = 0
        logger.info("Starting continuous sync (interval=%ss)", self.interval)

        try:
            while not self.cancelled:
                iteration += 1
                result = self._run_iteration(iteration)
                summary.iterations.append(result)

                if self.max_iterations is not None and iteration >= self.max_iterations:
                    logger.info("Reached %d iteration(s), stopping", iteration)
                    break

                logger.debug("Sleeping %ss before next iteration", self.interval)
                if self.cancel_event.wait(self.interval):
                    break
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
            self.cancel_event.set()

        summary.cancelled = self.cancelled
        logger.info(
            "Continuous sync stopped after %d iteration(s), %d failed",
            len(summary.iterations),
            summary.failures,
        )
        return summary

    def _run_iteration(self, iteration: int) -> IterationResult:
        logger.info("Iteration %d starting", iteration)
        try:
            batch = self.run_batch()
        except SyncBatchError as e:
            logger.error("Iteration %d failed: %s", iteration, e)
            return IterationResult(
                iteration=iteration,
                success=False,
                completed=e.result.completed,
                total=e.result.total,
                error=str(e),
            )
        except Exception as e:
            logger.exception("Iteration %d failed: %s", iteration, e)
            return IterationResult(iteration=iteration, success=False, error=str(e))

        logger.info(
            "Iteration %d finished: %d of %d jobs completed",
            iteration,
            batch.completed,
            batch.total,
        )
        return IterationResult(
            iteration=iteration,
            success=batch.success,
            completed=batch.completed,
            total=batch.total,
        )
