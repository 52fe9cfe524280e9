"""Amp agent - placeholder that performs no real work."""

from __future__ import annotations

import logging
import threading
import time

from repomirror.agents.base import Agent
from repomirror.agents.models import AgentKind, AgentResult

logger = logging.getLogger("repomirror.agents.amp")

DEFAULT_DELAY = 1.0
PREVIEW_LENGTH = 100


class AmpAgent(Agent):
    """Placeholder agent used to exercise the pluggable agent interface.

    Accepts instructions, logs a truncated preview, waits a fixed delay and
    returns a canned response. It never touches the working directory.
    """

    name = AgentKind.AMP.value

    def __init__(self, delay: float = DEFAULT_DELAY) -> None:
        self.delay = delay

    def execute(
        self,
        instructions: str,
        working_dir: str,
        *,
        cancel_event: threading.Event | None = None,
    ) -> AgentResult:
        self.validate_request(instructions, working_dir)

        logger.info("Amp agent execution (placeholder): %s...", instructions[:PREVIEW_LENGTH])
        logger.debug("Working directory: %s", working_dir)

        start = time.monotonic()
        # Interruptible stand-in for asynchronous completion
        if (cancel_event or threading.Event()).wait(self.delay):
            logger.debug("Amp agent delay cut short by cancellation")
        duration_ms = int((time.monotonic() - start) * 1000)

        return AgentResult(
            agent_name=self.name,
            output=f'Amp agent response placeholder for prompt: "{instructions[:50]}..."',
            duration_ms=duration_ms,
        )
