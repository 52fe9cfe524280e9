"""Scratch directory holding the prompt artifacts of a pipeline run."""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger("repomirror.pipeline.scratch")


class ScratchDirectory:
    """Handle for the directory the pipeline writes its artifacts into.

    Artifacts are left in place after a run for inspection. The directory is
    not locked: two engines sharing one scratch directory will overwrite each
    other's artifacts.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def ensure(self) -> Path:
        """Create the directory if it does not exist.

        Returns:
            The directory path.
        """
        self.path.mkdir(parents=True, exist_ok=True)
        return self.path

    def artifact_path(self, name: str) -> Path:
        return self.path / name

    def write_artifact(self, name: str, content: str) -> Path:
        """Write an artifact atomically.

        The content goes to a temporary file in the same directory which is
        then renamed over the destination, so readers never see a partial file.

        Args:
            name: File name inside the scratch directory.
            content: Text to write.

        Returns:
            Path of the written artifact.
        """
        self.ensure()
        destination = self.artifact_path(name)
        fd, tmp_name = tempfile.mkstemp(dir=self.path, prefix=f".{name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_name, destination)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_name)
            raise
        logger.debug("Wrote %s (%d chars)", destination, len(content))
        return destination

    def read_artifact(self, name: str) -> str:
        return self.artifact_path(name).read_text(encoding="utf-8")
