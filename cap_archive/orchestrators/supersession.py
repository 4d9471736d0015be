"""Last-invocation-wins delivery at the caller boundary.

A new archive may be submitted while an earlier one is still being
processed.  The earlier run is left to finish on its own, but once a
newer submission exists nothing from the older one is delivered: its
progress callbacks are dropped, and its result or error is discarded.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from cap_archive.core.exceptions import PipelineError
from cap_archive.orchestrators.archive_pipeline import ArchivePipeline

if TYPE_CHECKING:
    from cap_archive.models.batch import BatchResult, ProgressCallback

logger = logging.getLogger("cap_archive.orchestrators.supersession")


class LatestRunGate:
    """Deliver progress and results of the most recent submission only.

    Attributes:
        pipeline: Pipeline used for every submission.
    """

    def __init__(
        self,
        pipeline: ArchivePipeline | None = None,
        *,
        on_progress: ProgressCallback | None = None,
        on_result: Callable[[BatchResult], None] | None = None,
    ) -> None:
        self.pipeline = pipeline or ArchivePipeline()
        self._on_progress = on_progress
        self._on_result = on_result
        self._generation = 0

    @property
    def generation(self) -> int:
        """Stamp of the most recent submission (0 before the first)."""
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def invalidate(self) -> None:
        """Supersede any in-flight submission without starting a new one."""
        self._generation += 1

    async def submit(self, buffer: bytes | bytearray | memoryview) -> BatchResult | None:
        """Run the pipeline on *buffer* as the newest submission.

        Returns:
            The ``BatchResult``, or ``None`` if a newer submission
            started before this one finished.

        Raises:
            PipelineError: Archive-level errors of a still-current run.
        """
        self._generation += 1
        generation = self._generation

        def progress(processed: int, total: int) -> None:
            if self.is_current(generation) and self._on_progress is not None:
                self._on_progress(processed, total)

        try:
            result = await self.pipeline.run_async(buffer, progress)
        except PipelineError as exc:
            if self.is_current(generation):
                raise
            logger.info(
                "Discarding error of superseded run | generation=%d | latest=%d | code=%s",
                generation,
                self._generation,
                exc.code,
            )
            return None

        if not self.is_current(generation):
            logger.info(
                "Discarding result of superseded run | generation=%d | latest=%d | features=%d",
                generation,
                self._generation,
                len(result.features),
            )
            return None

        if self._on_result is not None:
            self._on_result(result)
        return result
