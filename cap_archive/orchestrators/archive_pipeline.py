"""Archive pipeline controller.

Runs one CAP archive through the extractor and the parser:

1. Counting: open the archive, fix the total before any progress
2. Processing: read, parse and accumulate each entry in archive order,
   then report ``on_progress(processed, total)``
3. Completed: return the ordered ``BatchResult``; or
   Failed: archive-level error, or no usable features at all

Entries are processed strictly one after another so that progress and
feature order are reproducible from the archive's own ordering.  A bad
document never aborts the batch: its failure is recorded as a tagged
``EntryOutcome`` and the run moves on.

Every invocation builds a fresh ``PipelineRun``; no accumulator or
state is shared between runs.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from cap_archive.activities.extract_archive import DocumentArchive
from cap_archive.activities.parse_cap import DocumentParseError, parse_document_strict
from cap_archive.core.config import PipelineConfig
from cap_archive.core.exceptions import ContractError, PermanentError, PipelineError
from cap_archive.models.batch import (
    BatchAccumulator,
    BatchResult,
    EntryFailure,
    EntryOutcome,
    PipelineState,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from cap_archive.models.batch import ProgressCallback
    from cap_archive.models.report import BatchReport

logger = logging.getLogger("cap_archive.orchestrators.archive_pipeline")

_TRANSITIONS: dict[PipelineState, frozenset[PipelineState]] = {
    PipelineState.IDLE: frozenset({PipelineState.COUNTING, PipelineState.FAILED}),
    PipelineState.COUNTING: frozenset({PipelineState.PROCESSING, PipelineState.FAILED}),
    PipelineState.PROCESSING: frozenset({PipelineState.COMPLETED, PipelineState.FAILED}),
    PipelineState.COMPLETED: frozenset(),
    PipelineState.FAILED: frozenset(),
}


class NoFeaturesError(PermanentError):
    """Raised when every document was processed but none yielded a feature.

    Distinct from ``EmptyArchiveError``: the archive did hold documents.

    Attributes:
        total: Number of document entries processed.
        failures: Recovered per-entry failures of the run.
        report: Audit record of the failed run.
    """

    default_stage = "archive_pipeline"
    default_code = "NO_FEATURES"

    def __init__(
        self,
        message: str = "",
        *,
        total: int = 0,
        failures: tuple[EntryFailure, ...] = (),
        report: BatchReport | None = None,
        **kwargs: object,
    ) -> None:
        self.total = total
        self.failures = failures
        self.report = report
        super().__init__(message, **kwargs)


class PipelineRun:
    """State, accumulator and identity of a single pipeline invocation."""

    def __init__(self, config: PipelineConfig, *, run_id: str = "") -> None:
        self.config = config
        self.run_id = run_id or uuid.uuid4().hex
        self.state = PipelineState.IDLE
        self.started_at = datetime.now(UTC)
        self._accumulator = BatchAccumulator()
        self._names: list[str] = []

    @property
    def processed(self) -> int:
        return self._accumulator.processed

    @property
    def total(self) -> int:
        return self._accumulator.total

    def advance(self, new_state: PipelineState) -> None:
        """Move to *new_state*.  Raises ``ContractError`` on an illegal transition."""
        if new_state not in _TRANSITIONS[self.state]:
            msg = f"Illegal pipeline transition {self.state.value} -> {new_state.value}"
            raise ContractError(
                msg,
                stage="archive_pipeline",
                code="ILLEGAL_STATE_TRANSITION",
                correlation_id=self.run_id,
            )
        logger.debug(
            "Pipeline state | run=%s | %s -> %s",
            self.run_id,
            self.state.value,
            new_state.value,
        )
        self.state = new_state

    @contextlib.contextmanager
    def guard(self) -> Iterator[None]:
        """Mark the run failed if the wrapped block raises."""
        try:
            yield
        except PipelineError as exc:
            self._fail(exc.bind(self.run_id))
            raise
        except Exception as exc:
            self._fail(exc)
            raise

    def open(self, buffer: bytes | bytearray | memoryview) -> DocumentArchive:
        """Open the archive and fix the total entry count."""
        self.advance(PipelineState.COUNTING)
        archive = DocumentArchive(
            buffer,
            document_extension=self.config.document_extension,
            max_entry_bytes=self.config.max_entry_bytes,
        )
        self._names = archive.names
        self._accumulator.total = len(self._names)
        self.advance(PipelineState.PROCESSING)
        logger.info(
            "Pipeline run started | run=%s | documents=%d",
            self.run_id,
            self.total,
        )
        return archive

    def process_entry(self, archive: DocumentArchive, index: int) -> EntryOutcome:
        """Read and parse one entry, returning a tagged outcome.

        Document-level errors are recorded, never raised.  The entry's
        bytes are released when this method returns.
        """
        name = self._names[index]
        try:
            entry = archive.read_at(index)
            features = parse_document_strict(entry.content, source_name=name, config=self.config)
        except DocumentParseError as exc:
            exc.bind(self.run_id)
            logger.warning(
                "Document skipped | run=%s | entry=%s | code=%s | %s",
                self.run_id,
                name,
                exc.code,
                exc.message,
            )
            return EntryOutcome(entry_name=name, failure=EntryFailure.from_error(name, exc))

        if not features:
            logger.info("Document has no usable areas | run=%s | entry=%s", self.run_id, name)
        return EntryOutcome(entry_name=name, features=tuple(features))

    def record(self, outcome: EntryOutcome, on_progress: ProgressCallback | None) -> None:
        """Accumulate *outcome* and report progress exactly once."""
        if self.state is not PipelineState.PROCESSING:
            msg = f"Cannot record entry '{outcome.entry_name}' in state {self.state.value}"
            raise ContractError(
                msg,
                stage="archive_pipeline",
                code="RUN_NOT_PROCESSING",
                correlation_id=self.run_id,
            )
        self._accumulator.add(outcome)
        logger.debug(
            "Progress | run=%s | entry=%s | processed=%d/%d | features=%d",
            self.run_id,
            outcome.entry_name,
            self.processed,
            self.total,
            len(outcome.features),
        )
        if on_progress is not None:
            on_progress(self.processed, self.total)

    def finish(self) -> BatchResult:
        """Close the run.  Raises ``NoFeaturesError`` for a featureless batch."""
        acc = self._accumulator
        result = BatchResult(
            features=tuple(acc.features),
            processed=acc.processed,
            total=acc.total,
            failures=tuple(acc.failures),
            run_id=self.run_id,
            started_at=self.started_at,
            finished_at=datetime.now(UTC),
        )

        if not result.features and result.total > 0:
            msg = (
                f"Archive had {result.total} document(s) but none contained "
                "usable geographic data"
            )
            error = NoFeaturesError(
                msg,
                total=result.total,
                failures=result.failures,
                report=result.to_report(),
                correlation_id=self.run_id,
            )
            self._fail(error)
            raise error

        self.advance(PipelineState.COMPLETED)
        logger.info(
            "Pipeline run completed | run=%s | processed=%d/%d | features=%d | failures=%d",
            self.run_id,
            result.processed,
            result.total,
            len(result.features),
            len(result.failures),
        )
        return result

    def _fail(self, exc: BaseException) -> None:
        if self.state.is_terminal:
            return
        self.state = PipelineState.FAILED
        logger.warning(
            "Pipeline run failed | run=%s | processed=%d/%d | %s: %s",
            self.run_id,
            self.processed,
            self.total,
            type(exc).__name__,
            exc,
        )


class ArchivePipeline:
    """Sequential CAP archive → feature collection pipeline.

    Usage::

        pipeline = ArchivePipeline(PipelineConfig.from_env())
        result = pipeline.run(zip_bytes, on_progress=lambda done, total: ...)
        layer = result.to_feature_collection()

    Raises (from ``run`` / ``run_async``):
        ArchiveFormatError: The buffer is not a valid ZIP archive.
        EmptyArchiveError: The archive holds no document entries.
        NoFeaturesError: Documents were processed but none yielded a feature.
    """

    def __init__(self, config: PipelineConfig | None = None) -> None:
        self.config = config or PipelineConfig()
        self._latest: PipelineRun | None = None

    @property
    def state(self) -> PipelineState:
        """State of the most recently started run (``IDLE`` before any run)."""
        return self._latest.state if self._latest is not None else PipelineState.IDLE

    def _start_run(self) -> PipelineRun:
        run = PipelineRun(self.config)
        self._latest = run
        return run

    def run(
        self,
        buffer: bytes | bytearray | memoryview,
        on_progress: ProgressCallback | None = None,
    ) -> BatchResult:
        """Process every document entry of *buffer* in archive order."""
        run = self._start_run()
        with run.guard():
            archive = run.open(buffer)
            try:
                for index in range(run.total):
                    run.record(run.process_entry(archive, index), on_progress)
            finally:
                archive.close()
            return run.finish()

    async def run_async(
        self,
        buffer: bytes | bytearray | memoryview,
        on_progress: ProgressCallback | None = None,
    ) -> BatchResult:
        """Async variant of ``run``.

        Opening the archive and each entry's read + parse run in a worker
        thread; each entry is fully processed, including its progress
        callback, before the next one starts.
        """
        run = self._start_run()
        with run.guard():
            archive = await asyncio.to_thread(run.open, buffer)
            try:
                for index in range(run.total):
                    outcome = await asyncio.to_thread(run.process_entry, archive, index)
                    run.record(outcome, on_progress)
            finally:
                archive.close()
            return run.finish()
