"""Data models for one archive pipeline run.

- ``PipelineState``: lifecycle states of a run
- ``EntryFailure``: a recovered per-entry failure
- ``EntryOutcome``: tagged result of processing one archive entry
- ``BatchResult``: ordered features plus progress counters of a run
"""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cap_archive.core.exceptions import PipelineError
    from cap_archive.models.feature import AlertFeature
    from cap_archive.models.report import BatchReport

ProgressCallback = Callable[[int, int], None]
"""``on_progress(processed, total)``: invoked once per archive entry."""


class PipelineState(enum.Enum):
    """Lifecycle of a single pipeline run."""

    IDLE = "idle"
    COUNTING = "counting"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (PipelineState.COMPLETED, PipelineState.FAILED)


@dataclass(frozen=True, slots=True)
class EntryFailure:
    """A document that was counted as processed but contributed nothing.

    Attributes:
        entry_name: Archive entry name.
        code: Machine-readable error code from the taxonomy.
        message: Human-readable diagnostic.
    """

    entry_name: str
    code: str
    message: str

    @classmethod
    def from_error(cls, entry_name: str, error: PipelineError) -> EntryFailure:
        return cls(entry_name=entry_name, code=error.code, message=error.message)


@dataclass(frozen=True, slots=True)
class EntryOutcome:
    """Tagged per-entry result: either features or a recorded failure."""

    entry_name: str
    features: tuple[AlertFeature, ...] = ()
    failure: EntryFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass(frozen=True, slots=True)
class BatchResult:
    """Aggregated output of one completed run.

    Attributes:
        features: Features in document order, then info/area order.
        processed: Number of entries processed (equals ``total`` on success).
        total: Number of document entries counted in the archive.
        failures: Recovered per-entry failures, in processing order.
        run_id: Identifier of the run that produced this result.
        started_at: UTC start time of the run.
        finished_at: UTC completion time of the run.
    """

    features: tuple[AlertFeature, ...]
    processed: int
    total: int
    failures: tuple[EntryFailure, ...] = ()
    run_id: str = ""
    started_at: datetime | None = None
    finished_at: datetime | None = None

    def __len__(self) -> int:
        return len(self.features)

    @property
    def feature_dicts(self) -> list[dict[str, object]]:
        return [f.to_dict() for f in self.features]

    def to_feature_collection(self) -> dict[str, object]:
        """Return the result as a GeoJSON ``FeatureCollection``.

        The collection replaces any previously rendered archive layer.
        A ``bbox`` member is present when at least one feature has
        geometry.
        """
        from cap_archive.utils.geojson import collection_bbox

        collection: dict[str, object] = {
            "type": "FeatureCollection",
            "features": self.feature_dicts,
        }
        bbox = collection_bbox(self.features)
        if bbox is not None:
            collection["bbox"] = list(bbox)
        return collection

    def to_report(self) -> BatchReport:
        """Build the run's audit record."""
        from cap_archive.models.report import BatchReport

        return BatchReport.from_run(
            run_id=self.run_id,
            features=self.features,
            processed=self.processed,
            total=self.total,
            failures=self.failures,
            started_at=self.started_at,
            finished_at=self.finished_at,
        )


@dataclass(slots=True)
class BatchAccumulator:
    """Mutable per-run accumulator; never shared between runs."""

    total: int = 0
    processed: int = 0
    features: list[AlertFeature] = field(default_factory=list)
    failures: list[EntryFailure] = field(default_factory=list)

    def add(self, outcome: EntryOutcome) -> None:
        self.processed += 1
        self.features.extend(outcome.features)
        if outcome.failure is not None:
            self.failures.append(outcome.failure)
