"""Pydantic run report for the CAP archive pipeline.

The report is the audit trail of one run: what the archive contained,
how many documents were processed, which geometry each produced, and
which documents were recovered from.  It is built from a completed
``BatchResult`` or, for runs ending in ``NoFeaturesError``, from the
accumulated failures.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from cap_archive.models.batch import EntryFailure
    from cap_archive.models.feature import AlertFeature

SCHEMA_VERSION = "cap-archive-report-v1"


class FailureRecord(BaseModel):
    """One recovered document failure."""

    entry_name: str
    code: str = ""
    message: str = ""


class GeometrySummary(BaseModel):
    """Feature counts per geometry kind.

    Attributes:
        polygon: Features with a ``Polygon`` geometry.
        multipolygon: Features with a ``MultiPolygon`` geometry.
        metadata_only: Features without geometry (area description only).
        rings: Total number of rings across all features.
    """

    polygon: int = 0
    multipolygon: int = 0
    metadata_only: int = 0
    rings: int = 0


class BatchReport(BaseModel):
    """Top-level record of one archive pipeline run.

    Attributes:
        schema_version: Schema identifier for forward compatibility.
        run_id: Pipeline run identifier (also the error correlation id).
        started_at: Run start timestamp (ISO 8601, UTC).
        finished_at: Run completion timestamp (ISO 8601, UTC).
        duration_s: Wall-clock run duration in seconds.
        total_entries: Document entries counted in the archive.
        processed_entries: Entries processed before the run ended.
        feature_count: Features in the final collection.
        geometry: Per-kind feature counts.
        failures: Recovered per-entry failures.
        status: ``"success"``, ``"partial"`` or ``"failed"``.
    """

    schema_version: str = Field(default=SCHEMA_VERSION, alias="$schema")
    run_id: str = ""
    started_at: str = ""
    finished_at: str = ""
    duration_s: float = 0.0
    total_entries: int = 0
    processed_entries: int = 0
    feature_count: int = 0
    geometry: GeometrySummary = Field(default_factory=GeometrySummary)
    failures: list[FailureRecord] = Field(default_factory=list)
    status: str = "pending"

    model_config = {"populate_by_name": True}

    @classmethod
    def from_run(
        cls,
        *,
        run_id: str,
        features: Iterable[AlertFeature],
        processed: int,
        total: int,
        failures: Iterable[EntryFailure],
        started_at: datetime | None = None,
        finished_at: datetime | None = None,
    ) -> BatchReport:
        features = list(features)
        failure_records = [
            FailureRecord(entry_name=f.entry_name, code=f.code, message=f.message)
            for f in failures
        ]

        kinds = Counter(f.geometry_type for f in features)
        summary = GeometrySummary(
            polygon=kinds.get("Polygon", 0),
            multipolygon=kinds.get("MultiPolygon", 0),
            metadata_only=kinds.get(None, 0),
            rings=sum(len(f.rings) for f in features),
        )

        finished = finished_at or datetime.now(UTC)
        started = started_at or finished
        duration = max((finished - started).total_seconds(), 0.0)

        return cls(
            run_id=run_id,
            started_at=started.isoformat(),
            finished_at=finished.isoformat(),
            duration_s=round(duration, 3),
            total_entries=total,
            processed_entries=processed,
            feature_count=len(features),
            geometry=summary,
            failures=failure_records,
            status=_status(len(features), failure_records),
        )

    def to_json(self, *, indent: int = 2) -> str:
        """Serialise to a JSON string.

        Uses the ``$schema`` alias for the schema version field.
        """
        return self.model_dump_json(indent=indent, by_alias=True)

    def to_dict(self) -> dict[str, object]:
        """Serialise to a plain dict."""
        return self.model_dump(by_alias=True)  # type: ignore[return-value]


def _status(feature_count: int, failures: list[FailureRecord]) -> str:
    if feature_count == 0:
        return "failed"
    if failures:
        return "partial"
    return "success"
