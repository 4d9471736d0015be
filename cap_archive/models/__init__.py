"""Data models and schemas.

Defines the data structures used throughout the pipeline:
- AlertEnvelope / InfoBlock / AreaBlock: the modelled CAP hierarchy
- AlertFeature: Polygon, MultiPolygon or metadata-only output feature
- BatchResult: Ordered features and progress counters of one run
- BatchReport: Pydantic audit record of one run
"""

from cap_archive.models.alert import AlertEnvelope, AreaBlock, InfoBlock
from cap_archive.models.batch import (
    BatchResult,
    EntryFailure,
    EntryOutcome,
    PipelineState,
    ProgressCallback,
)
from cap_archive.models.feature import AlertFeature
from cap_archive.models.report import BatchReport

__all__ = [
    "AlertEnvelope",
    "AlertFeature",
    "AreaBlock",
    "BatchReport",
    "BatchResult",
    "EntryFailure",
    "EntryOutcome",
    "InfoBlock",
    "PipelineState",
    "ProgressCallback",
]
