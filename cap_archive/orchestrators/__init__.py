"""Pipeline orchestration.

Drives a CAP archive through extraction and parsing:
1. Open archive → count document entries
2. Sequential per-entry read + parse + accumulate + progress
3. Aggregate → ordered ``BatchResult``

``LatestRunGate`` sits at the caller boundary and delivers only the
result of the most recent invocation.
"""

from cap_archive.orchestrators.archive_pipeline import (
    ArchivePipeline,
    NoFeaturesError,
    PipelineRun,
)
from cap_archive.orchestrators.supersession import LatestRunGate

__all__ = [
    "ArchivePipeline",
    "LatestRunGate",
    "NoFeaturesError",
    "PipelineRun",
]
