"""Pipeline configuration loaded from environment variables.

All configuration values have sensible defaults, so an unconfigured
process behaves exactly like the documented pipeline contract.

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if any value is
    out of its valid range.  This prevents latent runtime errors by
    catching bad configuration at startup.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from cap_archive.core.constants import (
    DEFAULT_DOCUMENT_EXTENSION,
    DEFAULT_MAX_ENTRY_BYTES,
    DEFAULT_MIN_RING_POSITIONS,
)
from cap_archive.core.exceptions import SCOPE_CONFIG, PipelineError

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


class ConfigValidationError(PipelineError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
        message: Human-readable description of the valid range.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"
    default_scope = SCOPE_CONFIG

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    """Immutable pipeline configuration.

    Built once by the caller and threaded through the extractor, the
    parser and the controller.

    Attributes:
        document_extension: Suffix (with leading dot) of CAP document entries.
        min_ring_positions: Distinct valid coordinate pairs needed to keep a ring.
        max_entry_bytes: Largest uncompressed entry the extractor will read.
        reject_out_of_range: Also drop pairs outside WGS 84 bounds (off by default).
    """

    document_extension: str = DEFAULT_DOCUMENT_EXTENSION
    min_ring_positions: int = DEFAULT_MIN_RING_POSITIONS
    max_entry_bytes: int = DEFAULT_MAX_ENTRY_BYTES
    reject_out_of_range: bool = False

    def __post_init__(self) -> None:
        _validate(self)

    @classmethod
    def from_env(cls) -> PipelineConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a value is out of range or a
                boolean flag is not a recognised literal.
            ValueError: If a numeric environment variable cannot be
                parsed (e.g. ``CAP_MAX_ENTRY_BYTES=abc``).
        """
        return cls(
            document_extension=os.getenv("CAP_DOCUMENT_EXTENSION", DEFAULT_DOCUMENT_EXTENSION),
            min_ring_positions=int(
                os.getenv("CAP_MIN_RING_POSITIONS", str(DEFAULT_MIN_RING_POSITIONS))
            ),
            max_entry_bytes=int(os.getenv("CAP_MAX_ENTRY_BYTES", str(DEFAULT_MAX_ENTRY_BYTES))),
            reject_out_of_range=_parse_bool(
                "CAP_REJECT_OUT_OF_RANGE", os.getenv("CAP_REJECT_OUT_OF_RANGE", "false")
            ),
        )


def _parse_bool(key: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigValidationError(key, raw, "must be a boolean (true/false)")


def _validate(config: PipelineConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    if not config.document_extension or not config.document_extension.startswith("."):
        raise ConfigValidationError(
            "CAP_DOCUMENT_EXTENSION",
            config.document_extension,
            "must be a non-empty suffix starting with '.'",
        )

    if config.min_ring_positions < DEFAULT_MIN_RING_POSITIONS:
        raise ConfigValidationError(
            "CAP_MIN_RING_POSITIONS",
            config.min_ring_positions,
            f"must be >= {DEFAULT_MIN_RING_POSITIONS} (a ring needs three corners)",
        )

    if config.max_entry_bytes <= 0:
        raise ConfigValidationError(
            "CAP_MAX_ENTRY_BYTES",
            config.max_entry_bytes,
            "must be > 0 (bytes)",
        )
