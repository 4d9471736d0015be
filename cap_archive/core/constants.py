"""Archive and geometry defaults shared across the pipeline.

Centralises the archive filtering defaults and limits shared by the
extractor, the configuration layer and the controller.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Archive filtering
# ---------------------------------------------------------------------------

DEFAULT_DOCUMENT_EXTENSION: str = ".xml"
"""Case-insensitive suffix identifying CAP document entries in an archive."""

DEFAULT_MAX_ENTRY_BYTES: int = 16 * 1024 * 1024
"""Upper bound on the uncompressed size of a single archive entry."""

# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

DEFAULT_MIN_RING_POSITIONS: int = 3
"""Minimum distinct valid coordinate pairs required to keep a ring."""


def has_document_extension(entry_name: str, extension: str = DEFAULT_DOCUMENT_EXTENSION) -> bool:
    """Return whether *entry_name* ends in *extension*, ignoring case.

    Args:
        entry_name: Archive entry path (e.g. ``"alerts/A1.XML"``).
        extension: Suffix including the leading dot.
    """
    return entry_name.lower().endswith(extension.lower())
