"""CAP document parsing activity.

Parses one Common Alerting Protocol document and emits one
``AlertFeature`` per info/area combination that carries geometry or an
area description.

The parsing pipeline is split into focused stages:
- **_validation**: hardened XML loading, coordinate pair parsing
- **_selectors**: namespace-tolerant field → selector lookup table
- **_reader**: alert / info / area block extraction
- **_geometry**: lat,lon → lon,lat rings, filtering and closure

Geometry promotion per area:
- no valid ring: metadata-only feature if ``areaDesc`` is non-empty
- one ring: ``Polygon``
- two or more rings: one ``MultiPolygon``, each ring an outer boundary

Graceful degradation: a bad coordinate pair drops only that pair, a
short ring drops only that ring, and a malformed document yields no
features instead of an exception (``parse_document``).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cap_archive.activities.parse_cap._constants import CAP_NAMESPACES
from cap_archive.activities.parse_cap._geometry import close_ring, polygon_to_ring
from cap_archive.activities.parse_cap._reader import read_area, read_envelope, read_info
from cap_archive.activities.parse_cap._selectors import (
    FIELD_SELECTORS,
    find_all,
    find_first,
    find_text,
    locate_alert,
)
from cap_archive.activities.parse_cap._validation import (
    DocumentParseError,
    parse_position,
    parse_xml,
)
from cap_archive.core.config import PipelineConfig
from cap_archive.models.feature import AlertFeature

if TYPE_CHECKING:
    from cap_archive.models.alert import AreaBlock
    from cap_archive.models.feature import Ring

logger = logging.getLogger("cap_archive.activities.parse_cap")

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    "CAP_NAMESPACES",
    "FIELD_SELECTORS",
    "DocumentParseError",
    "close_ring",
    "find_all",
    "find_first",
    "find_text",
    "locate_alert",
    "parse_document",
    "parse_document_strict",
    "parse_position",
    "parse_xml",
    "polygon_to_ring",
]

_DEFAULT_CONFIG = PipelineConfig()


def parse_document_strict(
    content: str | bytes,
    *,
    source_name: str = "",
    config: PipelineConfig | None = None,
) -> list[AlertFeature]:
    """Parse a CAP document, raising on document-level problems.

    Args:
        content: Document text, or raw bytes (encoding declaration honoured).
        source_name: Archive entry name, used in features and log messages.
        config: Pipeline configuration (ring threshold, bounds policy).

    Returns:
        Features in info order, then area order.  May be empty when the
        alert has no info/area with geometry or description.

    Raises:
        DocumentParseError: If the document is empty, not well-formed
            XML, or has no ``<alert>`` element.
    """
    config = config or _DEFAULT_CONFIG
    label = source_name or "<document>"

    root = parse_xml(content, source_name)
    alert = locate_alert(root)
    if alert is None:
        msg = f"No <alert> element found in CAP document {label}"
        raise DocumentParseError(msg, code="CAP_ALERT_MISSING")

    envelope = read_envelope(alert)
    features: list[AlertFeature] = []

    for info_index, info_elem in enumerate(find_all(alert, "info", deep=True)):
        info = read_info(info_elem)
        for area_index, area_elem in enumerate(find_all(info_elem, "area", deep=True)):
            area = read_area(area_elem)
            context = f"entry={label} | info={info_index} | area={area_index}"
            rings = _area_rings(area, context, config)

            if not rings and not area.area_desc:
                logger.debug("Area has neither geometry nor description | %s", context)
                continue

            features.append(
                AlertFeature.from_rings(
                    rings,
                    {
                        **envelope.to_properties(),
                        **info.to_properties(),
                        **area.to_properties(),
                    },
                    source_file=source_name,
                    info_index=info_index,
                    area_index=area_index,
                )
            )

    logger.debug(
        "Parsed CAP document | entry=%s | identifier=%s | features=%d",
        label,
        envelope.identifier,
        len(features),
    )
    return features


def parse_document(
    content: str | bytes,
    *,
    source_name: str = "",
    config: PipelineConfig | None = None,
) -> list[AlertFeature]:
    """Parse a CAP document, recovering from document-level problems.

    Same as ``parse_document_strict`` but a malformed document yields an
    empty list and a logged warning instead of an exception.
    """
    try:
        return parse_document_strict(content, source_name=source_name, config=config)
    except DocumentParseError as exc:
        logger.warning("Skipping CAP document %s: %s", source_name or "<document>", exc)
        return []


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _area_rings(area: AreaBlock, context: str, config: PipelineConfig) -> list[Ring]:
    rings: list[Ring] = []
    for polygon_index, polygon in enumerate(area.polygons):
        ring = polygon_to_ring(
            polygon,
            context=f"{context} | polygon={polygon_index}",
            min_positions=config.min_ring_positions,
            reject_out_of_range=config.reject_out_of_range,
        )
        if ring is not None:
            rings.append(ring)
    return rings
