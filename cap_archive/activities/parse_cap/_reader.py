"""Read the modelled CAP blocks out of an lxml element tree."""

from __future__ import annotations

from typing import TYPE_CHECKING

from cap_archive.activities.parse_cap._selectors import find_all, find_text
from cap_archive.models.alert import (
    ALERT_PROPERTY_NAMES,
    AREA_PROPERTY_NAMES,
    INFO_PROPERTY_NAMES,
    AlertEnvelope,
    AreaBlock,
    InfoBlock,
)

if TYPE_CHECKING:
    from lxml.etree import _Element


def _read_fields(element: _Element, names: dict[str, str]) -> dict[str, str]:
    return {attr: find_text(element, cap_name) for attr, cap_name in names.items()}


def read_envelope(alert: _Element) -> AlertEnvelope:
    return AlertEnvelope(**_read_fields(alert, ALERT_PROPERTY_NAMES))


def read_info(info: _Element) -> InfoBlock:
    return InfoBlock(**_read_fields(info, INFO_PROPERTY_NAMES))


def read_area(area: _Element) -> AreaBlock:
    """Read an area block; empty polygon elements are skipped."""
    polygons = tuple(
        text
        for text in ("".join(el.itertext()).strip() for el in find_all(area, "polygon", deep=True))
        if text
    )
    return AreaBlock(polygons=polygons, **_read_fields(area, AREA_PROPERTY_NAMES))
