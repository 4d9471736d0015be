"""GeoJSON helpers backed by shapely.

Used for diagnostics on individual rings and for the ``bbox`` member of
the feature collection handed to the map layer.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cap_archive.models.feature import AlertFeature, Ring


def ring_problems(ring: Ring) -> list[str]:
    """Describe geometric defects of a closed ring, if any.

    Returns an empty list for a simple ring with positive area.  A
    non-empty result is diagnostic only; callers keep the ring.
    """
    from shapely.geometry import Polygon
    from shapely.validation import explain_validity

    try:
        poly = Polygon(ring)
    except (ValueError, TypeError) as exc:
        return [f"cannot build polygon: {exc}"]

    problems: list[str] = []
    if not poly.is_valid:
        problems.append(explain_validity(poly))
    if poly.area == 0:
        problems.append("zero area")
    return problems


def collection_bbox(
    features: Iterable[AlertFeature],
) -> tuple[float, float, float, float] | None:
    """Return ``(min_lon, min_lat, max_lon, max_lat)`` over all geometries.

    Metadata-only features are ignored.  Returns ``None`` when no
    feature carries geometry.
    """
    from shapely.geometry import shape

    min_x = min_y = float("inf")
    max_x = max_y = float("-inf")
    found = False

    for feature in features:
        if feature.geometry is None:
            continue
        x0, y0, x1, y1 = shape(feature.geometry).bounds
        min_x, min_y = min(min_x, x0), min(min_y, y0)
        max_x, max_y = max(max_x, x1), max(max_y, y1)
        found = True

    if not found:
        return None
    return (min_x, min_y, max_x, max_y)
