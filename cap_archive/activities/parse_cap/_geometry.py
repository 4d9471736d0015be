"""CAP polygon string → GeoJSON ring conversion.

A CAP polygon is a whitespace-delimited list of ``"lat,lon"`` pairs.
Conversion swaps every pair to GeoJSON ``[lon, lat]`` order, drops pairs
that do not parse, drops the whole ring when too few distinct positions
survive, and closes the ring when the source left it open.
"""

from __future__ import annotations

import logging

from cap_archive.activities.parse_cap._validation import parse_position
from cap_archive.core.constants import DEFAULT_MIN_RING_POSITIONS
from cap_archive.models.feature import Ring
from cap_archive.utils.geojson import ring_problems

logger = logging.getLogger("cap_archive.activities.parse_cap")


def close_ring(positions: Ring) -> Ring:
    """Return *positions* with the first position appended if the ring is open."""
    if positions and positions[0] != positions[-1]:
        return [*positions, list(positions[0])]
    return list(positions)


def polygon_to_ring(
    polygon: str,
    *,
    context: str = "",
    min_positions: int = DEFAULT_MIN_RING_POSITIONS,
    reject_out_of_range: bool = False,
) -> Ring | None:
    """Convert one CAP polygon string into a closed ``[lon, lat]`` ring.

    Args:
        polygon: Raw ``"lat,lon lat,lon ..."`` text.
        context: Label used in log messages (entry, info and area index).
        min_positions: Distinct valid pairs required to keep the ring.
        reject_out_of_range: Treat pairs outside WGS 84 bounds as invalid.

    Returns:
        The closed ring, or ``None`` if fewer than *min_positions*
        distinct valid pairs remain after filtering.
    """
    positions: Ring = []
    for token in polygon.split():
        position = parse_position(token, reject_out_of_range=reject_out_of_range)
        if position is None:
            logger.warning("Dropping invalid coordinate pair %r | %s", token, context)
            continue
        positions.append(position)

    distinct = {tuple(p) for p in positions}
    if len(distinct) < min_positions:
        logger.warning(
            "Dropping polygon with %d distinct valid position(s), need %d | %s",
            len(distinct),
            min_positions,
            context,
        )
        return None

    ring = close_ring(positions)

    problems = ring_problems(ring)
    if problems:
        logger.warning("Keeping defective ring (%s) | %s", "; ".join(problems), context)

    return ring
