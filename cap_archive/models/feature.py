"""Data model for a parsed CAP alert feature.

An ``AlertFeature`` is one info/area combination of a CAP document: a
Polygon, MultiPolygon or absent geometry plus the flat property bag of
its alert, info and area blocks.  It is the output of the parse_cap
activity and the unit aggregated by the archive pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

GEOMETRY_POLYGON = "Polygon"
GEOMETRY_MULTIPOLYGON = "MultiPolygon"

Ring = list[list[float]]


@dataclass(frozen=True, slots=True)
class AlertFeature:
    """A single geometry-bearing (or metadata-only) CAP feature.

    Attributes:
        geometry: GeoJSON geometry dict (``Polygon`` or ``MultiPolygon``),
            or ``None`` for a metadata-only area.
        properties: Merged alert ⊕ info ⊕ area fields keyed by CAP name.
        source_file: Archive entry the feature was parsed from.
        info_index: Zero-based index of the ``<info>`` block in the alert.
        area_index: Zero-based index of the ``<area>`` block in the info.
    """

    geometry: dict[str, Any] | None
    properties: dict[str, str] = field(default_factory=dict)
    source_file: str = ""
    info_index: int = 0
    area_index: int = 0

    @classmethod
    def from_rings(
        cls,
        rings: list[Ring],
        properties: dict[str, str],
        **kwargs: Any,
    ) -> AlertFeature:
        """Build a feature, promoting the ring list to the right geometry.

        No rings gives a metadata-only feature, one ring a ``Polygon``,
        and several rings a ``MultiPolygon`` whose members are the rings
        in order, each used as an independent outer boundary.
        """
        geometry: dict[str, Any] | None
        if not rings:
            geometry = None
        elif len(rings) == 1:
            geometry = {"type": GEOMETRY_POLYGON, "coordinates": [rings[0]]}
        else:
            geometry = {
                "type": GEOMETRY_MULTIPOLYGON,
                "coordinates": [[ring] for ring in rings],
            }
        return cls(geometry=geometry, properties=dict(properties), **kwargs)

    @property
    def geometry_type(self) -> str | None:
        """GeoJSON geometry type, or ``None`` for metadata-only features."""
        if self.geometry is None:
            return None
        return str(self.geometry["type"])

    @property
    def rings(self) -> list[Ring]:
        """All outer rings of the geometry, in order."""
        if self.geometry is None:
            return []
        if self.geometry["type"] == GEOMETRY_POLYGON:
            return [self.geometry["coordinates"][0]]
        return [polygon[0] for polygon in self.geometry["coordinates"]]

    def to_dict(self) -> dict[str, object]:
        """Serialise to a GeoJSON ``Feature`` dict."""
        return {
            "type": "Feature",
            "geometry": self.geometry,
            "properties": dict(self.properties),
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> AlertFeature:
        """Deserialise from a GeoJSON ``Feature`` dict.

        Raises:
            TypeError: If ``geometry`` or ``properties`` have unexpected types.
        """
        geometry = data.get("geometry")
        if geometry is not None and not isinstance(geometry, dict):
            msg = f"geometry must be a dict or None, got {type(geometry).__name__}"
            raise TypeError(msg)

        properties = data.get("properties") or {}
        if not isinstance(properties, dict):
            msg = f"properties must be a dict, got {type(properties).__name__}"
            raise TypeError(msg)

        return cls(
            geometry=geometry,
            properties={str(k): str(v) for k, v in properties.items()},
        )
