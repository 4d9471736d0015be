"""Tests for the CAP block models and the AlertFeature model.

Covers:
- Property bags keyed by CAP element names, empty fields omitted
- Geometry promotion (none / Polygon / MultiPolygon)
- GeoJSON Feature serialisation and deserialisation
- BatchResult feature collection with shapely bbox
"""

from __future__ import annotations

import pytest

from cap_archive.core.exceptions import PipelineError
from cap_archive.models import (
    AlertEnvelope,
    AlertFeature,
    AreaBlock,
    BatchResult,
    EntryFailure,
    InfoBlock,
)

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

SQUARE = [[77.0, 28.0], [78.0, 28.0], [78.0, 29.0], [77.0, 29.0], [77.0, 28.0]]
TRIANGLE = [[80.0, 20.0], [81.0, 20.0], [80.5, 21.0], [80.0, 20.0]]


class TestBlockProperties:
    """Each CAP block renders only its populated fields."""

    def test_alert_envelope_uses_cap_names(self) -> None:
        envelope = AlertEnvelope(identifier="A-1", sender="ndma", msg_type="Alert")
        assert envelope.to_properties() == {
            "identifier": "A-1",
            "sender": "ndma",
            "msgType": "Alert",
        }

    def test_info_block_omits_empty_fields(self) -> None:
        info = InfoBlock(event="Heavy Rain", severity="Severe")
        assert info.to_properties() == {"event": "Heavy Rain", "severity": "Severe"}

    def test_area_block_excludes_polygons(self) -> None:
        area = AreaBlock(area_desc="Delhi", ceiling="120", polygons=("1,2 3,4 5,6",))
        assert area.to_properties() == {"areaDesc": "Delhi", "ceiling": "120"}

    def test_empty_blocks_have_no_properties(self) -> None:
        assert AlertEnvelope().to_properties() == {}
        assert InfoBlock().to_properties() == {}
        assert AreaBlock().to_properties() == {}


class TestGeometryPromotion:
    """from_rings picks the geometry type from the ring count."""

    def test_no_rings_is_metadata_only(self) -> None:
        feature = AlertFeature.from_rings([], {"areaDesc": "Coast"})
        assert feature.geometry is None
        assert feature.geometry_type is None
        assert feature.rings == []
        assert feature.properties == {"areaDesc": "Coast"}

    def test_single_ring_is_polygon(self) -> None:
        feature = AlertFeature.from_rings([SQUARE], {})
        assert feature.geometry == {"type": "Polygon", "coordinates": [SQUARE]}
        assert feature.rings == [SQUARE]

    def test_several_rings_are_independent_polygons(self) -> None:
        feature = AlertFeature.from_rings([SQUARE, TRIANGLE], {})
        assert feature.geometry_type == "MultiPolygon"
        assert feature.geometry["coordinates"] == [[SQUARE], [TRIANGLE]]  # type: ignore[index]
        assert feature.rings == [SQUARE, TRIANGLE]

    def test_properties_are_copied(self) -> None:
        props = {"event": "Flood"}
        feature = AlertFeature.from_rings([SQUARE], props)
        props["event"] = "changed"
        assert feature.properties == {"event": "Flood"}

    def test_provenance_kwargs(self) -> None:
        feature = AlertFeature.from_rings(
            [SQUARE], {}, source_file="a.xml", info_index=1, area_index=2
        )
        assert feature.source_file == "a.xml"
        assert (feature.info_index, feature.area_index) == (1, 2)


class TestFeatureSerialisation:
    """GeoJSON Feature dicts."""

    def test_to_dict(self) -> None:
        feature = AlertFeature.from_rings([SQUARE], {"event": "Flood"}, source_file="a.xml")
        assert feature.to_dict() == {
            "type": "Feature",
            "geometry": {"type": "Polygon", "coordinates": [SQUARE]},
            "properties": {"event": "Flood"},
        }

    def test_metadata_only_geometry_is_null(self) -> None:
        assert AlertFeature.from_rings([], {"areaDesc": "x"}).to_dict()["geometry"] is None

    def test_from_dict(self) -> None:
        data = {
            "type": "Feature",
            "geometry": {"type": "Polygon", "coordinates": [SQUARE]},
            "properties": {"event": "Flood"},
        }
        feature = AlertFeature.from_dict(data)
        assert feature.geometry_type == "Polygon"
        assert feature.properties == {"event": "Flood"}

    def test_from_dict_missing_properties(self) -> None:
        feature = AlertFeature.from_dict({"geometry": None})
        assert feature.geometry is None
        assert feature.properties == {}

    def test_from_dict_rejects_bad_geometry(self) -> None:
        with pytest.raises(TypeError, match="geometry"):
            AlertFeature.from_dict({"geometry": "POLYGON"})

    def test_from_dict_rejects_bad_properties(self) -> None:
        with pytest.raises(TypeError, match="properties"):
            AlertFeature.from_dict({"geometry": None, "properties": ["x"]})


class TestFeatureCollection:
    """BatchResult rendering for the map layer."""

    def test_collection_bbox_spans_all_geometries(self) -> None:
        result = BatchResult(
            features=(
                AlertFeature.from_rings([SQUARE], {}),
                AlertFeature.from_rings([], {"areaDesc": "text only"}),
                AlertFeature.from_rings([TRIANGLE], {}),
            ),
            processed=2,
            total=2,
        )
        collection = result.to_feature_collection()
        assert collection["type"] == "FeatureCollection"
        assert len(collection["features"]) == 3  # type: ignore[arg-type]
        assert collection["bbox"] == [77.0, 20.0, 81.0, 29.0]

    def test_no_bbox_without_geometry(self) -> None:
        result = BatchResult(
            features=(AlertFeature.from_rings([], {"areaDesc": "x"}),),
            processed=1,
            total=1,
        )
        assert "bbox" not in result.to_feature_collection()

    def test_len_counts_features(self) -> None:
        feature = AlertFeature.from_rings([SQUARE], {})
        result = BatchResult(features=(feature,), processed=1, total=1)
        assert len(result) == 1


class TestEntryFailure:
    def test_from_error(self) -> None:
        err = PipelineError("broken", code="CAP_MALFORMED_XML")
        failure = EntryFailure.from_error("bad.xml", err)
        assert failure == EntryFailure("bad.xml", "CAP_MALFORMED_XML", "broken")
