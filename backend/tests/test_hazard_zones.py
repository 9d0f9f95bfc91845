from __future__ import annotations

import json
from pathlib import Path

import pytest
from shapely.errors import GEOSException

import evacroute.geojson_loader as geojson_loader
from evacroute.hazard_geometry import create_polygon
from evacroute.hazard_zones import GeoJsonHazardZoneProvider, HazardZoneProvider, StaticHazardZoneProvider
from evacroute.routing_errors import DataLoadError


def _polygon_payload(lon: float) -> dict[str, object]:
    ring = [[lon, 52.0], [lon + 0.01, 52.0], [lon + 0.01, 52.01], [lon, 52.01], [lon, 52.0]]
    return {
        "type": "FeatureCollection",
        "features": [{"type": "Feature", "geometry": {"type": "Polygon", "coordinates": [ring]}}],
    }


def test_geojson_provider_loads_lazily_and_refreshes(tmp_path: Path) -> None:
    path = tmp_path / "floods.geojson"
    path.write_text(json.dumps(_polygon_payload(21.0)), encoding="utf-8")
    provider = GeoJsonHazardZoneProvider(path)

    assert provider.last_update_time == -1
    zones = provider.get_hazard_zones()
    assert len(zones) == 1
    first_load = provider.last_update_time
    assert first_load > 0

    payload = _polygon_payload(22.0)
    payload["features"] = payload["features"] * 2  # type: ignore[operator]
    path.write_text(json.dumps(payload), encoding="utf-8")
    assert len(provider.get_hazard_zones()) == 1

    provider.refresh()
    assert len(provider.get_hazard_zones()) == 2
    assert provider.last_update_time >= first_load


def test_geojson_provider_degrades_to_empty_on_missing_file(tmp_path: Path) -> None:
    provider = GeoJsonHazardZoneProvider(tmp_path / "missing.geojson")

    assert provider.get_hazard_zones() == []
    assert provider.last_update_time == -1


def test_geojson_provider_degrades_on_bad_geometry(tmp_path: Path) -> None:
    path = tmp_path / "floods.geojson"
    path.write_text(
        json.dumps({"type": "Polygon", "coordinates": [[[0, 0], [1, 1]]]}),
        encoding="utf-8",
    )
    assert GeoJsonHazardZoneProvider(path).get_hazard_zones() == []


def test_static_provider_returns_copies() -> None:
    zone = create_polygon([[0, 0], [1, 0], [1, 1]])
    provider: HazardZoneProvider = StaticHazardZoneProvider([zone])

    zones = provider.get_hazard_zones()
    zones.clear()
    assert provider.get_hazard_zones() == [zone]
    assert provider.last_update_time > 0


def test_geojson_provider_degrades_on_undecodable_file(tmp_path: Path) -> None:
    path = tmp_path / "floods.geojson"
    path.write_bytes(b'{"type":"FeatureCollection","features":[],"x":"\xff\xfe"}')
    provider = GeoJsonHazardZoneProvider(path)

    assert provider.get_hazard_zones() == []
    assert provider.last_update_time == -1


def test_geojson_provider_repairs_self_intersecting_multipolygon(tmp_path: Path) -> None:
    bowtie_a = [[0.0, 0.0], [2.0, 1.0], [2.0, 0.0], [0.0, 1.0], [0.0, 0.0]]
    bowtie_b = [[1.0, 0.0], [3.0, 1.0], [3.0, 0.0], [1.0, 1.0], [1.0, 0.0]]
    path = tmp_path / "floods.geojson"
    path.write_text(
        json.dumps({"type": "MultiPolygon", "coordinates": [[bowtie_a], [bowtie_b]]}),
        encoding="utf-8",
    )

    zones = GeoJsonHazardZoneProvider(path).get_hazard_zones()

    assert len(zones) == 1
    assert zones[0].is_valid
    assert zones[0].area > 0.0


def test_geojson_provider_degrades_on_geometry_engine_error(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def _explode(_polygons: object) -> None:
        raise GEOSException("TopologyException: side location conflict")

    monkeypatch.setattr(geojson_loader, "union_polygons", _explode)
    path = tmp_path / "floods.geojson"
    square = [[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0], [0.0, 0.0]]
    path.write_text(json.dumps({"type": "MultiPolygon", "coordinates": [[square]]}), encoding="utf-8")

    with pytest.raises(DataLoadError) as excinfo:
        geojson_loader.load_hazard_zones(path)
    assert excinfo.value.reason_code == "hazard_data_unavailable"
    assert GeoJsonHazardZoneProvider(path).get_hazard_zones() == []
