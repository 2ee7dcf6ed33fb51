import json
from pathlib import Path

import pytest

from geofence.errors import InvalidGeometry
from geofence.models.domain import CITY, ZONE
from geofence.persistence import MemorySpatialStore
from geofence.services.authoring import CityDefaults, CitySeeder, SyncReport, ZoneAuthoring
from geofence.services.authoring.geojson_reader import (
    first_geometry,
    format_display_name,
    list_city_folders,
    zone_name_from_filename,
)
from geofence.services.geometry import to_canonical_text

from conftest import CASA_MIRADOR, NUEVO_LAREDO

DEFAULTS = CityDefaults(country="Mexico", state="Tamaulipas", timezone="America/Mexico_City")


def _square(min_lon: float, min_lat: float, size: float) -> dict:
    return {
        "type": "Polygon",
        "coordinates": [[
            [min_lon, min_lat],
            [min_lon + size, min_lat],
            [min_lon + size, min_lat + size],
            [min_lon, min_lat + size],
            [min_lon, min_lat],
        ]],
    }


def _write(path: Path, geometry: dict, properties: dict | None = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    document = {
        "type": "FeatureCollection",
        "features": [{"type": "Feature", "properties": properties or {}, "geometry": geometry}],
    }
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


@pytest.fixture
def city_store(store: MemorySpatialStore, tmp_path: Path) -> MemorySpatialStore:
    _write(tmp_path / "nuevo-laredo.geojson", NUEVO_LAREDO)
    CitySeeder(store).seed(tmp_path, DEFAULTS)
    return store


def _zone_names(store: MemorySpatialStore) -> list[str]:
    city = store.get_region_by_name(CITY, "Nuevo Laredo")
    return [zone.name for zone in store.list_regions(ZONE, city.id)]


def test_display_and_zone_names():
    assert format_display_name("nuevo-laredo") == "Nuevo Laredo"
    assert format_display_name("reynosa") == "Reynosa"
    assert zone_name_from_filename("casa-mirador.geojson") == "casa-mirador"
    assert zone_name_from_filename(Path("/tmp/zones/centro.geojson")) == "centro"


def test_first_geometry_accepts_feature_and_bare_geometry():
    assert first_geometry({"type": "Feature", "properties": {}, "geometry": CASA_MIRADOR}) == CASA_MIRADOR
    assert first_geometry(CASA_MIRADOR) == CASA_MIRADOR
    with pytest.raises(InvalidGeometry, match="No features found"):
        first_geometry({"type": "FeatureCollection", "features": []})


def test_list_city_folders_requires_root(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        list_city_folders(tmp_path / "missing")


def test_seed_cities_creates_and_updates(store: MemorySpatialStore, tmp_path: Path):
    _write(tmp_path / "nuevo-laredo.geojson", NUEVO_LAREDO, {"state": "Tamps."})

    first = CitySeeder(store).seed(tmp_path, DEFAULTS)
    second = CitySeeder(store).seed(tmp_path, DEFAULTS)

    city = store.get_region_by_name(CITY, "Nuevo Laredo")
    assert (first.added, first.updated) == (1, 0)
    assert (second.added, second.updated) == (0, 1)
    assert city.boundary.startswith("MULTIPOLYGON(((")
    assert city.state == "Tamps."
    assert city.country == "Mexico"
    assert city.timezone == "America/Mexico_City"
    assert city.center == pytest.approx((-99.5, 27.45))


def test_city_without_file_is_deactivated_not_deleted(city_store: MemorySpatialStore, tmp_path: Path):
    (tmp_path / "nuevo-laredo.geojson").unlink()

    report = CitySeeder(city_store).seed(tmp_path, DEFAULTS)

    city = city_store.get_region_by_name(CITY, "Nuevo Laredo")
    assert report.removed == 1
    assert city is not None
    assert city.is_active is False

    _write(tmp_path / "nuevo-laredo.geojson", NUEVO_LAREDO)
    CitySeeder(city_store).seed(tmp_path, DEFAULTS)
    assert city_store.get_region_by_name(CITY, "Nuevo Laredo").is_active is True


def test_zone_sync_adds_updates_and_removes(city_store: MemorySpatialStore, tmp_path: Path):
    zones_root = tmp_path / "zones"
    folder = zones_root / "nuevo-laredo"
    _write(folder / "old-zone.geojson", _square(-99.58, 27.36, 0.02))
    _write(folder / "updated-zone.geojson", _square(-99.50, 27.40, 0.02))

    initial = ZoneAuthoring(city_store).sync_all(zones_root)
    assert initial.added == 2
    assert _zone_names(city_store) == ["old-zone", "updated-zone"]

    (folder / "old-zone.geojson").unlink()
    _write(folder / "new-zone.geojson", _square(-99.45, 27.50, 0.02))
    _write(folder / "updated-zone.geojson", _square(-99.50, 27.40, 0.03))

    report = ZoneAuthoring(city_store).sync_all(zones_root)

    assert (report.added, report.updated, report.removed, report.skipped) == (1, 1, 1, 0)
    assert _zone_names(city_store) == ["new-zone", "updated-zone"]
    city = city_store.get_region_by_name(CITY, "Nuevo Laredo")
    updated = city_store.get_region_by_name(ZONE, "updated-zone", city.id)
    assert updated.boundary == to_canonical_text(_square(-99.50, 27.40, 0.03))


def test_open_ring_in_file_is_stored_closed(city_store: MemorySpatialStore, tmp_path: Path):
    folder = tmp_path / "zones" / "nuevo-laredo"
    open_ring = {"type": "Polygon", "coordinates": [[[-99.5, 27.4], [-99.4, 27.4], [-99.4, 27.5]]]}
    _write(folder / "triangle.geojson", open_ring)

    ZoneAuthoring(city_store).sync_city(folder)

    city = city_store.get_region_by_name(CITY, "Nuevo Laredo")
    zone = city_store.get_region_by_name(ZONE, "triangle", city.id)
    assert zone.boundary == "POLYGON((-99.5 27.4, -99.4 27.4, -99.4 27.5, -99.5 27.4))"


def test_bad_files_are_skipped(city_store: MemorySpatialStore, tmp_path: Path):
    folder = tmp_path / "zones" / "nuevo-laredo"
    _write(folder / "good.geojson", CASA_MIRADOR)
    _write(folder / "point.geojson", {"type": "Point", "coordinates": [-99.5, 27.45]})
    (folder / "broken.geojson").write_text("{not json", encoding="utf-8")

    report = ZoneAuthoring(city_store).sync_city(folder)

    assert report.added == 1
    assert report.skipped == 2
    assert _zone_names(city_store) == ["good"]


MALFORMED_FILES = {
    "latin-1": "Colonia Año Nuevo".encode("latin-1"),
    "ring-not-a-list": json.dumps({"type": "Polygon", "coordinates": [5]}).encode(),
    "pair-not-numeric": json.dumps({"type": "Polygon", "coordinates": [[["a", 1], [2, 2], [3, 1]]]}).encode(),
    "feature-not-an-object": json.dumps({"type": "FeatureCollection", "features": [1]}).encode(),
    "features-not-a-list": json.dumps({"type": "FeatureCollection", "features": {"a": 1}}).encode(),
    "geometry-not-an-object": json.dumps({"type": "Feature", "properties": {}, "geometry": [1, 2]}).encode(),
    "document-not-an-object": b"[1, 2, 3]",
}


@pytest.mark.parametrize("content", list(MALFORMED_FILES.values()), ids=list(MALFORMED_FILES))
def test_malformed_zone_file_does_not_abort_sync(city_store: MemorySpatialStore, tmp_path: Path, content: bytes):
    folder = tmp_path / "zones" / "nuevo-laredo"
    _write(folder / "good.geojson", CASA_MIRADOR)
    (folder / "malformed.geojson").write_bytes(content)

    report = ZoneAuthoring(city_store).sync_city(folder)

    assert report.skipped == 1
    assert report.added == 1
    assert _zone_names(city_store) == ["good"]


@pytest.mark.parametrize("content", list(MALFORMED_FILES.values()), ids=list(MALFORMED_FILES))
def test_malformed_city_file_does_not_abort_seed(store: MemorySpatialStore, tmp_path: Path, content: bytes):
    _write(tmp_path / "nuevo-laredo.geojson", NUEVO_LAREDO)
    (tmp_path / "reynosa.geojson").write_bytes(content)

    report = CitySeeder(store).seed(tmp_path, DEFAULTS)

    assert report.skipped == 1
    assert report.added == 1
    assert [city.name for city in store.list_regions(CITY)] == ["Nuevo Laredo"]


def test_unknown_city_folder_is_reported(city_store: MemorySpatialStore, tmp_path: Path):
    zones_root = tmp_path / "zones"
    _write(zones_root / "ghost-town" / "centro.geojson", CASA_MIRADOR)
    _write(zones_root / "nuevo-laredo" / "casa-mirador.geojson", CASA_MIRADOR)

    report = ZoneAuthoring(city_store).sync_all(zones_root)

    assert report.missing_cities == ["Ghost Town"]
    assert report.added == 1
    assert "Cities not found: Ghost Town" in report.summary()


def test_summary_text():
    report = SyncReport(added=2, updated=1, removed=3)

    summary = report.summary("Cities")

    assert "Cities added: 2" in summary
    assert "Cities updated: 1" in summary
    assert "Cities removed: 3" in summary
