from types import SimpleNamespace

import pytest

from geofence.errors import DuplicateName, NotFound, ResolutionFailed, StoreUnavailable
from geofence.models.domain import CITY, ZONE, GeoPoint
from geofence.persistence import SupabaseSpatialStore
from geofence.services.resolver import ZoneResolver


class FakeAPIError(Exception):
    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class FakeBuilder:
    """Records chained query-builder calls and replays a canned response."""

    def __init__(self, name, data=None, error=None, count=None) -> None:
        self.name = name
        self.data = data
        self.error = error
        self.count = count
        self.params = None
        self.calls = []

    def __getattr__(self, method):
        def record(*args, **kwargs):
            self.calls.append((method, args, kwargs))
            return self

        return record

    def execute(self):
        if self.error is not None:
            raise self.error
        return SimpleNamespace(data=self.data, count=self.count)


class FakeClient:
    def __init__(self, responses: dict | None = None) -> None:
        self.responses = responses or {}
        self.builders: list[FakeBuilder] = []

    def _builder(self, name: str) -> FakeBuilder:
        builder = FakeBuilder(name, **self.responses.get(name, {}))
        self.builders.append(builder)
        return builder

    def rpc(self, function: str, params: dict) -> FakeBuilder:
        builder = self._builder(function)
        builder.params = params
        return builder

    def table(self, name: str) -> FakeBuilder:
        return self._builder(name)


REGION_ROW = {
    "id": "zone-1",
    "kind": "zone",
    "name": "casa-mirador",
    "boundary": "POLYGON((-99.52 27.44, -99.48 27.44, -99.48 27.48, -99.52 27.48, -99.52 27.44))",
    "parent_id": "city-1",
    "is_active": True,
    "metadata": {"description": "Fraccionamiento"},
    "created_at": "2024-05-01T10:00:00Z",
}

LOCATION_ROW = {
    "id": "loc-1",
    "customer_id": "cust-1",
    "latitude": 27.46,
    "longitude": -99.5,
    "address": "Calle Hidalgo 12",
    "label": None,
    "is_primary": True,
    "last_used_at": "2024-05-01T10:00:00+00:00",
}


def test_client_is_required():
    with pytest.raises(StoreUnavailable):
        SupabaseSpatialStore(None)


def test_find_containing_passes_coordinates_as_parameters():
    client = FakeClient({"geofence_find_containing": {"data": [REGION_ROW]}})
    store = SupabaseSpatialStore(client)

    zone = store.find_containing(ZONE, GeoPoint.validated(27.46, -99.5), "city-1")

    params = client.builders[0].params
    assert params == {
        "p_kind": "zone",
        "p_lon": -99.5,
        "p_lat": 27.46,
        "p_parent_id": "city-1",
        "p_active_only": True,
    }
    assert zone.name == "casa-mirador"
    assert zone.parent_id == "city-1"
    assert zone.description == "Fraccionamiento"
    assert zone.created_at.year == 2024


def test_find_containing_without_match():
    store = SupabaseSpatialStore(FakeClient({"geofence_find_containing": {"data": []}}))

    assert store.find_containing(CITY, GeoPoint.validated(19.43, -99.13)) is None


def test_unique_violation_maps_to_duplicate_name():
    error = FakeAPIError("23505", "duplicate key value violates unique constraint")
    store = SupabaseSpatialStore(FakeClient({"geofence_insert_region": {"error": error}}))

    with pytest.raises(DuplicateName):
        store.insert_region(ZONE, "city-1", "casa-mirador", REGION_ROW["boundary"])


def test_missing_row_maps_to_not_found():
    error = FakeAPIError("P0002", "region not found")
    store = SupabaseSpatialStore(FakeClient({"geofence_delete_region": {"error": error}}))

    with pytest.raises(NotFound):
        store.delete_region("zone-404")


def test_connection_failure_surfaces_as_resolution_failure():
    store = SupabaseSpatialStore(FakeClient({"geofence_find_containing": {"error": OSError("timed out")}}))

    with pytest.raises(StoreUnavailable):
        store.find_containing(CITY, GeoPoint.validated(27.46, -99.5))
    with pytest.raises(ResolutionFailed):
        ZoneResolver(store).resolve(27.46, -99.5)


def test_find_near_maps_distance():
    row = {**LOCATION_ROW, "distance": 3.2}
    client = FakeClient({"geofence_find_near": {"data": [row]}})
    store = SupabaseSpatialStore(client)

    nearby = store.find_near("cust-1", GeoPoint.validated(27.46, -99.5), 5.0)

    assert client.builders[0].params["p_radius_m"] == 5.0
    assert nearby[0].distance_meters == 3.2
    assert nearby[0].location.address == "Calle Hidalgo 12"
    assert nearby[0].location.is_primary is True


def test_region_by_name_without_parent_filters_null_parent():
    client = FakeClient({"geofence_regions": {"data": []}})
    store = SupabaseSpatialStore(client)

    assert store.get_region_by_name(CITY, "Nuevo Laredo") is None
    calls = [call[0] for call in client.builders[0].calls]
    assert "is_" in calls
    assert ("eq", ("name", "Nuevo Laredo"), {}) in client.builders[0].calls


def test_count_location_orders_uses_exact_count():
    client = FakeClient({"orders": {"data": [], "count": 2}})
    store = SupabaseSpatialStore(client)

    assert store.count_location_orders("loc-1") == 2
    assert ("eq", ("customer_location_id", "loc-1"), {}) in client.builders[0].calls


def test_ping_reports_failure():
    healthy = SupabaseSpatialStore(FakeClient({"geofence_regions": {"data": []}}))
    broken = SupabaseSpatialStore(FakeClient({"geofence_regions": {"error": OSError("refused")}}))

    assert healthy.ping() is True
    assert broken.ping() is False
