from datetime import datetime, timedelta, timezone

import pytest

from geofence.models.domain import CITY, ZONE
from geofence.persistence import MemorySpatialStore
from geofence.services.geometry import to_canonical_text, wrap_as_multipolygon

NUEVO_LAREDO = {
    "type": "Polygon",
    "coordinates": [[[-99.60, 27.35], [-99.40, 27.35], [-99.40, 27.55], [-99.60, 27.55], [-99.60, 27.35]]],
}
CASA_MIRADOR = {
    "type": "Polygon",
    "coordinates": [[[-99.52, 27.44], [-99.48, 27.44], [-99.48, 27.48], [-99.52, 27.48], [-99.52, 27.44]]],
}

INSIDE_ZONE = (27.46, -99.50)
CITY_ONLY = (27.50, -99.45)
MEXICO_CITY = (19.43, -99.13)


class TickingClock:
    """Returns a strictly increasing time on every call."""

    def __init__(self) -> None:
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def store(clock: TickingClock) -> MemorySpatialStore:
    return MemorySpatialStore(clock=clock)


@pytest.fixture
def seeded_store(store: MemorySpatialStore) -> MemorySpatialStore:
    city = store.insert_region(
        CITY,
        None,
        "Nuevo Laredo",
        to_canonical_text(wrap_as_multipolygon(NUEVO_LAREDO)),
        {"country": "Mexico", "state": "Tamaulipas", "center": [-99.5, 27.45]},
    )
    store.insert_region(ZONE, city.id, "casa-mirador", to_canonical_text(CASA_MIRADOR))
    store.add_customer("cust-1", name="Ana")
    store.add_customer("cust-2", name="Luis")
    return store


HEXAGON = {
    "type": "Polygon",
    "coordinates": [[[1, 0], [3, 0], [4, 2], [3, 4], [1, 4], [0, 2]]],
}
SQUARE_WITH_HOLE = {
    "type": "Polygon",
    "coordinates": [
        [[0, 0], [4, 0], [4, 4], [0, 4], [0, 0]],
        [[1, 1], [3, 1], [3, 3], [1, 3], [1, 1]],
    ],
}
TWO_ISLANDS = {
    "type": "MultiPolygon",
    "coordinates": [
        [[[0, 0], [1.5, 0], [1.5, 1.5], [0, 1.5]]],
        [[[2.5, 2.5], [4, 2.5], [4, 4], [2.5, 4], [2.5, 2.5]]],
    ],
}
SAMPLE_SHAPES = {"hexagon": HEXAGON, "square-with-hole": SQUARE_WITH_HOLE, "two-islands": TWO_ISLANDS}


def grid_points(step: float = 0.1, low: float = -0.95, high: float = 4.95) -> list[tuple[float, float]]:
    """(lon, lat) sample points offset from every vertex and edge of the sample shapes."""

    count = int(round((high - low) / step)) + 1
    values = [round(low + index * step, 6) for index in range(count)]
    return [(lon + 0.0123, lat + 0.0071) for lon in values for lat in values]
