import math

import pytest
from shapely.geometry import Point, shape

from geofence.errors import EmptyRing, InvalidCoordinates, InvalidGeometry, UnsupportedGeometry
from geofence.models.domain import GeoPoint
from geofence.services.geometry import (
    centroid,
    close_ring,
    from_canonical_text,
    outer_ring,
    polygon_from_pairs,
    to_canonical_text,
    wrap_as_multipolygon,
)
from geofence.services.geospatial import (
    destination_point,
    geodesic_distance_m,
    search_envelope,
    within_radius,
)

from conftest import SAMPLE_SHAPES, grid_points

SQUARE_OPEN = [[0, 0], [2, 0], [2, 2], [0, 2]]
SQUARE_CLOSED = SQUARE_OPEN + [[0, 0]]


def test_open_and_closed_rings_render_identically():
    open_text = to_canonical_text({"type": "Polygon", "coordinates": [SQUARE_OPEN]})
    closed_text = to_canonical_text({"type": "Polygon", "coordinates": [SQUARE_CLOSED]})

    assert open_text == closed_text == "POLYGON((0 0, 2 0, 2 2, 0 2, 0 0))"


def test_polygon_with_hole_keeps_ring_order():
    hole = [[0.5, 0.5], [1.5, 0.5], [1.5, 1.5], [0.5, 1.5]]
    text = to_canonical_text({"type": "Polygon", "coordinates": [SQUARE_OPEN, hole]})

    assert text == "POLYGON((0 0, 2 0, 2 2, 0 2, 0 0), (0.5 0.5, 1.5 0.5, 1.5 1.5, 0.5 1.5, 0.5 0.5))"


def test_multipolygon_text_lists_each_member():
    geometry = {
        "type": "MultiPolygon",
        "coordinates": [
            [[[0, 0], [1, 0], [1, 1], [0, 0]]],
            [[[5, 5], [6, 5], [6, 6]]],
        ],
    }

    assert to_canonical_text(geometry) == "MULTIPOLYGON(((0 0, 1 0, 1 1, 0 0)), ((5 5, 6 5, 6 6, 5 5)))"


def test_text_is_longitude_first():
    text = to_canonical_text(
        {"type": "Polygon", "coordinates": [[[-99.5, 27.4], [-99.4, 27.4], [-99.4, 27.5]]]}
    )

    assert text.startswith("POLYGON((-99.5 27.4, ")


def test_wrap_as_multipolygon_lifts_polygon():
    wrapped = wrap_as_multipolygon({"type": "Polygon", "coordinates": [SQUARE_OPEN]})

    assert wrapped["type"] == "MultiPolygon"
    assert to_canonical_text(wrapped) == "MULTIPOLYGON(((0 0, 2 0, 2 2, 0 2, 0 0)))"


@pytest.mark.parametrize(
    "geometry",
    [
        {"type": "Point", "coordinates": [1, 1]},
        {"type": "LineString", "coordinates": [[0, 0], [1, 1]]},
        {"coordinates": [SQUARE_OPEN]},
    ],
)
def test_non_polygonal_geometry_is_rejected(geometry):
    with pytest.raises(UnsupportedGeometry):
        to_canonical_text(geometry)


def test_degenerate_ring_is_rejected():
    with pytest.raises(InvalidGeometry):
        close_ring([[0, 0], [1, 1], [0, 0]])
    with pytest.raises(InvalidGeometry):
        to_canonical_text({"type": "Polygon", "coordinates": []})


def test_centroid_ignores_closing_vertex():
    assert centroid(SQUARE_CLOSED) == (1.0, 1.0)
    assert centroid(SQUARE_OPEN) == (1.0, 1.0)


def test_centroid_of_empty_ring_fails():
    with pytest.raises(EmptyRing):
        centroid([])


def test_outer_ring_of_multipolygon_is_first_members_boundary():
    geometry = {"type": "MultiPolygon", "coordinates": [[SQUARE_CLOSED], [[[5, 5], [6, 5], [6, 6], [5, 5]]]]}

    assert outer_ring(geometry) == SQUARE_CLOSED


def test_polygon_from_pairs_needs_three_pairs():
    with pytest.raises(InvalidGeometry):
        polygon_from_pairs([[0, 0], [1, 1]])

    assert polygon_from_pairs(SQUARE_OPEN)["coordinates"] == [SQUARE_OPEN]


def test_canonical_text_parses_back_to_shape():
    shape = from_canonical_text(to_canonical_text({"type": "Polygon", "coordinates": [SQUARE_OPEN]}))

    assert shape.geom_type == "Polygon"
    assert shape.area == pytest.approx(4.0)


def test_from_canonical_text_rejects_bad_input():
    with pytest.raises(InvalidGeometry):
        from_canonical_text("not a geometry")
    with pytest.raises(UnsupportedGeometry):
        from_canonical_text("POINT (1 1)")


@pytest.mark.parametrize(
    "lat, lon",
    [(90.5, 0), (-91, 0), (0, 180.1), (0, -181), (math.nan, 0), (0, math.inf), ("north", 0)],
)
def test_invalid_coordinates_rejected(lat, lon):
    with pytest.raises(InvalidCoordinates):
        GeoPoint.validated(lat, lon)


def test_coordinate_bounds_are_inclusive():
    point = GeoPoint.validated(90, -180)

    assert point.as_lonlat() == (-180.0, 90.0)


def test_destination_point_matches_geodesic_distance():
    lat, lon = destination_point(27.46, -99.50, 45.0, 5.0)

    assert geodesic_distance_m(27.46, -99.50, lat, lon) == pytest.approx(5.0, abs=1e-6)
    assert within_radius(geodesic_distance_m(27.46, -99.50, lat, lon), 5.0)


def test_search_envelope_covers_radius():
    min_lon, min_lat, max_lon, max_lat = search_envelope(27.46, -99.50, 100.0)
    north_lat, _ = destination_point(27.46, -99.50, 0.0, 100.0)
    _, east_lon = destination_point(27.46, -99.50, 90.0, 100.0)

    assert min_lat < 27.46 < north_lat < max_lat
    assert min_lon < -99.50 < east_lon < max_lon


@pytest.mark.parametrize("geometry", list(SAMPLE_SHAPES.values()), ids=list(SAMPLE_SHAPES))
def test_canonical_text_preserves_membership(geometry):
    expected = shape(geometry)
    parsed = from_canonical_text(to_canonical_text(geometry))
    points = [Point(lon, lat) for lon, lat in grid_points()]

    inside = [point for point in points if expected.contains(point)]
    assert 0 < len(inside) < len(points)
    assert [parsed.contains(point) for point in points] == [expected.contains(point) for point in points]
