"""Conversion between GeoJSON-style rings and canonical WKT text.

Rings are sequences of ``[lon, lat]`` pairs. A Polygon is a list of rings
(outer boundary first, holes after) and a MultiPolygon is a list of Polygons.
"""

from __future__ import annotations

import math
from typing import Any, Mapping, Sequence

from shapely import wkt as shapely_wkt
from shapely.geometry.base import BaseGeometry

from ..errors import EmptyRing, InvalidGeometry, UnsupportedGeometry

Ring = Sequence[Sequence[float]]
PolygonRings = Sequence[Ring]

POLYGON = "Polygon"
MULTIPOLYGON = "MultiPolygon"


def _format_number(value: Any) -> str:
    number = float(value)
    if not math.isfinite(number):
        raise InvalidGeometry(f"Coordinate value {value!r} is not a finite number.")
    if number.is_integer() and abs(number) < 1e15:
        return str(int(number))
    return repr(number)


def _coerce_pair(coord: Sequence[float]) -> tuple[float, float]:
    if not isinstance(coord, (list, tuple)) or len(coord) < 2:
        raise InvalidGeometry(f"Coordinate {coord!r} is not a [lon, lat] pair.")
    try:
        return (float(coord[0]), float(coord[1]))
    except (TypeError, ValueError) as exc:
        raise InvalidGeometry(f"Coordinate {coord!r} is not numeric.") from exc


def close_ring(ring: Ring) -> list[tuple[float, float]]:
    """Return the ring as (lon, lat) tuples with the first vertex repeated at the end."""

    if not isinstance(ring, (list, tuple)):
        raise InvalidGeometry(f"Ring {ring!r} is not a list of [lon, lat] pairs.")
    pairs = [_coerce_pair(coord) for coord in ring]
    if pairs and pairs[0] != pairs[-1]:
        pairs.append(pairs[0])
    distinct = set(pairs)
    if len(distinct) < 3:
        raise InvalidGeometry(f"A ring needs at least 3 distinct vertices, got {len(distinct)}.")
    return pairs


def _normalize_polygon(rings: PolygonRings) -> list[list[tuple[float, float]]]:
    if not isinstance(rings, (list, tuple)) or not rings:
        raise InvalidGeometry("Polygon must contain at least one ring.")
    return [close_ring(ring) for ring in rings]


def normalize_geometry(geometry: Mapping[str, Any]) -> dict[str, Any]:
    """Validate a Polygon/MultiPolygon mapping and close every ring."""

    if not isinstance(geometry, Mapping):
        raise UnsupportedGeometry(f"Expected a geometry mapping, got {type(geometry).__name__}.")
    kind = geometry.get("type")
    coordinates = geometry.get("coordinates")
    if kind == POLYGON:
        return {"type": POLYGON, "coordinates": _normalize_polygon(coordinates)}
    if kind == MULTIPOLYGON:
        if not isinstance(coordinates, (list, tuple)) or not coordinates:
            raise InvalidGeometry("MultiPolygon must contain at least one polygon.")
        return {
            "type": MULTIPOLYGON,
            "coordinates": [_normalize_polygon(polygon) for polygon in coordinates],
        }
    raise UnsupportedGeometry(f"Unsupported geometry type: {kind}")


def _rings_text(rings: Sequence[Sequence[tuple[float, float]]]) -> str:
    return ", ".join(
        "(" + ", ".join(f"{_format_number(lon)} {_format_number(lat)}" for lon, lat in ring) + ")"
        for ring in rings
    )


def to_canonical_text(geometry: Mapping[str, Any]) -> str:
    """Render a Polygon or MultiPolygon as WKT in lon/lat order.

    Rings are closed before rendering, so an open ring produces the same
    text as the explicitly closed one.
    """

    normalized = normalize_geometry(geometry)
    if normalized["type"] == POLYGON:
        return f"POLYGON({_rings_text(normalized['coordinates'])})"
    polygons = ", ".join(f"({_rings_text(polygon)})" for polygon in normalized["coordinates"])
    return f"MULTIPOLYGON({polygons})"


def wrap_as_multipolygon(geometry: Mapping[str, Any]) -> dict[str, Any]:
    """Lift a Polygon to a single-member MultiPolygon; MultiPolygons pass through."""

    kind = geometry.get("type") if isinstance(geometry, Mapping) else None
    if kind == POLYGON:
        return {"type": MULTIPOLYGON, "coordinates": [geometry["coordinates"]]}
    if kind == MULTIPOLYGON:
        return {"type": MULTIPOLYGON, "coordinates": geometry["coordinates"]}
    raise UnsupportedGeometry(f"Unsupported geometry type: {kind}")


def outer_ring(geometry: Mapping[str, Any]) -> Ring:
    """Outer ring of a Polygon, or of the first member of a MultiPolygon."""

    kind = geometry.get("type")
    coordinates = geometry.get("coordinates") or []
    if kind == POLYGON:
        return coordinates[0] if coordinates else []
    if kind == MULTIPOLYGON:
        return coordinates[0][0] if coordinates and coordinates[0] else []
    raise UnsupportedGeometry(f"Unsupported geometry type: {kind}")


def centroid(ring: Ring) -> tuple[float, float]:
    """Unweighted mean (lon, lat) of the ring's vertices.

    The closing vertex of a closed ring is counted once. This is a marker
    position, not an area-weighted centroid.
    """

    pairs = [_coerce_pair(coord) for coord in ring]
    if not pairs:
        raise EmptyRing("Cannot compute the centroid of an empty ring.")
    if len(pairs) > 1 and pairs[0] == pairs[-1]:
        pairs = pairs[:-1]
    total_lon = sum(lon for lon, _ in pairs)
    total_lat = sum(lat for _, lat in pairs)
    return (total_lon / len(pairs), total_lat / len(pairs))


def polygon_from_pairs(pairs: Sequence[Sequence[float]]) -> dict[str, Any]:
    """Build a single-ring Polygon from ``[lng, lat]`` pairs."""

    if not pairs or len(pairs) < 3:
        raise InvalidGeometry("A polygon must have at least 3 coordinates")
    return {"type": POLYGON, "coordinates": [[list(pair) for pair in pairs]]}


def from_canonical_text(text: str) -> BaseGeometry:
    """Parse canonical text into a shapely geometry."""

    try:
        geometry = shapely_wkt.loads(text)
    except Exception as exc:  # shapely raises GEOSException/WKTReadingError depending on version
        raise InvalidGeometry(f"Unable to parse boundary text: {exc}") from exc
    if geometry.geom_type not in (POLYGON, MULTIPOLYGON):
        raise UnsupportedGeometry(f"Unsupported geometry type: {geometry.geom_type}")
    return geometry
