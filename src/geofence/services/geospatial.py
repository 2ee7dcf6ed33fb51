"""Geospatial helper functions."""

from __future__ import annotations

import math

from pyproj import Geod

WGS84 = Geod(ellps="WGS84")

# Distances within this margin of a radius count as inside it.
DISTANCE_TOLERANCE_M = 1e-6

_METERS_PER_DEGREE_LAT = 110_574.0
_METERS_PER_DEGREE_LON_EQUATOR = 111_320.0


def geodesic_distance_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance in meters along the WGS84 ellipsoid."""

    _, _, distance = WGS84.inv(lon1, lat1, lon2, lat2)
    return abs(distance)


def destination_point(lat: float, lon: float, bearing_deg: float, distance_m: float) -> tuple[float, float]:
    """Return the (lat, lon) reached by travelling ``distance_m`` along ``bearing_deg``."""

    lon2, lat2, _ = WGS84.fwd(lon, lat, bearing_deg, distance_m)
    return (lat2, lon2)


def within_radius(distance_m: float, radius_m: float) -> bool:
    return distance_m <= radius_m + DISTANCE_TOLERANCE_M


def search_envelope(lat: float, lon: float, radius_m: float) -> tuple[float, float, float, float]:
    """Conservative (min_lon, min_lat, max_lon, max_lat) box around a point.

    Used as an index prefilter only; exact filtering is geodesic.
    """

    pad = 1.5
    d_lat = pad * radius_m / _METERS_PER_DEGREE_LAT
    cos_lat = max(math.cos(math.radians(lat)), 1e-6)
    d_lon = min(pad * radius_m / (_METERS_PER_DEGREE_LON_EQUATOR * cos_lat), 360.0)
    return (lon - d_lon, max(lat - d_lat, -90.0), lon + d_lon, min(lat + d_lat, 90.0))
