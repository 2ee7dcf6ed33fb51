"""Route group exports."""

from . import geofencing, health, locations, zones

__all__ = ["geofencing", "health", "locations", "zones"]
