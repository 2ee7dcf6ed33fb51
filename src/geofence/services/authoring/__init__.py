"""Offline ingestion of city and zone boundary files."""

from .cities import CityDefaults, CitySeeder
from .zones import SyncReport, ZoneAuthoring

__all__ = ["CityDefaults", "CitySeeder", "SyncReport", "ZoneAuthoring"]
