"""Reconcile per-city zone GeoJSON files into the spatial store.

Each city folder under the zones root mirrors the store: one file per zone,
named after the zone. Files are added or updated, and zones without a file
are deleted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from ...errors import GeofenceError
from ...models.domain import CITY, ZONE
from ...persistence.store import SpatialStore
from ..geometry import to_canonical_text
from .geojson_reader import (
    first_geometry,
    format_display_name,
    list_city_folders,
    list_geojson_files,
    read_geojson,
    zone_name_from_filename,
)

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    """Counts accumulated over one authoring run."""

    added: int = 0
    updated: int = 0
    removed: int = 0
    skipped: int = 0
    missing_cities: list[str] = field(default_factory=list)

    def merge(self, other: "SyncReport") -> None:
        self.added += other.added
        self.updated += other.updated
        self.removed += other.removed
        self.skipped += other.skipped
        self.missing_cities.extend(other.missing_cities)

    def summary(self, noun: str = "Zones") -> str:
        lines = [
            "Summary:",
            f"   {noun} added: {self.added}",
            f"   {noun} updated: {self.updated}",
            f"   {noun} removed: {self.removed}",
            f"   {noun} skipped: {self.skipped}",
        ]
        if self.missing_cities:
            lines.append(f"   Cities not found: {', '.join(self.missing_cities)}")
        return "\n".join(lines)


class ZoneAuthoring:
    """Batch job; not safe to run concurrently with itself."""

    def __init__(self, store: SpatialStore) -> None:
        self.store = store

    def sync_all(self, root: Path) -> SyncReport:
        report = SyncReport()
        for folder in list_city_folders(root):
            report.merge(self.sync_city(folder))
        return report

    def sync_city(self, folder: Path) -> SyncReport:
        report = SyncReport()
        city_name = format_display_name(folder.name)
        logger.info(f"Processing zones for: {folder.name}")

        city = self.store.get_region_by_name(CITY, city_name)
        if city is None:
            logger.warning(f"City not found in store: {city_name}; seed cities before zones")
            report.missing_cities.append(city_name)
            return report

        zone_files = list_geojson_files(folder)
        if not zone_files:
            logger.warning(f"No zone files found for {city_name}")

        existing = {zone.name: zone for zone in self.store.list_regions(ZONE, city.id)}
        file_zone_names = {zone_name_from_filename(path) for path in zone_files}

        for path in zone_files:
            zone_name = zone_name_from_filename(path)
            try:
                boundary = to_canonical_text(first_geometry(read_geojson(path)))
            except (OSError, ValueError, GeofenceError) as exc:
                logger.error(f"{zone_name}: {exc}")
                report.skipped += 1
                continue

            current = existing.get(zone_name)
            if current is not None:
                self.store.update_region(current.id, boundary_text=boundary)
                logger.info(f"{zone_name} (updated)")
                report.updated += 1
            else:
                self.store.insert_region(ZONE, city.id, zone_name, boundary)
                logger.info(f"{zone_name} (added)")
                report.added += 1

        for zone_name, zone in existing.items():
            if zone_name in file_zone_names:
                continue
            self.store.delete_region(zone.id)
            logger.info(f"{zone_name} (removed - not in files)")
            report.removed += 1

        return report
