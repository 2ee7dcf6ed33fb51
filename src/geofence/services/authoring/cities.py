"""Seed city boundaries from ``<city-slug>.geojson`` files."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from ...errors import GeofenceError
from ...models.domain import CITY
from ...persistence.store import SpatialStore
from ..geometry import centroid, outer_ring, to_canonical_text, wrap_as_multipolygon
from .geojson_reader import first_feature, first_geometry, format_display_name, list_geojson_files, read_geojson
from .zones import SyncReport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CityDefaults:
    country: str
    state: Optional[str] = None
    timezone: Optional[str] = None


class CitySeeder:
    """Upsert one city per file and deactivate cities whose file disappeared."""

    def __init__(self, store: SpatialStore) -> None:
        self.store = store

    def _metadata(self, properties: dict[str, Any], geometry: dict[str, Any], defaults: CityDefaults) -> dict[str, Any]:
        lon, lat = centroid(outer_ring(geometry))
        return {
            "country": properties.get("country") or defaults.country,
            "state": properties.get("state") or defaults.state,
            "timezone": properties.get("timezone") or defaults.timezone,
            "center": [lon, lat],
        }

    def seed(self, root: Path, defaults: CityDefaults) -> SyncReport:
        report = SyncReport()
        seen: set[str] = set()

        for path in list_geojson_files(root):
            city_name = format_display_name(path.stem)
            try:
                document = read_geojson(path)
                properties = first_feature(document).get("properties")
                if not isinstance(properties, dict):
                    properties = {}
                geometry = first_geometry(document)
                boundary = to_canonical_text(wrap_as_multipolygon(geometry))
                metadata = self._metadata(properties, geometry, defaults)
            except (OSError, ValueError, GeofenceError) as exc:
                logger.error(f"{path.name}: {exc}")
                report.skipped += 1
                continue

            seen.add(city_name)
            region, created = self.store.upsert_region(CITY, None, city_name, boundary, metadata)
            if not region.is_active:
                self.store.set_region_active(region.id, True)
            center = metadata["center"]
            logger.info(f"{city_name} ({'added' if created else 'updated'}), centroid {center[1]}, {center[0]}")
            if created:
                report.added += 1
            else:
                report.updated += 1

        for city in self.store.list_regions(CITY, active_only=True):
            if city.name not in seen:
                self.store.set_region_active(city.id, False)
                logger.info(f"{city.name} (deactivated - not in files)")
                report.removed += 1

        return report
