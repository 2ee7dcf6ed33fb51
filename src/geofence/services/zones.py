"""Administrative management of delivery zones and the region query surface."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..errors import NotFound
from ..models.domain import CITY, ZONE, Region
from ..persistence.store import SpatialStore
from .geometry import polygon_from_pairs, to_canonical_text

logger = logging.getLogger(__name__)


class ZoneManager:
    def __init__(self, store: SpatialStore) -> None:
        self.store = store

    def _zone(self, zone_id: str) -> Region:
        zone = self.store.get_region(zone_id)
        if zone is None or zone.kind != ZONE:
            raise NotFound("Delivery zone not found")
        return zone

    def list_active_cities(self) -> list[Region]:
        return self.store.list_regions(CITY, active_only=True)

    def list_cities(self) -> list[Region]:
        return self.store.list_regions(CITY)

    def list_active_zones(self, city_id: Optional[str] = None) -> list[Region]:
        return self.store.list_regions(ZONE, city_id, active_only=True)

    def list_zones(self, city_id: Optional[str] = None) -> list[Region]:
        return self.store.list_regions(ZONE, city_id)

    def create_zone(
        self,
        city_id: str,
        name: str,
        coordinates: Sequence[Sequence[float]],
        description: Optional[str] = None,
    ) -> Region:
        """Create a zone from ``[lng, lat]`` pairs; an open ring is closed."""

        city = self.store.get_region(city_id)
        if city is None or city.kind != CITY:
            raise NotFound(f"City '{city_id}' not found")
        boundary = to_canonical_text(polygon_from_pairs(coordinates))
        metadata = {"description": description} if description else {}
        zone = self.store.insert_region(ZONE, city_id, name, boundary, metadata)
        logger.info(f"Created delivery zone {zone.name} ({zone.id}) in {city.name}")
        return zone

    def update_zone(
        self,
        zone_id: str,
        *,
        name: Optional[str] = None,
        description: Optional[str] = None,
        coordinates: Optional[Sequence[Sequence[float]]] = None,
    ) -> Region:
        zone = self._zone(zone_id)
        if name is None and description is None and coordinates is None:
            raise ValueError("No fields to update")
        boundary = to_canonical_text(polygon_from_pairs(coordinates)) if coordinates is not None else None
        metadata = None
        if description is not None:
            metadata = {**zone.metadata, "description": description}
        return self.store.update_region(zone_id, name=name, boundary_text=boundary, metadata=metadata)

    def toggle_zone(self, zone_id: str) -> Region:
        zone = self._zone(zone_id)
        return self.store.set_region_active(zone_id, not zone.is_active)

    def delete_zone(self, zone_id: str) -> None:
        self._zone(zone_id)
        self.store.delete_region(zone_id)
