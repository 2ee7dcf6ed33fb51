"""City and delivery-zone resolution for a single point."""

from __future__ import annotations

import logging
from typing import Optional

from ..errors import InvalidCoordinates, NotFound, ResolutionFailed
from ..models.domain import CITY, ZONE, GeoPoint, Region, ResolutionOutcome, ZoneResolution
from ..persistence.store import SpatialStore

logger = logging.getLogger(__name__)

OUTSIDE_CITY_MESSAGE = "Location is outside any active city boundary"
OUTSIDE_ZONE_MESSAGE = "Location is within city but outside any delivery zone"
WITHIN_ZONE_MESSAGE = "Location is within an active delivery zone"

SERVICE_AREA_MESSAGE = "Great! We deliver to {city}."
NOT_SERVED_MESSAGE = "Sorry, we don't deliver to your area yet. We're working on expanding our service!"


class ZoneResolver:
    """Classify points as outside any city, inside a city only, or inside a zone.

    Zones are only ever searched within the city that already contains the
    point, so a zone belonging to another city cannot match.
    """

    def __init__(self, store: SpatialStore) -> None:
        self.store = store

    def _find(self, what: str, kind, point: GeoPoint, parent_id: Optional[str] = None) -> Optional[Region]:
        try:
            return self.store.find_containing(kind, point, parent_id, active_only=True)
        except (InvalidCoordinates, ResolutionFailed):
            raise
        except Exception as exc:
            logger.error(f"{what} lookup failed for ({point.latitude}, {point.longitude}): {exc}")
            raise ResolutionFailed(f"Failed to validate location: {exc}") from exc

    def find_city(self, latitude: float, longitude: float) -> Optional[Region]:
        point = GeoPoint.validated(latitude, longitude)
        return self._find("City", CITY, point)

    def resolve(self, latitude: float, longitude: float) -> ZoneResolution:
        point = GeoPoint.validated(latitude, longitude)

        city = self._find("City", CITY, point)
        if city is None:
            return ZoneResolution(outcome=ResolutionOutcome.OUTSIDE_CITY, message=OUTSIDE_CITY_MESSAGE)

        zone = self._find("Zone", ZONE, point, parent_id=city.id)
        if zone is None:
            return ZoneResolution(
                outcome=ResolutionOutcome.OUTSIDE_DELIVERY_ZONE,
                message=OUTSIDE_ZONE_MESSAGE,
                city=city,
            )

        return ZoneResolution(
            outcome=ResolutionOutcome.WITHIN_DELIVERY_ZONE,
            message=WITHIN_ZONE_MESSAGE,
            city=city,
            zone=zone,
        )

    def validate_city(self, latitude: float, longitude: float) -> tuple[Optional[Region], str]:
        """Service-area check only: the containing active city and a customer-facing message."""

        city = self.find_city(latitude, longitude)
        if city is None:
            return None, NOT_SERVED_MESSAGE
        return city, SERVICE_AREA_MESSAGE.format(city=city.name)


def point_in_zone(store: SpatialStore, zone_id: str, latitude: float, longitude: float) -> tuple[Region, bool]:
    """Administrative check whether a point lies inside one specific zone."""

    point = GeoPoint.validated(latitude, longitude)
    zone = store.get_region(zone_id)
    if zone is None or zone.kind != ZONE:
        raise NotFound(f"Delivery zone '{zone_id}' not found")
    return zone, store.region_contains(zone_id, point)
