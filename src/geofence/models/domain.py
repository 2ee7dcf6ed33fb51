"""Domain models for regions, customer locations and resolution results."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Literal, Optional

from ..errors import InvalidCoordinates

RegionKind = Literal["city", "zone"]
CITY: RegionKind = "city"
ZONE: RegionKind = "zone"


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """A WGS84 position. Construct through :meth:`validated` at API edges."""

    latitude: float
    longitude: float

    @classmethod
    def validated(cls, latitude: float, longitude: float) -> "GeoPoint":
        try:
            lat = float(latitude)
            lon = float(longitude)
        except (TypeError, ValueError) as exc:
            raise InvalidCoordinates(f"Coordinates must be numeric: ({latitude!r}, {longitude!r})") from exc
        if not (math.isfinite(lat) and math.isfinite(lon)):
            raise InvalidCoordinates("Coordinates must be finite numbers.")
        if lat < -90 or lat > 90:
            raise InvalidCoordinates("Invalid latitude. Must be between -90 and 90.")
        if lon < -180 or lon > 180:
            raise InvalidCoordinates("Invalid longitude. Must be between -180 and 180.")
        return cls(latitude=lat, longitude=lon)

    def as_lonlat(self) -> tuple[float, float]:
        return (self.longitude, self.latitude)


@dataclass(slots=True)
class Region:
    """A named city or delivery zone with its canonical boundary text."""

    id: str
    kind: RegionKind
    name: str
    boundary: str
    parent_id: Optional[str] = None
    is_active: bool = True
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def description(self) -> Optional[str]:
        return self.metadata.get("description")

    @property
    def country(self) -> Optional[str]:
        return self.metadata.get("country")

    @property
    def state(self) -> Optional[str]:
        return self.metadata.get("state")

    @property
    def timezone(self) -> Optional[str]:
        return self.metadata.get("timezone")

    @property
    def center(self) -> Optional[tuple[float, float]]:
        """Representative (lon, lat) point stored for cities."""
        value = self.metadata.get("center")
        if not value:
            return None
        return (float(value[0]), float(value[1]))


@dataclass(slots=True)
class Customer:
    customer_id: str
    name: Optional[str] = None
    phone: Optional[str] = None


@dataclass(slots=True)
class CustomerLocation:
    """A stored delivery point belonging to one customer."""

    id: str
    customer_id: str
    latitude: float
    longitude: float
    address: str = ""
    label: Optional[str] = None
    is_primary: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_used_at: Optional[datetime] = None

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(self.latitude, self.longitude)


@dataclass(frozen=True, slots=True)
class NearbyLocation:
    location: CustomerLocation
    distance_meters: float


class ResolutionOutcome(str, Enum):
    OUTSIDE_CITY = "OUTSIDE_CITY"
    OUTSIDE_DELIVERY_ZONE = "OUTSIDE_DELIVERY_ZONE"
    WITHIN_DELIVERY_ZONE = "WITHIN_DELIVERY_ZONE"


@dataclass(frozen=True, slots=True)
class ZoneResolution:
    """Outcome of classifying a point against cities and their zones."""

    outcome: ResolutionOutcome
    message: str
    city: Optional[Region] = None
    zone: Optional[Region] = None

    @property
    def is_deliverable(self) -> bool:
        return self.outcome is ResolutionOutcome.WITHIN_DELIVERY_ZONE

    @property
    def within_city(self) -> bool:
        return self.city is not None


@dataclass(frozen=True, slots=True)
class LocationResolution:
    """Result of capturing a GPS fix for a customer."""

    location: CustomerLocation
    is_existing: bool
    message: str
    distance_meters: Optional[float] = None
