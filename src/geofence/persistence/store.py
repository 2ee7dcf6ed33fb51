"""Contract shared by the spatial store engines."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from ..models.domain import (
    CustomerLocation,
    GeoPoint,
    NearbyLocation,
    Region,
    RegionKind,
)


class SpatialStore(ABC):
    """Durable storage of regions and customer locations with spatial queries.

    Engines must give read-after-write consistency on the same instance and
    raise :class:`~geofence.errors.StoreUnavailable` for infrastructure
    failures. Boundaries are canonical WKT in WGS84, lon/lat order.
    """

    # Regions

    @abstractmethod
    def upsert_region(
        self,
        kind: RegionKind,
        parent_id: Optional[str],
        name: str,
        boundary_text: str,
        metadata: dict[str, Any] | None = None,
    ) -> tuple[Region, bool]:
        """Insert or update the region matched by (kind, parent_id, name).

        Returns the stored region and ``True`` when it was created.
        """
        raise NotImplementedError

    @abstractmethod
    def insert_region(
        self,
        kind: RegionKind,
        parent_id: Optional[str],
        name: str,
        boundary_text: str,
        metadata: dict[str, Any] | None = None,
        *,
        is_active: bool = True,
    ) -> Region:
        raise NotImplementedError

    @abstractmethod
    def update_region(
        self,
        region_id: str,
        *,
        name: Optional[str] = None,
        boundary_text: Optional[str] = None,
        metadata: dict[str, Any] | None = None,
    ) -> Region:
        raise NotImplementedError

    @abstractmethod
    def set_region_active(self, region_id: str, active: bool) -> Region:
        raise NotImplementedError

    @abstractmethod
    def delete_region(self, region_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def get_region(self, region_id: str) -> Optional[Region]:
        raise NotImplementedError

    @abstractmethod
    def get_region_by_name(
        self, kind: RegionKind, name: str, parent_id: Optional[str] = None
    ) -> Optional[Region]:
        raise NotImplementedError

    @abstractmethod
    def list_regions(
        self,
        kind: RegionKind,
        parent_id: Optional[str] = None,
        *,
        active_only: bool = False,
    ) -> list[Region]:
        raise NotImplementedError

    @abstractmethod
    def find_containing(
        self,
        kind: RegionKind,
        point: GeoPoint,
        parent_id: Optional[str] = None,
        *,
        active_only: bool = True,
    ) -> Optional[Region]:
        """Region of ``kind`` whose boundary strictly contains ``point``.

        Overlaps resolve to the smallest region by area, then by name.
        """
        raise NotImplementedError

    @abstractmethod
    def region_contains(self, region_id: str, point: GeoPoint) -> bool:
        raise NotImplementedError

    # Customers and their locations

    @abstractmethod
    def customer_exists(self, customer_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def find_near(self, owner_id: str, point: GeoPoint, radius_meters: float) -> list[NearbyLocation]:
        """Locations of ``owner_id`` within ``radius_meters`` (inclusive), nearest first."""
        raise NotImplementedError

    @abstractmethod
    def create_location(
        self,
        customer_id: str,
        point: GeoPoint,
        address: str,
        label: Optional[str] = None,
        *,
        is_primary: bool = False,
    ) -> CustomerLocation:
        """Store a new location; a primary one clears the customer's other primaries."""
        raise NotImplementedError

    @abstractmethod
    def get_location(self, location_id: str) -> Optional[CustomerLocation]:
        raise NotImplementedError

    @abstractmethod
    def list_locations(self, customer_id: str) -> list[CustomerLocation]:
        """Primary first, then most recently used."""
        raise NotImplementedError

    @abstractmethod
    def update_location(
        self,
        location_id: str,
        *,
        address: Optional[str] = None,
        label: Optional[str] = None,
        clear_label: bool = False,
    ) -> CustomerLocation:
        raise NotImplementedError

    @abstractmethod
    def touch_location(self, location_id: str) -> CustomerLocation:
        """Bump ``last_used_at`` to now."""
        raise NotImplementedError

    @abstractmethod
    def set_primary_location(self, customer_id: str, location_id: str) -> CustomerLocation:
        raise NotImplementedError

    @abstractmethod
    def delete_location(self, location_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def count_location_orders(self, location_id: str) -> int:
        raise NotImplementedError

    def ping(self) -> bool:
        """Cheap connectivity check used by the health endpoint."""
        return True
