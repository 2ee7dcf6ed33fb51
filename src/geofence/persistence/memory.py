"""In-process spatial store backed by shapely STR-trees and pyproj geodesics."""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from shapely.geometry import Point, box
from shapely.geometry.base import BaseGeometry
from shapely.prepared import prep
from shapely.strtree import STRtree

from ..errors import DuplicateName, NotFound
from ..models.domain import (
    CITY,
    ZONE,
    Customer,
    CustomerLocation,
    GeoPoint,
    NearbyLocation,
    Region,
    RegionKind,
)
from ..services.geometry import from_canonical_text
from ..services.geospatial import geodesic_distance_m, search_envelope, within_radius
from .store import SpatialStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _copy_region(region: Region) -> Region:
    return replace(region, metadata=dict(region.metadata))


class MemorySpatialStore(SpatialStore):
    """Spatial store kept in memory.

    Region boundaries are indexed in an ``STRtree`` that is rebuilt lazily on
    the first query after a write. All state is guarded by one re-entrant
    lock, so a query that starts after a write returns observes it.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or _utcnow
        self._lock = threading.RLock()
        self._regions: dict[str, Region] = {}
        self._shapes: dict[str, BaseGeometry] = {}
        self._prepared: dict[str, Any] = {}
        self._region_tree: Optional[tuple[STRtree, list[str]]] = None
        self._customers: dict[str, Customer] = {}
        self._locations: dict[str, CustomerLocation] = {}
        self._location_tree: Optional[tuple[STRtree, list[str]]] = None
        self._orders: dict[str, set[str]] = {}

    # Index maintenance

    def _regions_index(self) -> tuple[STRtree, list[str]]:
        if self._region_tree is None:
            ids = list(self._regions)
            self._region_tree = (STRtree([self._shapes[region_id] for region_id in ids]), ids)
        return self._region_tree

    def _locations_index(self) -> tuple[STRtree, list[str]]:
        if self._location_tree is None:
            ids = list(self._locations)
            points = [Point(self._locations[lid].longitude, self._locations[lid].latitude) for lid in ids]
            self._location_tree = (STRtree(points), ids)
        return self._location_tree

    def _set_shape(self, region_id: str, boundary_text: str) -> None:
        shape = from_canonical_text(boundary_text)
        self._shapes[region_id] = shape
        self._prepared[region_id] = prep(shape)
        self._region_tree = None

    # Regions

    def _find_by_name(self, kind: RegionKind, name: str, parent_id: Optional[str]) -> Optional[Region]:
        for region in self._regions.values():
            if region.kind == kind and region.name == name and region.parent_id == parent_id:
                return region
        return None

    def _check_parent(self, kind: RegionKind, parent_id: Optional[str]) -> None:
        if kind == ZONE:
            parent = self._regions.get(parent_id) if parent_id else None
            if parent is None or parent.kind != CITY:
                raise NotFound(f"City '{parent_id}' not found")

    def upsert_region(
        self,
        kind: RegionKind,
        parent_id: Optional[str],
        name: str,
        boundary_text: str,
        metadata: dict[str, Any] | None = None,
    ) -> tuple[Region, bool]:
        with self._lock:
            existing = self._find_by_name(kind, name, parent_id)
            if existing is None:
                return self.insert_region(kind, parent_id, name, boundary_text, metadata), True
            merged = {**existing.metadata, **(metadata or {})}
            return self.update_region(existing.id, boundary_text=boundary_text, metadata=merged), False

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
        with self._lock:
            self._check_parent(kind, parent_id)
            if self._find_by_name(kind, name, parent_id) is not None:
                raise DuplicateName(f"A {kind} named '{name}' already exists")
            now = self._clock()
            region = Region(
                id=str(uuid.uuid4()),
                kind=kind,
                name=name,
                boundary=boundary_text,
                parent_id=parent_id,
                is_active=is_active,
                metadata=dict(metadata or {}),
                created_at=now,
                updated_at=now,
            )
            self._set_shape(region.id, boundary_text)
            self._regions[region.id] = region
            return _copy_region(region)

    def update_region(
        self,
        region_id: str,
        *,
        name: Optional[str] = None,
        boundary_text: Optional[str] = None,
        metadata: dict[str, Any] | None = None,
    ) -> Region:
        with self._lock:
            region = self._regions.get(region_id)
            if region is None:
                raise NotFound(f"Region '{region_id}' not found")
            if name is not None and name != region.name:
                if self._find_by_name(region.kind, name, region.parent_id) is not None:
                    raise DuplicateName(f"A {region.kind} named '{name}' already exists")
                region.name = name
            if boundary_text is not None:
                self._set_shape(region_id, boundary_text)
                region.boundary = boundary_text
            if metadata is not None:
                region.metadata = dict(metadata)
            region.updated_at = self._clock()
            return _copy_region(region)

    def set_region_active(self, region_id: str, active: bool) -> Region:
        with self._lock:
            region = self._regions.get(region_id)
            if region is None:
                raise NotFound(f"Region '{region_id}' not found")
            region.is_active = active
            region.updated_at = self._clock()
            return _copy_region(region)

    def delete_region(self, region_id: str) -> None:
        with self._lock:
            region = self._regions.get(region_id)
            if region is None:
                raise NotFound(f"Region '{region_id}' not found")
            doomed = [region_id]
            if region.kind == CITY:
                doomed.extend(rid for rid, r in self._regions.items() if r.parent_id == region_id)
            for rid in doomed:
                del self._regions[rid]
                del self._shapes[rid]
                del self._prepared[rid]
            self._region_tree = None

    def get_region(self, region_id: str) -> Optional[Region]:
        with self._lock:
            region = self._regions.get(region_id)
            return _copy_region(region) if region else None

    def get_region_by_name(
        self, kind: RegionKind, name: str, parent_id: Optional[str] = None
    ) -> Optional[Region]:
        with self._lock:
            region = self._find_by_name(kind, name, parent_id)
            return _copy_region(region) if region else None

    def list_regions(
        self,
        kind: RegionKind,
        parent_id: Optional[str] = None,
        *,
        active_only: bool = False,
    ) -> list[Region]:
        with self._lock:
            regions = [
                region
                for region in self._regions.values()
                if region.kind == kind
                and (parent_id is None or region.parent_id == parent_id)
                and (not active_only or self._is_active(region))
            ]
            return [_copy_region(region) for region in sorted(regions, key=lambda r: (r.name, r.id))]

    def _is_active(self, region: Region) -> bool:
        if not region.is_active:
            return False
        if region.kind == ZONE:
            parent = self._regions.get(region.parent_id or "")
            return parent is not None and parent.is_active
        return True

    def find_containing(
        self,
        kind: RegionKind,
        point: GeoPoint,
        parent_id: Optional[str] = None,
        *,
        active_only: bool = True,
    ) -> Optional[Region]:
        with self._lock:
            if not self._regions:
                return None
            tree, ids = self._regions_index()
            hits = tree.query(Point(point.longitude, point.latitude), predicate="within")
            matches = []
            for index in hits:
                region = self._regions[ids[int(index)]]
                if region.kind != kind:
                    continue
                if parent_id is not None and region.parent_id != parent_id:
                    continue
                if active_only and not self._is_active(region):
                    continue
                matches.append(region)
            if not matches:
                return None
            if len(matches) > 1:
                logger.debug(f"{len(matches)} {kind} regions contain {point}; choosing the smallest")
            best = min(matches, key=lambda r: (self._shapes[r.id].area, r.name, r.id))
            return _copy_region(best)

    def region_contains(self, region_id: str, point: GeoPoint) -> bool:
        with self._lock:
            prepared = self._prepared.get(region_id)
            if prepared is None:
                raise NotFound(f"Region '{region_id}' not found")
            return bool(prepared.contains(Point(point.longitude, point.latitude)))

    # Customers

    def add_customer(self, customer_id: str, name: Optional[str] = None, phone: Optional[str] = None) -> Customer:
        with self._lock:
            customer = Customer(customer_id=customer_id, name=name, phone=phone)
            self._customers[customer_id] = customer
            return customer

    def customer_exists(self, customer_id: str) -> bool:
        with self._lock:
            return customer_id in self._customers

    def attach_order(self, location_id: str, order_id: str) -> None:
        """Record that an order references a location."""
        with self._lock:
            if location_id not in self._locations:
                raise NotFound(f"Location '{location_id}' not found")
            self._orders.setdefault(location_id, set()).add(order_id)

    def count_location_orders(self, location_id: str) -> int:
        with self._lock:
            return len(self._orders.get(location_id, ()))

    # Customer locations

    def find_near(self, owner_id: str, point: GeoPoint, radius_meters: float) -> list[NearbyLocation]:
        with self._lock:
            min_lon, min_lat, max_lon, max_lat = search_envelope(point.latitude, point.longitude, radius_meters)
            if min_lon < -180 or max_lon > 180:
                candidates = [loc for loc in self._locations.values() if loc.customer_id == owner_id]
            elif not self._locations:
                candidates = []
            else:
                tree, ids = self._locations_index()
                hits = tree.query(box(min_lon, min_lat, max_lon, max_lat))
                candidates = [
                    self._locations[ids[int(index)]]
                    for index in hits
                    if self._locations[ids[int(index)]].customer_id == owner_id
                ]
            nearby = []
            for location in candidates:
                distance = geodesic_distance_m(
                    point.latitude, point.longitude, location.latitude, location.longitude
                )
                if within_radius(distance, radius_meters):
                    nearby.append(NearbyLocation(location=replace(location), distance_meters=distance))
            nearby.sort(key=lambda item: (item.distance_meters, item.location.id))
            return nearby

    def create_location(
        self,
        customer_id: str,
        point: GeoPoint,
        address: str,
        label: Optional[str] = None,
        *,
        is_primary: bool = False,
    ) -> CustomerLocation:
        with self._lock:
            if customer_id not in self._customers:
                raise NotFound(f"Customer '{customer_id}' not found")
            if is_primary:
                for location in self._locations.values():
                    if location.customer_id == customer_id:
                        location.is_primary = False
            now = self._clock()
            location = CustomerLocation(
                id=str(uuid.uuid4()),
                customer_id=customer_id,
                latitude=point.latitude,
                longitude=point.longitude,
                address=address,
                label=label,
                is_primary=is_primary,
                created_at=now,
                updated_at=now,
                last_used_at=now,
            )
            self._locations[location.id] = location
            self._location_tree = None
            return replace(location)

    def get_location(self, location_id: str) -> Optional[CustomerLocation]:
        with self._lock:
            location = self._locations.get(location_id)
            return replace(location) if location else None

    def list_locations(self, customer_id: str) -> list[CustomerLocation]:
        with self._lock:
            owned = [loc for loc in self._locations.values() if loc.customer_id == customer_id]
            owned.sort(key=lambda loc: (loc.is_primary, loc.last_used_at), reverse=True)
            return [replace(loc) for loc in owned]

    def _require_location(self, location_id: str) -> CustomerLocation:
        location = self._locations.get(location_id)
        if location is None:
            raise NotFound(f"Location '{location_id}' not found")
        return location

    def update_location(
        self,
        location_id: str,
        *,
        address: Optional[str] = None,
        label: Optional[str] = None,
        clear_label: bool = False,
    ) -> CustomerLocation:
        with self._lock:
            location = self._require_location(location_id)
            if address is not None:
                location.address = address
            if clear_label:
                location.label = None
            elif label is not None:
                location.label = label
            location.updated_at = self._clock()
            return replace(location)

    def touch_location(self, location_id: str) -> CustomerLocation:
        with self._lock:
            location = self._require_location(location_id)
            location.last_used_at = self._clock()
            return replace(location)

    def set_primary_location(self, customer_id: str, location_id: str) -> CustomerLocation:
        with self._lock:
            target = self._require_location(location_id)
            if target.customer_id != customer_id:
                raise NotFound(f"Location '{location_id}' not found")
            for location in self._locations.values():
                if location.customer_id == customer_id:
                    location.is_primary = location.id == location_id
            target.updated_at = self._clock()
            return replace(target)

    def delete_location(self, location_id: str) -> None:
        with self._lock:
            self._require_location(location_id)
            del self._locations[location_id]
            self._orders.pop(location_id, None)
            self._location_tree = None
