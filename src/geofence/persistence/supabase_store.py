"""Spatial store on Supabase/PostGIS.

All spatial work happens in the RPC functions of
``supabase/migrations/001_geofence.sql``; coordinates and WKT always travel
as RPC arguments, never inside query text.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from ..errors import DuplicateName, NotFound, StoreUnavailable
from ..models.domain import (
    CustomerLocation,
    GeoPoint,
    NearbyLocation,
    Region,
    RegionKind,
)
from .store import SpatialStore

logger = logging.getLogger(__name__)

REGIONS_VIEW = "geofence_regions"
LOCATIONS_VIEW = "geofence_customer_locations"
LOCATIONS_TABLE = "customer_locations"
CUSTOMERS_TABLE = "customers"
ORDERS_TABLE = "orders"

UNIQUE_VIOLATION = "23505"
NO_DATA_FOUND = "P0002"
INVALID_TEXT_REPRESENTATION = "22P02"


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Unparseable timestamp from store: {value!r}")
        return None


def _row_to_region(row: dict[str, Any]) -> Region:
    metadata = row.get("metadata") or {}
    return Region(
        id=str(row["id"]),
        kind=row["kind"],
        name=row["name"],
        boundary=row["boundary"],
        parent_id=str(row["parent_id"]) if row.get("parent_id") else None,
        is_active=bool(row.get("is_active", True)),
        metadata=dict(metadata) if isinstance(metadata, dict) else {},
        created_at=_parse_timestamp(row.get("created_at")),
        updated_at=_parse_timestamp(row.get("updated_at")),
    )


def _row_to_location(row: dict[str, Any]) -> CustomerLocation:
    return CustomerLocation(
        id=str(row["id"]),
        customer_id=str(row["customer_id"]),
        latitude=float(row["latitude"]),
        longitude=float(row["longitude"]),
        address=row.get("address") or "",
        label=row.get("label"),
        is_primary=bool(row.get("is_primary", False)),
        created_at=_parse_timestamp(row.get("created_at")),
        updated_at=_parse_timestamp(row.get("updated_at")),
        last_used_at=_parse_timestamp(row.get("last_used_at")),
    )


class SupabaseSpatialStore(SpatialStore):
    """Spatial store that delegates to PostGIS through a Supabase client."""

    def __init__(self, client: Any) -> None:
        if client is None:
            raise StoreUnavailable("Supabase client is not configured")
        self.client = client

    def _execute(self, operation: str, builder: Any) -> Any:
        try:
            response = builder.execute()
        except Exception as exc:
            code = getattr(exc, "code", None)
            if code == UNIQUE_VIOLATION:
                raise DuplicateName(f"{operation}: a record with this name already exists") from exc
            if code in (NO_DATA_FOUND, INVALID_TEXT_REPRESENTATION):
                raise NotFound(f"{operation}: {getattr(exc, 'message', exc)}") from exc
            logger.error(f"Supabase {operation} failed: {exc}")
            raise StoreUnavailable(f"{operation} failed: {exc}") from exc
        return response.data

    def _rpc(self, function: str, params: dict[str, Any]) -> Any:
        return self._execute(function, self.client.rpc(function, params))

    def _first_region(self, operation: str, data: Any) -> Region:
        rows = data or []
        if not rows:
            raise NotFound(f"{operation}: region not found")
        return _row_to_region(rows[0])

    # Regions

    def upsert_region(
        self,
        kind: RegionKind,
        parent_id: Optional[str],
        name: str,
        boundary_text: str,
        metadata: dict[str, Any] | None = None,
    ) -> tuple[Region, bool]:
        existing = self.get_region_by_name(kind, name, parent_id)
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
        data = self._rpc(
            "geofence_insert_region",
            {
                "p_kind": kind,
                "p_parent_id": parent_id,
                "p_name": name,
                "p_boundary_wkt": boundary_text,
                "p_metadata": metadata or {},
                "p_is_active": is_active,
            },
        )
        return self._first_region("insert_region", data)

    def update_region(
        self,
        region_id: str,
        *,
        name: Optional[str] = None,
        boundary_text: Optional[str] = None,
        metadata: dict[str, Any] | None = None,
    ) -> Region:
        data = self._rpc(
            "geofence_update_region",
            {"p_id": region_id, "p_name": name, "p_boundary_wkt": boundary_text, "p_metadata": metadata},
        )
        return self._first_region("update_region", data)

    def set_region_active(self, region_id: str, active: bool) -> Region:
        data = self._rpc("geofence_set_region_active", {"p_id": region_id, "p_active": active})
        return self._first_region("set_region_active", data)

    def delete_region(self, region_id: str) -> None:
        self._rpc("geofence_delete_region", {"p_id": region_id})

    def get_region(self, region_id: str) -> Optional[Region]:
        try:
            data = self._execute(
                "get_region",
                self.client.table(REGIONS_VIEW).select("*").eq("id", region_id).limit(1),
            )
        except NotFound:
            return None
        return _row_to_region(data[0]) if data else None

    def get_region_by_name(
        self, kind: RegionKind, name: str, parent_id: Optional[str] = None
    ) -> Optional[Region]:
        query = self.client.table(REGIONS_VIEW).select("*").eq("kind", kind).eq("name", name)
        query = query.eq("parent_id", parent_id) if parent_id else query.is_("parent_id", "null")
        data = self._execute("get_region_by_name", query.limit(1))
        return _row_to_region(data[0]) if data else None

    def list_regions(
        self,
        kind: RegionKind,
        parent_id: Optional[str] = None,
        *,
        active_only: bool = False,
    ) -> list[Region]:
        query = self.client.table(REGIONS_VIEW).select("*").eq("kind", kind)
        if parent_id is not None:
            query = query.eq("parent_id", parent_id)
        if active_only:
            query = query.eq("is_active", True).eq("parent_active", True)
        data = self._execute("list_regions", query.order("name"))
        return [_row_to_region(row) for row in data or []]

    def find_containing(
        self,
        kind: RegionKind,
        point: GeoPoint,
        parent_id: Optional[str] = None,
        *,
        active_only: bool = True,
    ) -> Optional[Region]:
        data = self._rpc(
            "geofence_find_containing",
            {
                "p_kind": kind,
                "p_lon": point.longitude,
                "p_lat": point.latitude,
                "p_parent_id": parent_id,
                "p_active_only": active_only,
            },
        )
        return _row_to_region(data[0]) if data else None

    def region_contains(self, region_id: str, point: GeoPoint) -> bool:
        data = self._rpc(
            "geofence_region_contains",
            {"p_id": region_id, "p_lon": point.longitude, "p_lat": point.latitude},
        )
        if data is None:
            raise NotFound(f"Region '{region_id}' not found")
        return bool(data)

    # Customers and locations

    def customer_exists(self, customer_id: str) -> bool:
        data = self._execute(
            "customer_exists",
            self.client.table(CUSTOMERS_TABLE).select("id").eq("id", customer_id).limit(1),
        )
        return bool(data)

    def find_near(self, owner_id: str, point: GeoPoint, radius_meters: float) -> list[NearbyLocation]:
        data = self._rpc(
            "geofence_find_near",
            {
                "p_customer_id": owner_id,
                "p_lon": point.longitude,
                "p_lat": point.latitude,
                "p_radius_m": radius_meters,
            },
        )
        return [
            NearbyLocation(location=_row_to_location(row), distance_meters=float(row["distance"]))
            for row in data or []
        ]

    def create_location(
        self,
        customer_id: str,
        point: GeoPoint,
        address: str,
        label: Optional[str] = None,
        *,
        is_primary: bool = False,
    ) -> CustomerLocation:
        data = self._rpc(
            "geofence_create_location",
            {
                "p_customer_id": customer_id,
                "p_lon": point.longitude,
                "p_lat": point.latitude,
                "p_address": address,
                "p_label": label,
                "p_is_primary": is_primary,
            },
        )
        if not data:
            raise StoreUnavailable("create_location returned no row")
        return _row_to_location(data[0])

    def get_location(self, location_id: str) -> Optional[CustomerLocation]:
        try:
            data = self._execute(
                "get_location",
                self.client.table(LOCATIONS_VIEW).select("*").eq("id", location_id).limit(1),
            )
        except NotFound:
            return None
        return _row_to_location(data[0]) if data else None

    def list_locations(self, customer_id: str) -> list[CustomerLocation]:
        data = self._execute(
            "list_locations",
            self.client.table(LOCATIONS_VIEW)
            .select("*")
            .eq("customer_id", customer_id)
            .order("is_primary", desc=True)
            .order("last_used_at", desc=True),
        )
        return [_row_to_location(row) for row in data or []]

    def _update_location_row(self, operation: str, location_id: str, values: dict[str, Any]) -> CustomerLocation:
        self._execute(operation, self.client.table(LOCATIONS_TABLE).update(values).eq("id", location_id))
        location = self.get_location(location_id)
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
        values: dict[str, Any] = {"updated_at": datetime.now(timezone.utc).isoformat()}
        if address is not None:
            values["address"] = address
        if clear_label:
            values["label"] = None
        elif label is not None:
            values["label"] = label
        return self._update_location_row("update_location", location_id, values)

    def touch_location(self, location_id: str) -> CustomerLocation:
        values = {"last_used_at": datetime.now(timezone.utc).isoformat()}
        return self._update_location_row("touch_location", location_id, values)

    def set_primary_location(self, customer_id: str, location_id: str) -> CustomerLocation:
        data = self._rpc(
            "geofence_set_primary_location",
            {"p_customer_id": customer_id, "p_location_id": location_id},
        )
        if not data:
            raise NotFound(f"Location '{location_id}' not found")
        return _row_to_location(data[0])

    def delete_location(self, location_id: str) -> None:
        data = self._execute(
            "delete_location",
            self.client.table(LOCATIONS_TABLE).delete().eq("id", location_id),
        )
        if not data:
            raise NotFound(f"Location '{location_id}' not found")

    def count_location_orders(self, location_id: str) -> int:
        try:
            response = (
                self.client.table(ORDERS_TABLE)
                .select("id", count="exact")
                .eq("customer_location_id", location_id)
                .execute()
            )
        except Exception as exc:
            logger.error(f"Supabase count_location_orders failed: {exc}")
            raise StoreUnavailable(f"count_location_orders failed: {exc}") from exc
        return int(getattr(response, "count", None) or 0)

    def ping(self) -> bool:
        try:
            self._execute("ping", self.client.table(REGIONS_VIEW).select("id").limit(1))
        except StoreUnavailable:
            return False
        return True
