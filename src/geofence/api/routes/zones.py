"""Administrative delivery zone management endpoints."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ...persistence.store import SpatialStore
from ...schemas.zones import (
    CityModel,
    LocationCheckRequest,
    LocationCheckResponse,
    ZoneCreateRequest,
    ZoneModel,
    ZoneUpdateRequest,
)
from ...services.resolver import point_in_zone
from ...services.zones import ZoneManager
from ..deps import get_store, http_error

router = APIRouter(prefix="/zones-manager", tags=["zones-manager"])


def _city_names(manager: ZoneManager) -> dict[str, str]:
    return {city.id: city.name for city in manager.list_cities()}


@router.get("/zones", response_model=list[ZoneModel], status_code=status.HTTP_200_OK)
def list_zones(
    city_id: Optional[str] = Query(default=None, description="Only zones of this city"),
    store: SpatialStore = Depends(get_store),
) -> list[ZoneModel]:
    """List every zone, active or not, for the admin console."""
    try:
        manager = ZoneManager(store)
        names = _city_names(manager)
        zones = manager.list_zones(city_id)
    except Exception as exc:
        raise http_error(exc, "fetch zones") from exc
    return [ZoneModel.from_region(zone, names.get(zone.parent_id or "")) for zone in zones]


@router.post("/zones", response_model=ZoneModel, status_code=status.HTTP_201_CREATED)
def create_zone(payload: ZoneCreateRequest, store: SpatialStore = Depends(get_store)) -> ZoneModel:
    try:
        manager = ZoneManager(store)
        zone = manager.create_zone(payload.city_id, payload.name, payload.coordinates, payload.description)
        city_name = _city_names(manager).get(payload.city_id)
    except Exception as exc:
        raise http_error(exc, "create zone") from exc
    return ZoneModel.from_region(zone, city_name)


@router.patch("/zones/{zone_id}", response_model=ZoneModel, status_code=status.HTTP_200_OK)
def update_zone(zone_id: str, payload: ZoneUpdateRequest, store: SpatialStore = Depends(get_store)) -> ZoneModel:
    try:
        manager = ZoneManager(store)
        zone = manager.update_zone(
            zone_id,
            name=payload.name,
            description=payload.description,
            coordinates=payload.coordinates,
        )
        city_name = _city_names(manager).get(zone.parent_id or "")
    except Exception as exc:
        raise http_error(exc, "update zone") from exc
    logging.info(f"Updated delivery zone {zone_id}")
    return ZoneModel.from_region(zone, city_name)


@router.patch("/zones/{zone_id}/toggle", response_model=ZoneModel, status_code=status.HTTP_200_OK)
def toggle_zone(zone_id: str, store: SpatialStore = Depends(get_store)) -> ZoneModel:
    """Flip a zone between active and inactive."""
    try:
        manager = ZoneManager(store)
        zone = manager.toggle_zone(zone_id)
        city_name = _city_names(manager).get(zone.parent_id or "")
    except Exception as exc:
        raise http_error(exc, "toggle zone") from exc
    logging.info(f"Zone {zone_id} is now {'active' if zone.is_active else 'inactive'}")
    return ZoneModel.from_region(zone, city_name)


@router.delete("/zones/{zone_id}", status_code=status.HTTP_200_OK)
def delete_zone(zone_id: str, store: SpatialStore = Depends(get_store)) -> dict:
    try:
        ZoneManager(store).delete_zone(zone_id)
    except Exception as exc:
        raise http_error(exc, "delete zone") from exc
    logging.info(f"Deleted delivery zone {zone_id}")
    return {"deleted": zone_id, "message": "Zone deleted successfully"}


@router.get("/cities", response_model=list[CityModel], status_code=status.HTTP_200_OK)
def list_cities(store: SpatialStore = Depends(get_store)) -> list[CityModel]:
    try:
        cities = ZoneManager(store).list_cities()
    except Exception as exc:
        raise http_error(exc, "fetch cities") from exc
    return [CityModel.from_region(city) for city in cities]


@router.post("/test-location", response_model=LocationCheckResponse, status_code=status.HTTP_200_OK)
def test_location(payload: LocationCheckRequest, store: SpatialStore = Depends(get_store)) -> LocationCheckResponse:
    """Check a point against one zone regardless of its active flag."""
    try:
        zone, inside = point_in_zone(store, payload.zone_id, payload.latitude, payload.longitude)
    except Exception as exc:
        raise http_error(exc, "test location") from exc
    return LocationCheckResponse(zone_id=zone.id, zone_name=zone.name, is_inside=inside)
