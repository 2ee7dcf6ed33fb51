"""Service-area and delivery-zone validation endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...persistence.store import SpatialStore
from ...schemas.geofencing import (
    CityInfo,
    LocationPoint,
    ServiceAreaResponse,
    ZoneInfo,
    ZoneValidationResponse,
)
from ...services.resolver import ZoneResolver
from ...services.zones import ZoneManager
from ..deps import get_store, http_error

router = APIRouter(prefix="/geofencing", tags=["geofencing"])


@router.post("/validate-location", response_model=ServiceAreaResponse, status_code=status.HTTP_200_OK)
def validate_location(payload: LocationPoint, store: SpatialStore = Depends(get_store)) -> ServiceAreaResponse:
    """Check whether a point is inside any active city boundary."""
    try:
        city, message = ZoneResolver(store).validate_city(payload.latitude, payload.longitude)
    except Exception as exc:
        raise http_error(exc, "validate your location") from exc
    return ServiceAreaResponse(
        within_service_area=city is not None,
        city=CityInfo.from_region(city) if city else None,
        message=message,
    )


@router.post("/validate-zone", response_model=ZoneValidationResponse, status_code=status.HTTP_200_OK)
def validate_zone(payload: LocationPoint, store: SpatialStore = Depends(get_store)) -> ZoneValidationResponse:
    """Resolve a point to its city and delivery zone.

    The ordering flow only accepts checkout when ``is_valid`` is true.
    """
    try:
        resolution = ZoneResolver(store).resolve(payload.latitude, payload.longitude)
    except Exception as exc:
        raise http_error(exc, "validate your location") from exc
    return ZoneValidationResponse(
        is_valid=resolution.is_deliverable,
        within_delivery_zone=resolution.is_deliverable,
        reason=resolution.outcome.value,
        message=resolution.message,
        city=CityInfo.from_region(resolution.city) if resolution.city else None,
        zone=ZoneInfo.from_region(resolution.zone, resolution.city.name) if resolution.zone else None,
    )


@router.get("/cities", response_model=list[CityInfo], status_code=status.HTTP_200_OK)
def active_cities(store: SpatialStore = Depends(get_store)) -> list[CityInfo]:
    try:
        cities = ZoneManager(store).list_active_cities()
    except Exception as exc:
        raise http_error(exc, "fetch cities") from exc
    return [CityInfo.from_region(city) for city in cities]


@router.get("/zones", response_model=list[ZoneInfo], status_code=status.HTTP_200_OK)
def active_zones(
    city_id: Optional[str] = Query(default=None, description="Only zones of this city"),
    store: SpatialStore = Depends(get_store),
) -> list[ZoneInfo]:
    try:
        manager = ZoneManager(store)
        city_names = {city.id: city.name for city in manager.list_active_cities()}
        if city_id is not None and city_id not in city_names:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="City not found")
        zones = manager.list_active_zones(city_id)
    except HTTPException:
        raise
    except Exception as exc:
        raise http_error(exc, "fetch delivery zones") from exc
    return [ZoneInfo.from_region(zone, city_names.get(zone.parent_id or "")) for zone in zones]
