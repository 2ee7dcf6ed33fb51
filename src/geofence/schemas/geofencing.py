"""Pydantic request/response models for geofencing endpoints."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

from ..models.domain import Region


class LocationPoint(BaseModel):
    latitude: float = Field(..., description="Latitude in decimal degrees (WGS84).")
    longitude: float = Field(..., description="Longitude in decimal degrees (WGS84).")


class CityInfo(BaseModel):
    id: str
    name: str
    country: Optional[str] = None
    state: Optional[str] = None

    @classmethod
    def from_region(cls, region: Region) -> "CityInfo":
        return cls(id=region.id, name=region.name, country=region.country, state=region.state)


class ZoneInfo(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    city_id: Optional[str] = None
    city_name: Optional[str] = None

    @classmethod
    def from_region(cls, region: Region, city_name: Optional[str] = None) -> "ZoneInfo":
        return cls(
            id=region.id,
            name=region.name,
            description=region.description,
            city_id=region.parent_id,
            city_name=city_name,
        )


class ServiceAreaResponse(BaseModel):
    within_service_area: bool
    city: Optional[CityInfo] = None
    message: str


class ZoneValidationResponse(BaseModel):
    is_valid: bool
    within_delivery_zone: bool
    reason: Literal["OUTSIDE_CITY", "OUTSIDE_DELIVERY_ZONE", "WITHIN_DELIVERY_ZONE"]
    message: str
    city: Optional[CityInfo] = None
    zone: Optional[ZoneInfo] = None
