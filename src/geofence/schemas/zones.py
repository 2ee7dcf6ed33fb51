"""Schemas for the zone management endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from ..models.domain import Region


def _check_pairs(value: Optional[List[List[float]]]) -> Optional[List[List[float]]]:
    if value is None:
        return value
    if len(value) < 3:
        raise ValueError("A polygon must have at least 3 coordinates")
    for pair in value:
        if len(pair) != 2:
            raise ValueError("Each coordinate must be a [lng, lat] pair")
    return value


class ZoneCreateRequest(BaseModel):
    city_id: str
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    coordinates: List[List[float]] = Field(..., description="Outline as [lng, lat] pairs.")

    @field_validator("coordinates")
    @classmethod
    def validate_coordinates(cls, value):
        return _check_pairs(value)


class ZoneUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    coordinates: Optional[List[List[float]]] = None

    @field_validator("coordinates")
    @classmethod
    def validate_coordinates(cls, value):
        return _check_pairs(value)


class ZoneModel(BaseModel):
    id: str
    city_id: str
    city_name: Optional[str] = None
    name: str
    description: Optional[str] = None
    boundary: str
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_region(cls, region: Region, city_name: Optional[str] = None) -> "ZoneModel":
        return cls(
            id=region.id,
            city_id=region.parent_id or "",
            city_name=city_name,
            name=region.name,
            description=region.description,
            boundary=region.boundary,
            is_active=region.is_active,
            created_at=region.created_at,
            updated_at=region.updated_at,
        )


class CityModel(BaseModel):
    id: str
    name: str
    country: Optional[str] = None
    state: Optional[str] = None
    timezone: Optional[str] = None
    center_point: Optional[dict[str, Any]] = None
    is_active: bool

    @classmethod
    def from_region(cls, region: Region) -> "CityModel":
        center = region.center
        return cls(
            id=region.id,
            name=region.name,
            country=region.country,
            state=region.state,
            timezone=region.timezone,
            center_point={"type": "Point", "coordinates": list(center)} if center else None,
            is_active=region.is_active,
        )


class LocationCheckRequest(BaseModel):
    zone_id: str
    latitude: float
    longitude: float


class LocationCheckResponse(BaseModel):
    zone_id: str
    zone_name: str
    is_inside: bool
