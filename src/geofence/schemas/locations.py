"""Customer location API schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from ..models.domain import CustomerLocation


class ResolveLocationRequest(BaseModel):
    latitude: float
    longitude: float
    address: Optional[str] = None


class CustomerLocationModel(BaseModel):
    id: str
    address: str
    label: Optional[str] = None
    is_primary: bool
    latitude: float
    longitude: float
    last_used_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_location(cls, location: CustomerLocation) -> "CustomerLocationModel":
        return cls(
            id=location.id,
            address=location.address,
            label=location.label,
            is_primary=location.is_primary,
            latitude=location.latitude,
            longitude=location.longitude,
            last_used_at=location.last_used_at,
            created_at=location.created_at,
        )


class ResolvedLocationModel(CustomerLocationModel):
    is_existing: bool
    distance_meters: Optional[float] = None


class ResolveLocationResponse(BaseModel):
    location: ResolvedLocationModel
    message: str


class CustomerLocationsResponse(BaseModel):
    locations: List[CustomerLocationModel]


class UpdateLocationRequest(BaseModel):
    address: Optional[str] = None
    label: Optional[str] = None


class LocationMutationResponse(BaseModel):
    location: Optional[CustomerLocationModel] = None
    message: str
