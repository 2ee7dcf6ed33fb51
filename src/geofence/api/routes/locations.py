"""Customer delivery location endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status

from ...persistence.store import SpatialStore
from ...schemas.locations import (
    CustomerLocationModel,
    CustomerLocationsResponse,
    LocationMutationResponse,
    ResolvedLocationModel,
    ResolveLocationRequest,
    ResolveLocationResponse,
    UpdateLocationRequest,
)
from ...services.locations import CustomerLocationService, LocationDeduplicator
from ..deps import get_store, http_error

router = APIRouter(prefix="/customers/{customer_id}/locations", tags=["customer-locations"])


def get_deduplicator(request: Request) -> LocationDeduplicator:
    return request.app.state.deduplicator


@router.post("/resolve", response_model=ResolveLocationResponse, status_code=status.HTTP_200_OK)
def resolve_location(
    customer_id: str,
    payload: ResolveLocationRequest,
    deduplicator: LocationDeduplicator = Depends(get_deduplicator),
) -> ResolveLocationResponse:
    """Reuse a stored location within the proximity threshold or save a new one."""
    try:
        result = deduplicator.resolve_location(customer_id, payload.latitude, payload.longitude, payload.address)
    except Exception as exc:
        raise http_error(exc, "resolve location") from exc
    base = CustomerLocationModel.from_location(result.location)
    return ResolveLocationResponse(
        location=ResolvedLocationModel(
            **base.model_dump(),
            is_existing=result.is_existing,
            distance_meters=result.distance_meters,
        ),
        message=result.message,
    )


@router.get("", response_model=CustomerLocationsResponse, status_code=status.HTTP_200_OK)
def list_locations(customer_id: str, store: SpatialStore = Depends(get_store)) -> CustomerLocationsResponse:
    try:
        locations = CustomerLocationService(store).list_locations(customer_id)
    except Exception as exc:
        raise http_error(exc, "fetch locations") from exc
    return CustomerLocationsResponse(locations=[CustomerLocationModel.from_location(loc) for loc in locations])


@router.get("/primary", response_model=CustomerLocationModel, status_code=status.HTTP_200_OK)
def primary_location(customer_id: str, store: SpatialStore = Depends(get_store)) -> CustomerLocationModel:
    try:
        location = CustomerLocationService(store).get_primary(customer_id)
    except Exception as exc:
        raise http_error(exc, "fetch primary location") from exc
    return CustomerLocationModel.from_location(location)


@router.patch("/{location_id}", response_model=LocationMutationResponse, status_code=status.HTTP_200_OK)
def update_location(
    customer_id: str,
    location_id: str,
    payload: UpdateLocationRequest,
    store: SpatialStore = Depends(get_store),
) -> LocationMutationResponse:
    """Update the address or label; an explicit ``"label": null`` clears the label."""
    clear_label = "label" in payload.model_fields_set and payload.label is None
    try:
        location = CustomerLocationService(store).update_location(
            customer_id,
            location_id,
            address=payload.address,
            label=payload.label,
            clear_label=clear_label,
        )
    except Exception as exc:
        raise http_error(exc, "update location") from exc
    return LocationMutationResponse(
        location=CustomerLocationModel.from_location(location),
        message="Location updated successfully",
    )


@router.patch("/{location_id}/primary", response_model=LocationMutationResponse, status_code=status.HTTP_200_OK)
def set_primary(customer_id: str, location_id: str, store: SpatialStore = Depends(get_store)) -> LocationMutationResponse:
    try:
        location = CustomerLocationService(store).set_primary(customer_id, location_id)
    except Exception as exc:
        raise http_error(exc, "update primary location") from exc
    return LocationMutationResponse(
        location=CustomerLocationModel.from_location(location),
        message="Primary location updated",
    )


@router.delete("/{location_id}", response_model=LocationMutationResponse, status_code=status.HTTP_200_OK)
def delete_location(customer_id: str, location_id: str, store: SpatialStore = Depends(get_store)) -> LocationMutationResponse:
    try:
        promoted = CustomerLocationService(store).delete_location(customer_id, location_id)
    except Exception as exc:
        raise http_error(exc, "delete location") from exc
    return LocationMutationResponse(
        location=CustomerLocationModel.from_location(promoted) if promoted else None,
        message="Location deleted successfully",
    )
