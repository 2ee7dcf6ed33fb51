"""Customer location capture and management.

``LocationDeduplicator.resolve_location`` reads nearby locations and then
conditionally writes a new one without a transaction spanning both steps.
Two concurrent calls for the same customer and nearly the same point can
therefore both create a location. The duplicates are tolerated: any later
call within the threshold of either reuses one of them. Setting
``serialize_location_writes`` adds a per-customer in-process lock.
"""

from __future__ import annotations

import logging
import threading
from contextlib import nullcontext
from typing import Optional

from ..config import settings
from ..errors import LocationInUse, NotFound, UnknownCustomer
from ..models.domain import CustomerLocation, GeoPoint, LocationResolution
from ..persistence.store import SpatialStore

logger = logging.getLogger(__name__)

NO_ADDRESS_MESSAGE = "Location saved. Please enter your delivery address."
PRIMARY_MESSAGE = "New location saved as your primary address"
SECONDARY_MESSAGE = "New location saved"


def reuse_message(location: CustomerLocation, distance_meters: float) -> str:
    name = location.label or location.address
    return f'Using existing location "{name}" ({round(distance_meters)}m away)'


class _CustomerLocks:
    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def get(self, customer_id: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(customer_id, threading.Lock())


class LocationDeduplicator:
    """Reuse a stored location for GPS fixes within the proximity threshold."""

    def __init__(
        self,
        store: SpatialStore,
        threshold_meters: float | None = None,
        *,
        serialize: bool | None = None,
    ) -> None:
        self.store = store
        self.threshold_meters = threshold_meters if threshold_meters is not None else settings.proximity_threshold_meters
        if self.threshold_meters <= 0:
            raise ValueError("threshold_meters must be positive")
        serialize = settings.serialize_location_writes if serialize is None else serialize
        self._locks = _CustomerLocks() if serialize else None

    def resolve_location(
        self,
        customer_id: str,
        latitude: float,
        longitude: float,
        address: Optional[str] = None,
    ) -> LocationResolution:
        point = GeoPoint.validated(latitude, longitude)
        if not self.store.customer_exists(customer_id):
            raise UnknownCustomer(f"Customer '{customer_id}' not found")

        guard = self._locks.get(customer_id) if self._locks else nullcontext()
        with guard:
            nearby = self.store.find_near(customer_id, point, self.threshold_meters)
            if nearby:
                closest = nearby[0]
                location = self.store.touch_location(closest.location.id)
                logger.info(
                    f"Reusing location {location.id} for customer {customer_id} "
                    f"({closest.distance_meters:.2f}m away)"
                )
                return LocationResolution(
                    location=location,
                    is_existing=True,
                    message=reuse_message(location, closest.distance_meters),
                    distance_meters=closest.distance_meters,
                )

            resolved_address = address or ""
            is_primary = len(self.store.list_locations(customer_id)) == 0
            location = self.store.create_location(
                customer_id, point, resolved_address, None, is_primary=is_primary
            )

        if not resolved_address:
            message = NO_ADDRESS_MESSAGE
        elif is_primary:
            message = PRIMARY_MESSAGE
        else:
            message = SECONDARY_MESSAGE
        logger.info(f"Created location {location.id} for customer {customer_id} (primary={is_primary})")
        return LocationResolution(location=location, is_existing=False, message=message)


class CustomerLocationService:
    """Listing, editing and deleting a customer's stored locations."""

    def __init__(self, store: SpatialStore) -> None:
        self.store = store

    def _owned(self, customer_id: str, location_id: str) -> CustomerLocation:
        location = self.store.get_location(location_id)
        if location is None or location.customer_id != customer_id:
            raise NotFound("Location not found")
        return location

    def list_locations(self, customer_id: str) -> list[CustomerLocation]:
        return self.store.list_locations(customer_id)

    def get_primary(self, customer_id: str) -> CustomerLocation:
        for location in self.store.list_locations(customer_id):
            if location.is_primary:
                return location
        raise NotFound("No primary location set")

    def update_location(
        self,
        customer_id: str,
        location_id: str,
        *,
        address: Optional[str] = None,
        label: Optional[str] = None,
        clear_label: bool = False,
    ) -> CustomerLocation:
        self._owned(customer_id, location_id)
        return self.store.update_location(location_id, address=address, label=label, clear_label=clear_label)

    def set_primary(self, customer_id: str, location_id: str) -> CustomerLocation:
        self._owned(customer_id, location_id)
        return self.store.set_primary_location(customer_id, location_id)

    def delete_location(self, customer_id: str, location_id: str) -> Optional[CustomerLocation]:
        """Delete a location; returns the location promoted to primary, if any."""

        location = self._owned(customer_id, location_id)
        orders = self.store.count_location_orders(location_id)
        if orders > 0:
            raise LocationInUse(f"Cannot delete location - it's used by {orders} order(s)")

        self.store.delete_location(location_id)
        if not location.is_primary:
            return None

        remaining = self.store.list_locations(customer_id)
        if not remaining:
            return None
        successor = max(remaining, key=lambda loc: loc.last_used_at)
        promoted = self.store.set_primary_location(customer_id, successor.id)
        logger.info(f"Promoted location {promoted.id} to primary for customer {customer_id}")
        return promoted
