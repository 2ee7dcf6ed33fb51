"""Error kinds raised by the geofencing core.

Validation problems subclass ``ValueError`` and lookups subclass
``LookupError`` so callers that only know the builtin hierarchy still
classify them correctly. Infrastructure failures subclass ``ConnectionError``
and must never be reported to users as "outside the service area".
"""

from __future__ import annotations


class GeofenceError(Exception):
    """Base class for every error raised by this package."""


class InvalidCoordinates(GeofenceError, ValueError):
    """Latitude/longitude outside [-90, 90] x [-180, 180] or not finite."""


class UnsupportedGeometry(GeofenceError, ValueError):
    """Geometry kind is neither Polygon nor MultiPolygon."""


class InvalidGeometry(GeofenceError, ValueError):
    """Polygon rings that cannot form a valid boundary."""


class EmptyRing(GeofenceError, ValueError):
    """Centroid requested for a ring without vertices."""


class NotFound(GeofenceError, LookupError):
    """Referenced entity does not exist."""


class UnknownCustomer(NotFound):
    """Customer id does not reference a stored customer."""


class DuplicateName(GeofenceError):
    """A region with the same name already exists in the same scope."""


class LocationInUse(GeofenceError):
    """Customer location is still referenced by one or more orders."""


class StoreUnavailable(GeofenceError, ConnectionError):
    """The spatial store could not complete a query."""


class ResolutionFailed(GeofenceError):
    """Zone resolution could not be determined because the store failed."""
