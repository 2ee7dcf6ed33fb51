"""Request-scoped dependencies and domain error translation."""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request, status

from ..errors import (
    DuplicateName,
    LocationInUse,
    NotFound,
    ResolutionFailed,
    StoreUnavailable,
)
from ..persistence.store import SpatialStore


def get_store(request: Request) -> SpatialStore:
    return request.app.state.store


def http_error(exc: Exception, action: str) -> HTTPException:
    """Map a domain error raised while performing ``action`` to an HTTP error."""

    if isinstance(exc, NotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, (DuplicateName, LocationInUse)):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, (ResolutionFailed, StoreUnavailable)):
        logging.error(f"{action} failed: store unavailable: {exc}")
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Unable to {action} right now. Please try again.",
        )
    if isinstance(exc, ValueError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    logging.exception(f"Error trying to {action}: {exc}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}",
    )
