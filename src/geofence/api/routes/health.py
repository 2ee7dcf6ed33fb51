"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ...persistence.store import SpatialStore
from ..deps import get_store

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/store", status_code=status.HTTP_200_OK)
def health_store(store: SpatialStore = Depends(get_store)) -> dict:
    """Report which spatial store engine is serving requests and whether it answers."""
    try:
        healthy = store.ping()
    except Exception as exc:
        return {"store": type(store).__name__, "healthy": False, "error": str(exc)}
    return {"store": type(store).__name__, "healthy": healthy}
