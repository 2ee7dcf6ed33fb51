"""Spatial store engines and factory."""

from __future__ import annotations

import logging

from ..config import Settings, settings as default_settings
from ..errors import StoreUnavailable
from .memory import MemorySpatialStore
from .store import SpatialStore
from .supabase_store import SupabaseSpatialStore

__all__ = ["MemorySpatialStore", "SpatialStore", "SupabaseSpatialStore", "build_store"]


def build_store(config: Settings | None = None) -> SpatialStore:
    """Create the store engine selected by configuration."""

    config = config or default_settings
    backend = config.store_backend
    if backend == "memory":
        return MemorySpatialStore()
    if backend == "auto" and not config.supabase_configured:
        logging.warning("Supabase not configured - using the in-memory spatial store")
        return MemorySpatialStore()

    if not config.supabase_configured:
        raise StoreUnavailable("Supabase backend selected but GEOFENCE_SUPABASE_URL/KEY are not set")
    if config is default_settings:
        from ..db.supabase import get_supabase_client

        return SupabaseSpatialStore(get_supabase_client())

    from supabase import create_client

    return SupabaseSpatialStore(create_client(config.supabase_url, config.supabase_key))
