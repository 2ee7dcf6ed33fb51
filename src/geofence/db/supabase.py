"""Supabase client for the spatial store."""

import logging
from functools import lru_cache

from supabase import Client, create_client

from ..config import settings
from ..errors import StoreUnavailable


@lru_cache()
def get_supabase_client() -> Client | None:
    """Get cached Supabase client instance.

    Returns:
        Supabase Client instance if configured, None otherwise.
        Note: This does not test the connection - actual queries may fail with network errors.
    """
    if not settings.supabase_configured:
        logging.warning("Supabase credentials not configured (missing URL or key)")
        return None

    try:
        return create_client(settings.supabase_url, settings.supabase_key)
    except Exception as exc:
        logging.error(f"Failed to create Supabase client: {exc}")
        raise StoreUnavailable(f"Failed to create Supabase client: {exc}") from exc
