"""Command line entry points for the zone and city authoring jobs."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .config import settings
from .errors import GeofenceError, StoreUnavailable
from .persistence import MemorySpatialStore, SpatialStore, build_store
from .services.authoring import CityDefaults, CitySeeder, ZoneAuthoring


def _store(backend: Optional[str]) -> SpatialStore:
    """Build the target store; an in-memory store is only accepted when asked for by name."""

    config = settings if backend is None else settings.model_copy(update={"store_backend": backend})
    store = build_store(config)
    if isinstance(store, MemorySpatialStore) and backend != "memory":
        raise StoreUnavailable(
            "No persistent store configured: set GEOFENCE_SUPABASE_URL and GEOFENCE_SUPABASE_KEY, "
            "or pass --backend memory for a dry run"
        )
    return store


def _base_parser(description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument(
        "root",
        nargs="?",
        type=Path,
        default=settings.zones_root,
        help=f"Boundary directory (default: {settings.zones_root})",
    )
    parser.add_argument(
        "--backend",
        choices=["auto", "memory", "supabase"],
        default=None,
        help="Override GEOFENCE_STORE_BACKEND for this run; memory is a dry run that keeps nothing",
    )
    return parser


def zones_main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _base_parser("Sync per-city delivery zone GeoJSON files into the spatial store")
    args = parser.parse_args(argv)
    logging.basicConfig(level=settings.log_level)

    print(f"Syncing delivery zones from {args.root}")
    try:
        report = ZoneAuthoring(_store(args.backend)).sync_all(args.root)
    except (FileNotFoundError, GeofenceError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(report.summary("Zones"))
    return 0


def cities_main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _base_parser("Seed city boundaries from <city>.geojson files into the spatial store")
    parser.add_argument("--country", default=settings.default_country)
    parser.add_argument("--state", default=settings.default_state)
    parser.add_argument("--timezone", default=settings.default_timezone)
    args = parser.parse_args(argv)
    logging.basicConfig(level=settings.log_level)

    if not args.root.is_dir():
        print(f"Error: cities directory not found: {args.root}", file=sys.stderr)
        return 1

    defaults = CityDefaults(country=args.country, state=args.state, timezone=args.timezone)
    print(f"Seeding cities from {args.root}")
    try:
        report = CitySeeder(_store(args.backend)).seed(args.root, defaults)
    except GeofenceError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(report.summary("Cities"))
    return 0


if __name__ == "__main__":
    sys.exit(zones_main())
