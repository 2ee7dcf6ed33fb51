"""Helpers for reading zone and city boundary files from a directory tree."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from ...errors import InvalidGeometry

GEOJSON_SUFFIX = ".geojson"


def read_geojson(path: Path) -> dict[str, Any]:
    with path.open(mode="r", encoding="utf-8") as handle:
        return json.load(handle)


def list_geojson_files(directory: Path) -> list[Path]:
    """Sorted ``*.geojson`` files directly inside ``directory``."""

    if not directory.is_dir():
        return []
    return sorted(path for path in directory.iterdir() if path.is_file() and path.suffix == GEOJSON_SUFFIX)


def list_city_folders(root: Path) -> list[Path]:
    if not root.is_dir():
        raise FileNotFoundError(f"Zones directory not found: {root}")
    return sorted(path for path in root.iterdir() if path.is_dir())


def zone_name_from_filename(path: Path | str) -> str:
    """``casa-mirador.geojson`` -> ``casa-mirador``."""

    name = Path(path).name
    return name[: -len(GEOJSON_SUFFIX)] if name.endswith(GEOJSON_SUFFIX) else Path(name).stem


def format_display_name(slug: str) -> str:
    """``nuevo-laredo`` -> ``Nuevo Laredo``."""

    return " ".join(word[:1].upper() + word[1:] for word in slug.split("-") if word)


def first_feature(document: dict[str, Any]) -> dict[str, Any]:
    """First feature of a FeatureCollection, a Feature, or a bare geometry wrapped as one."""

    if not isinstance(document, dict):
        raise InvalidGeometry("GeoJSON document must be an object")
    kind = document.get("type")
    if kind == "FeatureCollection":
        features = document.get("features") or []
        if not isinstance(features, list) or not features:
            raise InvalidGeometry("No features found")
        feature = features[0]
        if not isinstance(feature, dict):
            raise InvalidGeometry("Feature must be an object")
        return feature
    if kind == "Feature":
        return document
    return {"type": "Feature", "properties": {}, "geometry": document}


def first_geometry(document: dict[str, Any]) -> dict[str, Any]:
    geometry = first_feature(document).get("geometry")
    if not isinstance(geometry, dict) or not geometry.get("coordinates"):
        raise InvalidGeometry("Invalid geometry")
    return geometry
