"""Geospatial nearest-spot resolution."""

from .catalog import load_catalog, parse_catalog_rows, seed_catalog
from .distance import EARTH_RADIUS_KM, haversine_km
from .index import CatalogHolder, GeoIndex, SpotIndex

__all__ = [
    "EARTH_RADIUS_KM",
    "CatalogHolder",
    "GeoIndex",
    "SpotIndex",
    "haversine_km",
    "load_catalog",
    "parse_catalog_rows",
    "seed_catalog",
]
