"""Great-circle distance on a spherical Earth."""

from __future__ import annotations

import math

from ..models import Coordinate

EARTH_RADIUS_KM = 6371.0


def haversine_km(origin: Coordinate, target: Coordinate) -> float:
    """Return the haversine distance between two coordinates in kilometres."""
    lat1 = math.radians(origin.latitude)
    lat2 = math.radians(target.latitude)
    d_lat = lat2 - lat1
    d_lon = math.radians(target.longitude - origin.longitude)

    a = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    # Clamp guards against a > 1 from float rounding on antipodal points.
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(1.0, a)))
