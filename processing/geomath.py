"""
Spherical distance helpers.
"""

import math

EARTH_RADIUS_KM = 6371.0


def great_circle_distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance in km between two points given in degrees."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    # Rounding can push `a` slightly outside [0, 1] for antipodal points
    a = min(1.0, max(0.0, a))
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def segment_midpoint(lat1: float, lon1: float, lat2: float, lon2: float) -> tuple[float, float]:
    """
    Midpoint of a route segment as the mean of its endpoint coordinates.

    Close enough to the great-circle midpoint for the short and medium-haul
    corridors the zone boxes are drawn around; not valid across the antimeridian.
    """
    return (lat1 + lat2) / 2, (lon1 + lon2) / 2
