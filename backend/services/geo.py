"""
Distance helpers for location features.
Great-circle distances to central London and to a fixed set of tube stations.
"""
import math
from typing import Dict, Optional, Tuple

EARTH_RADIUS_KM = 6371.0

# Charing Cross; also the fallback location when a listing has no coordinates
CITY_CENTER: Tuple[float, float] = (51.5074, -0.1278)

# Stations used when the model was trained (lat, lon)
TUBE_STATIONS: Dict[str, Tuple[float, float]] = {
    "South Kensington": (51.4941, -0.1738),
    "Sloane Square": (51.4924, -0.1565),
    "Knightsbridge": (51.5015, -0.1607),
    "Hyde Park Corner": (51.5027, -0.1527),
    "Green Park": (51.5067, -0.1428),
    "Bond Street": (51.5142, -0.1494),
    "Notting Hill Gate": (51.5094, -0.1967),
    "High Street Kensington": (51.5009, -0.1925),
    "Earls Court": (51.4914, -0.1934),
    "Gloucester Road": (51.4945, -0.1829),
    "St Johns Wood": (51.5347, -0.1740),
    "Hampstead": (51.5566, -0.1780),
    "Baker Street": (51.5226, -0.1571),
    "Victoria": (51.4965, -0.1447),
    "Westminster": (51.5014, -0.1248),
    "Paddington": (51.5154, -0.1755),
    "Canary Wharf": (51.5033, -0.0181),
}


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate distance between two points using Haversine formula (returns km)"""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)

    a = math.sin(d_lat / 2) ** 2 + \
        math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2

    return EARTH_RADIUS_KM * 2 * math.asin(math.sqrt(a))


def _usable(value: Optional[float]) -> bool:
    # 0.0 is never a real London coordinate; scrapers emit it for "unknown"
    if value is None:
        return False
    try:
        value = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(value) and value != 0.0


def resolve_coordinates(lat: Optional[float], lon: Optional[float]) -> Tuple[float, float]:
    """
    Return usable (lat, lon), replacing each missing coordinate independently
    with the city centre.
    """
    lat_val = float(lat) if _usable(lat) else CITY_CENTER[0]
    lon_val = float(lon) if _usable(lon) else CITY_CENTER[1]
    return lat_val, lon_val


def nearest_landmark_km(
    lat: float,
    lon: float,
    registry: Dict[str, Tuple[float, float]] = TUBE_STATIONS
) -> float:
    """Distance in km to the closest landmark in the registry."""
    return min(
        haversine_km(lat, lon, s_lat, s_lon)
        for s_lat, s_lon in registry.values()
    )


def center_distance_km(lat: float, lon: float) -> float:
    """Distance in km to the city centre."""
    return haversine_km(lat, lon, CITY_CENTER[0], CITY_CENTER[1])
