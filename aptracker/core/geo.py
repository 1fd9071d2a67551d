"""
Great-circle distance and travel time approximations
"""

import math
from typing import Any, Optional

EARTH_RADIUS_KM = 6371.0
WALKING_SPEED_KMH = 5.0
TRANSIT_SPEED_KMH = 30.0  # average effective speed including stops
TRANSIT_BUFFER_MINUTES = 5  # boarding and walking to the stop


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives"""
    return int(math.floor(value + 0.5))


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Great-circle distance between two points

    Args:
        lat1, lng1: First point in decimal degrees
        lat2, lng2: Second point in decimal degrees

    Returns:
        Distance in kilometres
    """
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def km_to_meters(distance_km: float) -> int:
    return round_half_up(distance_km * 1000)


def walking_minutes(distance_km: float) -> int:
    """Walking time at a constant 5 km/h"""
    return round_half_up(distance_km / WALKING_SPEED_KMH * 60)


def approximate_transit_minutes(distance_km: float) -> int:
    """Transit time at 30 km/h plus the boarding buffer"""
    return round_half_up(distance_km / TRANSIT_SPEED_KMH * 60) + TRANSIT_BUFFER_MINUTES


def routed_transit_minutes(duration_seconds: float) -> int:
    """Transit time from a routed duration plus the boarding buffer"""
    return round_half_up(duration_seconds / 60) + TRANSIT_BUFFER_MINUTES


def has_coordinates(item: Any) -> bool:
    """True when an object carries both latitude and longitude"""
    return (
        getattr(item, "latitude", None) is not None
        and getattr(item, "longitude", None) is not None
    )


def distance_to(item: Any, lat: float, lng: float) -> Optional[float]:
    """Distance in km from a listing-like object to a point, None without coordinates"""
    if not has_coordinates(item):
        return None
    return haversine_km(item.latitude, item.longitude, lat, lng)
