"""
Travel time estimates and geocoding
"""

from .client import GeocodingClient, RoutingClient
from .models import ComparisonEntry, GeocodingResult, TransitEstimate, WalkingEstimate
from .service import DistanceService, estimate_walking

__all__ = [
    "RoutingClient",
    "GeocodingClient",
    "DistanceService",
    "estimate_walking",
    "ComparisonEntry",
    "GeocodingResult",
    "TransitEstimate",
    "WalkingEstimate",
]
