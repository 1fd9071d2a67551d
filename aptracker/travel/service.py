"""
Distance estimation between tracked listings and a destination
"""

import logging
from typing import List, Optional

from aptracker.core.db import Database
from aptracker.core.destinations import Destination
from aptracker.core.geo import (
    approximate_transit_minutes,
    distance_to,
    km_to_meters,
    round_half_up,
    routed_transit_minutes,
    walking_minutes,
)
from aptracker.core.models import ListingRead

from .client import RoutingClient
from .models import ComparisonEntry, TransitEstimate, WalkingEstimate

NO_COORDINATES_MESSAGE = "Coordinates not set for listing"


def estimate_walking(listing: ListingRead, lat: float, lng: float) -> WalkingEstimate:
    """Walking estimate from the great-circle distance, no I/O"""
    distance = distance_to(listing, lat, lng)
    if distance is None:
        return WalkingEstimate(listing_id=listing.id, message=NO_COORDINATES_MESSAGE)
    return WalkingEstimate(
        listing_id=listing.id,
        distance_meters=km_to_meters(distance),
        walking_minutes=walking_minutes(distance),
    )


def approximate_transit(listing_id: int, distance_km: float, reason: str) -> TransitEstimate:
    """Fallback transit estimate at the average effective speed"""
    return TransitEstimate(
        listing_id=listing_id,
        transit_minutes=approximate_transit_minutes(distance_km),
        distance_meters=km_to_meters(distance_km),
        message=f"Approximate estimate ({reason})",
        approximate=True,
    )


class DistanceService:
    """
    Walking and transit estimates for listings
    Never raises for external service problems; only a missing listing is an error
    """

    def __init__(self, db: Database, routing_client: Optional[RoutingClient] = None):
        self.db = db
        self.client = routing_client or RoutingClient()
        self.logger = logging.getLogger(__name__)

    async def estimate_transit(self, listing: ListingRead, lat: float, lng: float) -> TransitEstimate:
        """
        Transit estimate for an already loaded listing

        Uses the routing API when configured, otherwise or on failure the
        approximate formula. Both include the boarding buffer.
        """
        distance = distance_to(listing, lat, lng)
        if distance is None:
            return TransitEstimate(listing_id=listing.id, message=NO_COORDINATES_MESSAGE)

        if not self.client.configured:
            return approximate_transit(listing.id, distance, "routing API key not configured")

        route = await self.client.driving_route((listing.latitude, listing.longitude), (lat, lng))
        if not route.success:
            self.logger.info(
                f"Falling back to approximate transit for listing {listing.id}: {route.error_message}"
            )
            return approximate_transit(listing.id, distance, route.error_message or "API error")

        return TransitEstimate(
            listing_id=listing.id,
            transit_minutes=routed_transit_minutes(route.duration_seconds),
            distance_meters=round_half_up(route.distance_meters),
            approximate=False,
        )

    async def walking_estimate(self, listing_id: int, lat: float, lng: float) -> WalkingEstimate:
        """Walking estimate for a stored listing, ListingNotFoundError when absent"""
        listing = await self.db.get_listing(listing_id)
        return estimate_walking(listing, lat, lng)

    async def transit_estimate(self, listing_id: int, lat: float, lng: float) -> TransitEstimate:
        """Transit estimate for a stored listing, ListingNotFoundError when absent"""
        listing = await self.db.get_listing(listing_id)
        return await self.estimate_transit(listing, lat, lng)

    async def compare_listings(
        self, listing_ids: List[int], destination: Optional[Destination] = None
    ) -> List[ComparisonEntry]:
        """
        Side-by-side data for the comparison view

        Args:
            listing_ids: Listings to compare, in display order
            destination: Optional destination for travel estimates

        Returns:
            One entry per id in the given order
        """
        entries = []
        for listing_id in listing_ids:
            listing = await self.db.get_listing(listing_id)
            entry = ComparisonEntry(listing=listing)
            if destination is not None:
                entry.walking = estimate_walking(listing, destination.lat, destination.lng)
                entry.transit = await self.estimate_transit(
                    listing, destination.lat, destination.lng
                )
            entries.append(entry)
        return entries
