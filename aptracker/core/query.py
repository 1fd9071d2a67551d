"""
Listing query pipeline
Simple filters run in the database; cost range, distance bounds and sorting
run in memory over the fetched rows as a sequence of small functions.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from .db import Database
from .geo import approximate_transit_minutes, distance_to, walking_minutes
from .models import ListingFilters, ListingRead, MapMarker, SortKey, SortOrder, total_cost

Predicate = Callable[[ListingRead], bool]


def cost_range_predicate(min_cost: Optional[int], max_cost: Optional[int]) -> Predicate:
    """Keep listings whose total cost lies in [min_cost, max_cost], bounds inclusive"""

    def predicate(listing: ListingRead) -> bool:
        cost = total_cost(listing)
        if min_cost is not None and cost < min_cost:
            return False
        if max_cost is not None and cost > max_cost:
            return False
        return True

    return predicate


def walking_bound_predicate(lat: float, lng: float, max_minutes: int) -> Predicate:
    """Keep coordinated listings within max_minutes walking of (lat, lng)"""

    def predicate(listing: ListingRead) -> bool:
        distance = distance_to(listing, lat, lng)
        if distance is None:
            return False
        return walking_minutes(distance) <= max_minutes

    return predicate


def transit_bound_predicate(lat: float, lng: float, max_minutes: int) -> Predicate:
    """Keep coordinated listings within max_minutes approximate transit of (lat, lng)"""

    def predicate(listing: ListingRead) -> bool:
        distance = distance_to(listing, lat, lng)
        if distance is None:
            return False
        return approximate_transit_minutes(distance) <= max_minutes

    return predicate


def build_predicates(filters: ListingFilters) -> List[Predicate]:
    """In-memory predicates implied by a set of filters, in evaluation order"""
    predicates: List[Predicate] = []

    if filters.min_cost is not None or filters.max_cost is not None:
        predicates.append(cost_range_predicate(filters.min_cost, filters.max_cost))

    if filters.has_destination:
        if filters.max_walking_minutes is not None:
            predicates.append(
                walking_bound_predicate(
                    filters.destination_lat, filters.destination_lng, filters.max_walking_minutes
                )
            )
        if filters.max_transit_minutes is not None:
            predicates.append(
                transit_bound_predicate(
                    filters.destination_lat, filters.destination_lng, filters.max_transit_minutes
                )
            )

    return predicates


SORT_KEYS = {
    SortKey.COST: total_cost,
    SortKey.LOCATION: lambda listing: listing.location.casefold(),
    SortKey.CREATED_AT: lambda listing: listing.created_at or datetime.min,
    SortKey.AVAILABLE_FROM: lambda listing: (listing.available_from or "").casefold(),
}


def sort_listings(
    listings: List[ListingRead],
    sort_by: Optional[SortKey],
    sort_order: SortOrder = SortOrder.ASC,
) -> List[ListingRead]:
    """
    Stable sort by the given key

    Listings with equal keys keep their incoming order in both directions.
    Without a key the incoming order is returned unchanged.
    """
    if sort_by is None:
        return list(listings)
    return sorted(listings, key=SORT_KEYS[sort_by], reverse=sort_order == SortOrder.DESC)


def apply_pipeline(listings: List[ListingRead], filters: ListingFilters) -> List[ListingRead]:
    """Run the in-memory filters and the sort over already fetched listings"""
    result = list(listings)
    for predicate in build_predicates(filters):
        result = [listing for listing in result if predicate(listing)]
    return sort_listings(result, filters.sort_by, filters.sort_order)


def build_map_markers(listings: List[ListingRead]) -> List[MapMarker]:
    """Markers for every listing that can be placed on the map"""
    return [
        MapMarker(
            id=listing.id,
            display_name=listing.display_name,
            latitude=listing.latitude,
            longitude=listing.longitude,
            status=listing.status,
            total_cost=listing.total_cost,
        )
        for listing in listings
        if listing.latitude is not None and listing.longitude is not None
    ]


class ListingQueryService:
    """Answers listing searches against the record store"""

    def __init__(self, db: Database):
        self.db = db
        self.logger = logging.getLogger(__name__)

    async def search(self, filters: Optional[ListingFilters] = None) -> List[ListingRead]:
        """
        Listings matching the filters, ordered as requested

        Args:
            filters: Search criteria, None returns every listing

        Returns:
            Matching listings with contacts
        """
        filters = filters or ListingFilters()

        if (
            filters.max_walking_minutes is not None or filters.max_transit_minutes is not None
        ) and not filters.has_destination:
            self.logger.debug("Distance bound given without destination, ignoring it")

        rows = await self.db.list_listings(**filters.store_filters())
        result = apply_pipeline(rows, filters)
        self.logger.debug(f"Listing search matched {len(result)}/{len(rows)} rows")
        return result
