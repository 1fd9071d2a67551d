"""
Summary statistics over the tracked listings
"""

from collections import Counter
from typing import List

from .geo import round_half_up
from .models import AverageCosts, ListingRead, ListingStatistics


def _percentage(part: int, total: int) -> int:
    if total == 0:
        return 0
    return round_half_up(part / total * 100)


def _average_costs(listings: List[ListingRead]) -> AverageCosts:
    # Only listings with at least one known cost component take part
    with_cost = [
        listing
        for listing in listings
        if listing.rent_cost is not None
        or listing.utilities_cost is not None
        or listing.other_cost is not None
    ]
    if not with_cost:
        return AverageCosts()

    count = len(with_cost)
    rent = round_half_up(sum(listing.rent_cost or 0 for listing in with_cost) / count)
    utilities = round_half_up(sum(listing.utilities_cost or 0 for listing in with_cost) / count)
    other = round_half_up(sum(listing.other_cost or 0 for listing in with_cost) / count)

    return AverageCosts(rent=rent, utilities=utilities, other=other, total=rent + utilities + other)


def compute_statistics(listings: List[ListingRead]) -> ListingStatistics:
    """
    Aggregate counts, rates, average costs and distributions

    Args:
        listings: Every tracked listing

    Returns:
        ListingStatistics, all zeros for an empty list
    """
    total = len(listings)
    contacted = sum(1 for listing in listings if listing.contacted)
    replied = sum(1 for listing in listings if listing.replied)

    return ListingStatistics(
        total=total,
        contacted=contacted,
        replied=replied,
        contacted_percentage=_percentage(contacted, total),
        replied_percentage=_percentage(replied, total),
        average_costs=_average_costs(listings),
        by_neighborhood=dict(Counter(listing.location for listing in listings)),
        by_housing_type=dict(Counter(listing.housing_type for listing in listings)),
        by_room_type=dict(
            Counter(listing.room_type for listing in listings if listing.room_type)
        ),
    )
