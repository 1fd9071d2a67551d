"""
Tests for the listing query pipeline
"""

from datetime import datetime

import pytest

from aptracker.core.models import ListingCreate, ListingFilters, ListingStatus, SortKey, SortOrder
from aptracker.core.query import (
    ListingQueryService,
    apply_pipeline,
    build_map_markers,
    build_predicates,
    cost_range_predicate,
    sort_listings,
    transit_bound_predicate,
    walking_bound_predicate,
)

DEST_LAT, DEST_LNG = 46.0679, 11.1211


@pytest.fixture
def cost_listings(listing_factory):
    """Listings whose totals are 250, 300, 350 and 450"""
    return [
        listing_factory(1, rent_cost=250),
        listing_factory(2, rent_cost=250, utilities_cost=50),
        listing_factory(3, rent_cost=300, other_cost=50),
        listing_factory(4, rent_cost=400, utilities_cost=30, other_cost=20),
    ]


class TestCostRange:
    """Test the total cost predicate"""

    def test_example_range(self, cost_listings):
        result = apply_pipeline(cost_listings, ListingFilters(min_cost=300, max_cost=400))
        assert [listing.id for listing in result] == [2, 3]

    def test_bounds_inclusive(self, cost_listings):
        predicate = cost_range_predicate(300, 350)
        assert [l.id for l in cost_listings if predicate(l)] == [2, 3]

    def test_idempotent(self, cost_listings):
        filters = ListingFilters(min_cost=300, max_cost=400)
        once = apply_pipeline(cost_listings, filters)
        twice = apply_pipeline(once, filters)
        assert [l.id for l in once] == [l.id for l in twice]

    def test_missing_costs_count_as_zero(self, listing_factory):
        listings = [listing_factory(1), listing_factory(2, rent_cost=10)]
        result = apply_pipeline(listings, ListingFilters(max_cost=0))
        assert [l.id for l in result] == [1]

    def test_only_min(self, cost_listings):
        result = apply_pipeline(cost_listings, ListingFilters(min_cost=350))
        assert [l.id for l in result] == [3, 4]


class TestDistanceBounds:
    """Test walking and transit bounds"""

    def test_walking_bound(self, listing_factory):
        near = listing_factory(1, latitude=46.0700, longitude=11.1200)  # ~3 min
        far = listing_factory(2, latitude=46.1000, longitude=11.1200)   # ~46 min
        predicate = walking_bound_predicate(DEST_LAT, DEST_LNG, 10)
        assert predicate(near) is True
        assert predicate(far) is False

    def test_listing_without_coordinates_excluded(self, listing_factory):
        predicate = walking_bound_predicate(DEST_LAT, DEST_LNG, 1000)
        assert predicate(listing_factory(1)) is False
        transit = transit_bound_predicate(DEST_LAT, DEST_LNG, 1000)
        assert transit(listing_factory(1)) is False

    def test_transit_bound_uses_buffer(self, listing_factory):
        same_place = listing_factory(1, latitude=DEST_LAT, longitude=DEST_LNG)
        assert transit_bound_predicate(DEST_LAT, DEST_LNG, 5)(same_place) is True
        assert transit_bound_predicate(DEST_LAT, DEST_LNG, 4)(same_place) is False

    def test_uncoordinated_kept_without_distance_filter(self, listing_factory):
        listings = [listing_factory(1), listing_factory(2, latitude=46.07, longitude=11.12)]
        filters = ListingFilters(destination_lat=DEST_LAT, destination_lng=DEST_LNG)
        assert len(apply_pipeline(listings, filters)) == 2

    def test_bound_ignored_without_destination(self, listing_factory):
        filters = ListingFilters(max_walking_minutes=5)
        assert build_predicates(filters) == []
        assert len(apply_pipeline([listing_factory(1)], filters)) == 1

    def test_pipeline_applies_all_predicates(self, listing_factory):
        filters = ListingFilters(
            min_cost=100,
            max_walking_minutes=10,
            max_transit_minutes=30,
            destination_lat=DEST_LAT,
            destination_lng=DEST_LNG,
        )
        assert len(build_predicates(filters)) == 3


class TestSorting:
    """Test stable sorting"""

    def test_sort_by_cost(self, cost_listings):
        shuffled = [cost_listings[2], cost_listings[0], cost_listings[3], cost_listings[1]]
        result = sort_listings(shuffled, SortKey.COST)
        assert [l.id for l in result] == [1, 2, 3, 4]

    def test_opposite_orders_are_reverse(self, cost_listings):
        asc = sort_listings(cost_listings, SortKey.COST, SortOrder.ASC)
        desc = sort_listings(cost_listings, SortKey.COST, SortOrder.DESC)
        assert [l.id for l in desc] == [l.id for l in reversed(asc)]

    def test_ties_keep_original_order(self, listing_factory):
        listings = [
            listing_factory(1, rent_cost=300),
            listing_factory(2, rent_cost=200),
            listing_factory(3, rent_cost=300),
            listing_factory(4, rent_cost=300),
        ]
        asc = sort_listings(listings, SortKey.COST, SortOrder.ASC)
        desc = sort_listings(listings, SortKey.COST, SortOrder.DESC)
        assert [l.id for l in asc] == [2, 1, 3, 4]
        assert [l.id for l in desc] == [1, 3, 4, 2]

    def test_sort_by_location_ignores_case(self, listing_factory):
        listings = [
            listing_factory(1, location="povo"),
            listing_factory(2, location="Centro"),
            listing_factory(3, location="Bolghera"),
        ]
        result = sort_listings(listings, SortKey.LOCATION)
        assert [l.location for l in result] == ["Bolghera", "Centro", "povo"]

    def test_sort_by_created_at(self, listing_factory):
        listings = [
            listing_factory(1, created_at=datetime(2024, 3, 1)),
            listing_factory(2, created_at=datetime(2024, 1, 1)),
            listing_factory(3, created_at=datetime(2024, 2, 1)),
        ]
        result = sort_listings(listings, SortKey.CREATED_AT, SortOrder.DESC)
        assert [l.id for l in result] == [1, 3, 2]

    def test_sort_by_available_from(self, listing_factory):
        listings = [
            listing_factory(1, available_from="2024-10"),
            listing_factory(2),
            listing_factory(3, available_from="2024-09"),
        ]
        result = sort_listings(listings, SortKey.AVAILABLE_FROM)
        assert [l.id for l in result] == [2, 3, 1]

    def test_no_sort_key_keeps_order(self, cost_listings):
        reordered = list(reversed(cost_listings))
        assert sort_listings(reordered, None) == reordered


class TestMapMarkers:
    """Test map marker projection"""

    def test_only_coordinated_listings(self, listing_factory):
        listings = [
            listing_factory(1, latitude=46.07, longitude=11.12, replied=True, rent_cost=300),
            listing_factory(2),
        ]
        markers = build_map_markers(listings)
        assert len(markers) == 1
        assert markers[0].id == 1
        assert markers[0].status == ListingStatus.REPLIED
        assert markers[0].total_cost == 300


class TestListingQueryService:
    """Test searches against the database"""

    @pytest.fixture
    async def populated(self, database):
        payloads = [
            ListingCreate(location="Centro", housing_type="Stanza", room_type="Singola",
                          rent_cost=300, contacted=True, latitude=46.0700, longitude=11.1200),
            ListingCreate(location="Povo", housing_type="Appartamento", rent_cost=700,
                          parking=True),
            ListingCreate(location="Centro Nord", housing_type="Stanza", room_type="Doppia",
                          rent_cost=220, utilities_cost=40),
        ]
        for payload in payloads:
            await database.create_listing(payload)
        return database

    @pytest.mark.asyncio
    async def test_empty_filters_return_all(self, populated):
        result = await ListingQueryService(populated).search()
        assert [l.location for l in result] == ["Centro", "Povo", "Centro Nord"]

    @pytest.mark.asyncio
    async def test_equality_and_substring_filters(self, populated):
        service = ListingQueryService(populated)

        rooms = await service.search(ListingFilters(housing_type="Stanza"))
        assert {l.location for l in rooms} == {"Centro", "Centro Nord"}

        centro = await service.search(ListingFilters(location_search="Centro"))
        assert len(centro) == 2

        parked = await service.search(ListingFilters(parking=True))
        assert [l.location for l in parked] == ["Povo"]

        not_contacted = await service.search(ListingFilters(contacted=False))
        assert {l.location for l in not_contacted} == {"Povo", "Centro Nord"}

    @pytest.mark.asyncio
    async def test_cost_filter_and_sort(self, populated):
        filters = ListingFilters(max_cost=500, sort_by=SortKey.COST, sort_order=SortOrder.DESC)
        result = await ListingQueryService(populated).search(filters)
        assert [l.total_cost for l in result] == [300, 260]

    @pytest.mark.asyncio
    async def test_walking_filter_drops_uncoordinated(self, populated):
        filters = ListingFilters(
            max_walking_minutes=30, destination_lat=DEST_LAT, destination_lng=DEST_LNG
        )
        result = await ListingQueryService(populated).search(filters)
        assert [l.location for l in result] == ["Centro"]
