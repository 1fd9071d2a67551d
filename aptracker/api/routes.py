"""
API routes for the apartment tracker

Provides REST endpoints for:
- Listing CRUD and contacts
- Walking and transit estimates
- Geocoding
- Statistics, comparison and map data
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response

from aptracker.core.db import Database
from aptracker.core.destinations import Destination
from aptracker.core.models import (
    ContactCreate,
    ContactRead,
    ListingCreate,
    ListingFilters,
    ListingRead,
    ListingStatistics,
    ListingUpdate,
    MapMarker,
    SortKey,
    SortOrder,
)
from aptracker.core.query import ListingQueryService, build_map_markers
from aptracker.core.stats import compute_statistics
from aptracker.travel.client import GeocodingClient, RoutingClient
from aptracker.travel.models import ComparisonEntry, GeocodingResult, TransitEstimate, WalkingEstimate
from aptracker.travel.service import DistanceService

router = APIRouter(prefix="/api")


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_distance_service(request: Request) -> DistanceService:
    routing_client: RoutingClient = request.app.state.routing_client
    return DistanceService(request.app.state.database, routing_client)


def get_geocoding_client(request: Request) -> GeocodingClient:
    return request.app.state.geocoding_client


def parse_ids(raw: str) -> List[int]:
    """Parse a comma separated id list such as '3,1,7'"""
    try:
        ids = [int(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Invalid id list: {raw}")
    if not ids:
        raise HTTPException(status_code=422, detail="At least one id is required")
    return ids


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}


# Listings
@router.get("/listings", response_model=List[ListingRead])
async def list_listings(
    housing_type: Optional[str] = None,
    room_type: Optional[str] = None,
    contacted: Optional[bool] = None,
    replied: Optional[bool] = None,
    parking: Optional[bool] = None,
    location_search: Optional[str] = None,
    min_cost: Optional[int] = Query(None, ge=0),
    max_cost: Optional[int] = Query(None, ge=0),
    max_walking_minutes: Optional[int] = Query(None, ge=1),
    max_transit_minutes: Optional[int] = Query(None, ge=1),
    destination_lat: Optional[float] = Query(None, ge=-90, le=90),
    destination_lng: Optional[float] = Query(None, ge=-180, le=180),
    sort_by: Optional[SortKey] = None,
    sort_order: SortOrder = SortOrder.ASC,
    db: Database = Depends(get_database),
):
    """List listings matching the filters"""
    filters = ListingFilters(
        housing_type=housing_type,
        room_type=room_type,
        contacted=contacted,
        replied=replied,
        parking=parking,
        location_search=location_search,
        min_cost=min_cost,
        max_cost=max_cost,
        max_walking_minutes=max_walking_minutes,
        max_transit_minutes=max_transit_minutes,
        destination_lat=destination_lat,
        destination_lng=destination_lng,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return await ListingQueryService(db).search(filters)


@router.get("/listings/{listing_id}", response_model=ListingRead)
async def get_listing(listing_id: int, db: Database = Depends(get_database)):
    return await db.get_listing(listing_id)


@router.post("/listings", response_model=ListingRead, status_code=201)
async def create_listing(payload: ListingCreate, db: Database = Depends(get_database)):
    return await db.create_listing(payload)


@router.patch("/listings/{listing_id}", response_model=ListingRead)
async def update_listing(
    listing_id: int, payload: ListingUpdate, db: Database = Depends(get_database)
):
    return await db.update_listing(listing_id, payload)


@router.delete("/listings/{listing_id}", status_code=204)
async def delete_listing(listing_id: int, db: Database = Depends(get_database)):
    """Delete a listing; its contacts go with it"""
    await db.delete_listing(listing_id)
    return Response(status_code=204)


# Contacts
@router.post("/listings/{listing_id}/contacts", response_model=ContactRead, status_code=201)
async def add_contact(
    listing_id: int, payload: ContactCreate, db: Database = Depends(get_database)
):
    return await db.add_contact(listing_id, payload)


@router.delete("/contacts/{contact_id}", status_code=204)
async def remove_contact(contact_id: int, db: Database = Depends(get_database)):
    await db.remove_contact(contact_id)
    return Response(status_code=204)


# Travel estimates
@router.get("/listings/{listing_id}/distance", response_model=WalkingEstimate)
async def walking_distance(
    listing_id: int,
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    service: DistanceService = Depends(get_distance_service),
):
    """Walking distance and time to a destination"""
    return await service.walking_estimate(listing_id, lat, lng)


@router.get("/listings/{listing_id}/transit", response_model=TransitEstimate)
async def transit_time(
    listing_id: int,
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    service: DistanceService = Depends(get_distance_service),
):
    """Transit time to a destination, approximate when routing is unavailable"""
    return await service.transit_estimate(listing_id, lat, lng)


@router.get("/geocode", response_model=GeocodingResult)
async def geocode(
    address: str = Query(..., min_length=1),
    client: GeocodingClient = Depends(get_geocoding_client),
):
    return await client.geocode(address)


# Aggregate views
@router.get("/stats", response_model=ListingStatistics)
async def statistics(db: Database = Depends(get_database)):
    """Summary statistics over every listing"""
    return compute_statistics(await db.list_listings())


@router.get("/compare", response_model=List[ComparisonEntry])
async def compare(
    ids: str = Query(..., description="Comma separated listing ids"),
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    name: str = Query("Destination"),
    service: DistanceService = Depends(get_distance_service),
):
    """Listings side by side, with travel estimates when a destination is given"""
    destination = None
    if lat is not None and lng is not None:
        destination = Destination(name=name, lat=lat, lng=lng)
    return await service.compare_listings(parse_ids(ids), destination)


@router.get("/map", response_model=List[MapMarker])
async def map_markers(db: Database = Depends(get_database)):
    """Markers for every listing with coordinates"""
    return build_map_markers(await db.list_listings())
