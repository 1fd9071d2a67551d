"""
Core data models, storage and listing queries for aptracker
"""

from .db import (
    Contact,
    ContactNotFoundError,
    Database,
    Listing,
    ListingNotFoundError,
    RecordNotFoundError,
    init_db,
)
from .models import (
    ContactCreate,
    ContactKind,
    ContactRead,
    ListingCreate,
    ListingFilters,
    ListingRead,
    ListingStatistics,
    ListingStatus,
    ListingUpdate,
    MapMarker,
    SortKey,
    SortOrder,
)
from .query import ListingQueryService
from .stats import compute_statistics

__all__ = [
    # Models
    "ContactCreate",
    "ContactKind",
    "ContactRead",
    "ListingCreate",
    "ListingFilters",
    "ListingRead",
    "ListingStatistics",
    "ListingStatus",
    "ListingUpdate",
    "MapMarker",
    "SortKey",
    "SortOrder",
    # Database
    "Database",
    "Listing",
    "Contact",
    "RecordNotFoundError",
    "ListingNotFoundError",
    "ContactNotFoundError",
    "init_db",
    # Queries
    "ListingQueryService",
    "compute_statistics",
]
