"""
aptracker: personal apartment-hunting tracker

Records candidate rentals, their contacts and status, estimates walking and
transit times to a chosen destination and summarises the search.
"""

__version__ = "0.1.0"

from .core.db import Database, init_db
from .core.models import ListingCreate, ListingFilters, ListingRead

__all__ = [
    "ListingCreate",
    "ListingFilters",
    "ListingRead",
    "Database",
    "init_db",
]
