"""
Shared fixtures for aptracker tests
"""

from datetime import datetime

import pytest

from aptracker.core.db import Database
from aptracker.core.models import ContactCreate, ContactKind, ListingCreate, ListingRead


@pytest.fixture(autouse=True)
def no_api_keys(monkeypatch):
    """Keep real credentials from the environment out of tests"""
    monkeypatch.delenv("OPENROUTESERVICE_API_KEY", raising=False)
    monkeypatch.delenv("GEOAPIFY_API_KEY", raising=False)


@pytest.fixture
async def database(tmp_path):
    """Empty database in a temporary directory"""
    db = Database(f"sqlite:///{tmp_path / 'test_aptracker.db'}")
    await db.create_tables_async()
    yield db
    await db.close()


@pytest.fixture
def sample_payload():
    """Listing payload with contacts"""
    return ListingCreate(
        location="Centro Storico",
        address="Via Belenzani 12, Trento",
        latitude=46.0700,
        longitude=11.1200,
        housing_type="Stanza",
        room_type="Singola",
        room_count=4,
        rent_cost=350,
        utilities_cost=50,
        other_cost=20,
        available_from="September",
        parking=False,
        reference_url="https://www.example.com/ads/1234",
        notes="Close to the university",
        contacts=[
            ContactCreate(kind=ContactKind.PHONE, value="+39 333 1234567"),
            ContactCreate(kind=ContactKind.NAME, value="Maria"),
        ],
    )


def make_listing(listing_id: int, **overrides) -> ListingRead:
    """In-memory listing for pipeline tests"""
    values = {
        "id": listing_id,
        "location": f"Location {listing_id}",
        "housing_type": "Appartamento",
        "created_at": datetime(2024, 1, listing_id),
    }
    values.update(overrides)
    return ListingRead(**values)


@pytest.fixture
def listing_factory():
    """Factory for in-memory ListingRead objects"""
    return make_listing
