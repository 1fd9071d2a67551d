"""
Database tables and the async record store for listings and contacts
"""

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import Column, DateTime, ForeignKey, Integer, delete, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import Field, SQLModel, select

from .models import ContactCreate, ContactRead, ListingCreate, ListingRead, ListingUpdate


def utc_now() -> datetime:
    """Naive UTC timestamp for the zone-less DateTime columns"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class RecordNotFoundError(Exception):
    """A referenced record does not exist"""
    pass


class ListingNotFoundError(RecordNotFoundError):
    def __init__(self, listing_id: int):
        self.listing_id = listing_id
        super().__init__(f"Listing {listing_id} not found")


class ContactNotFoundError(RecordNotFoundError):
    def __init__(self, contact_id: int):
        self.contact_id = contact_id
        super().__init__(f"Contact {contact_id} not found")


class Listing(SQLModel, table=True):
    """
    Candidate rental being tracked
    """

    id: Optional[int] = Field(default=None, primary_key=True)

    # Location
    location: str = Field(index=True, description="Neighbourhood or place name")
    address: Optional[str] = Field(None, description="Full address")
    latitude: Optional[float] = Field(None, description="Latitude")
    longitude: Optional[float] = Field(None, description="Longitude")

    # Accommodation
    housing_type: str = Field(index=True, description="Apartment, room, ...")
    room_type: Optional[str] = Field(None, index=True, description="Single, double ...")
    room_count: Optional[int] = Field(None, description="Total rooms in the apartment")

    # Monthly costs in euros
    rent_cost: Optional[int] = Field(None, description="Rent")
    utilities_cost: Optional[int] = Field(None, description="Utilities")
    other_cost: Optional[int] = Field(None, description="Other costs")

    available_from: Optional[str] = Field(None, description="Availability text")
    parking: bool = Field(default=False, description="Has parking")
    reference_url: Optional[str] = Field(None, description="Link to the ad")

    # Status tracking
    contacted: bool = Field(default=False, index=True)
    replied: bool = Field(default=False, index=True)

    notes: Optional[str] = Field(None, description="Free-text notes")

    created_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(DateTime, nullable=False, index=True)
    )
    updated_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(DateTime, nullable=False)
    )


class Contact(SQLModel, table=True):
    """
    Point of contact for a listing
    """

    id: Optional[int] = Field(default=None, primary_key=True)
    listing_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("listing.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    kind: str = Field(description="phone, email or name")
    value: str = Field(description="Contact value")
    created_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(DateTime, nullable=False)
    )


def _to_async_url(database_url: str) -> str:
    if database_url.startswith("sqlite:///"):
        return database_url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return database_url


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Async record store for listings and contacts
    """

    def __init__(self, database_url: str = "sqlite:///aptracker.db"):
        self.database_url = database_url
        self.async_engine = create_async_engine(_to_async_url(database_url), echo=False)
        if self.async_engine.dialect.name == "sqlite":
            event.listen(self.async_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        self.async_session = sessionmaker(
            self.async_engine, class_=AsyncSession, expire_on_commit=False
        )
        self.logger = logging.getLogger(__name__)

    async def create_tables_async(self):
        """Create all database tables"""
        async with self.async_engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        self.logger.info("Database tables created")

    async def _contacts_by_listing(
        self, session: AsyncSession, listing_ids: List[int]
    ) -> Dict[int, List[Contact]]:
        grouped: Dict[int, List[Contact]] = defaultdict(list)
        if not listing_ids:
            return grouped
        result = await session.execute(
            select(Contact).where(Contact.listing_id.in_(listing_ids)).order_by(Contact.id)
        )
        for contact in result.scalars().all():
            grouped[contact.listing_id].append(contact)
        return grouped

    @staticmethod
    def _to_read(listing: Listing, contacts: List[Contact]) -> ListingRead:
        data = listing.model_dump()
        data["contacts"] = [ContactRead.model_validate(c, from_attributes=True) for c in contacts]
        return ListingRead.model_validate(data)

    async def _load_listing(self, session: AsyncSession, listing_id: int) -> Listing:
        listing = await session.get(Listing, listing_id)
        if listing is None:
            raise ListingNotFoundError(listing_id)
        return listing

    async def list_listings(
        self,
        housing_type: Optional[str] = None,
        room_type: Optional[str] = None,
        contacted: Optional[bool] = None,
        replied: Optional[bool] = None,
        parking: Optional[bool] = None,
        location_search: Optional[str] = None,
    ) -> List[ListingRead]:
        """
        Fetch listings matching all given filters, with their contacts

        Args:
            housing_type: Exact housing type
            room_type: Exact room type
            contacted: Contacted flag
            replied: Replied flag
            parking: Parking flag
            location_search: Substring of the location name

        Returns:
            Listings in insertion order
        """
        query = select(Listing)

        if housing_type:
            query = query.where(Listing.housing_type == housing_type)

        if room_type:
            query = query.where(Listing.room_type == room_type)

        if contacted is not None:
            query = query.where(Listing.contacted == contacted)

        if replied is not None:
            query = query.where(Listing.replied == replied)

        if parking is not None:
            query = query.where(Listing.parking == parking)

        if location_search:
            query = query.where(Listing.location.like(f"%{location_search}%"))

        query = query.order_by(Listing.id)

        try:
            async with self.async_session() as session:
                result = await session.execute(query)
                listings = result.scalars().all()
                contacts = await self._contacts_by_listing(
                    session, [listing.id for listing in listings]
                )
                return [self._to_read(listing, contacts.get(listing.id, [])) for listing in listings]
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing listings: {e}")
            raise

    async def get_listing(self, listing_id: int) -> ListingRead:
        """Get one listing with its contacts, raising ListingNotFoundError when absent"""
        async with self.async_session() as session:
            listing = await self._load_listing(session, listing_id)
            contacts = await self._contacts_by_listing(session, [listing_id])
            return self._to_read(listing, contacts.get(listing_id, []))

    async def create_listing(self, payload: ListingCreate) -> ListingRead:
        """Insert a listing and its contacts"""
        try:
            async with self.async_session() as session:
                listing = Listing(**payload.listing_values())
                session.add(listing)
                await session.flush()

                contacts = [
                    Contact(listing_id=listing.id, kind=c.kind.value, value=c.value)
                    for c in payload.contacts
                ]
                session.add_all(contacts)
                await session.commit()

                self.logger.info(f"Created listing {listing.id} ({listing.location})")
                return self._to_read(listing, contacts)
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating listing: {e}")
            raise

    async def update_listing(self, listing_id: int, payload: ListingUpdate) -> ListingRead:
        """
        Apply a partial update

        Args:
            listing_id: Listing to update
            payload: Fields to change; contacts, when given, replace the current set

        Returns:
            The updated listing

        Raises:
            ListingNotFoundError: If the listing does not exist
        """
        async with self.async_session() as session:
            listing = await self._load_listing(session, listing_id)

            for name, value in payload.listing_values().items():
                setattr(listing, name, value)
            listing.updated_at = utc_now()
            session.add(listing)

            if payload.replaces_contacts:
                await session.execute(delete(Contact).where(Contact.listing_id == listing_id))
                session.add_all(
                    Contact(listing_id=listing_id, kind=c.kind.value, value=c.value)
                    for c in payload.contacts
                )

            await session.commit()
            contacts = await self._contacts_by_listing(session, [listing_id])
            self.logger.info(f"Updated listing {listing_id}")
            return self._to_read(listing, contacts.get(listing_id, []))

    async def delete_listing(self, listing_id: int) -> None:
        """Delete a listing together with all of its contacts"""
        async with self.async_session() as session:
            listing = await self._load_listing(session, listing_id)
            await session.execute(delete(Contact).where(Contact.listing_id == listing_id))
            await session.delete(listing)
            await session.commit()
            self.logger.info(f"Deleted listing {listing_id}")

    async def add_contact(self, listing_id: int, payload: ContactCreate) -> ContactRead:
        """Attach one contact to an existing listing"""
        async with self.async_session() as session:
            await self._load_listing(session, listing_id)
            contact = Contact(listing_id=listing_id, kind=payload.kind.value, value=payload.value)
            session.add(contact)
            await session.commit()
            self.logger.info(f"Added {payload.kind.value} contact to listing {listing_id}")
            return ContactRead.model_validate(contact, from_attributes=True)

    async def remove_contact(self, contact_id: int) -> None:
        """Delete one contact, raising ContactNotFoundError when absent"""
        async with self.async_session() as session:
            contact = await session.get(Contact, contact_id)
            if contact is None:
                raise ContactNotFoundError(contact_id)
            await session.delete(contact)
            await session.commit()
            self.logger.info(f"Removed contact {contact_id}")

    async def get_contacts(self, listing_id: int) -> List[ContactRead]:
        """Contacts stored for a listing id, whether or not the listing still exists"""
        async with self.async_session() as session:
            contacts = await self._contacts_by_listing(session, [listing_id])
            return [
                ContactRead.model_validate(c, from_attributes=True)
                for c in contacts.get(listing_id, [])
            ]

    async def close(self):
        """Close database connections"""
        await self.async_engine.dispose()


async def init_db(database_url: str) -> Database:
    """Create the store and its tables; call once at startup"""
    database = Database(database_url)
    await database.create_tables_async()
    return database
