"""
Core data models for apartment listings and their contacts
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)


class ContactKind(str, Enum):
    """Kinds of contact details attached to a listing"""

    PHONE = "phone"
    EMAIL = "email"
    NAME = "name"


class ListingStatus(str, Enum):
    """Progress of the conversation with the landlord"""

    NEW = "new"
    CONTACTED = "contacted"
    REPLIED = "replied"


class SortKey(str, Enum):
    """Listing sort keys"""

    COST = "cost"
    LOCATION = "location"
    CREATED_AT = "created_at"
    AVAILABLE_FROM = "available_from"


class SortOrder(str, Enum):
    """Sort direction"""

    ASC = "asc"
    DESC = "desc"


def total_cost(item: Any) -> int:
    """Sum of rent, utilities and other costs, missing components count as zero"""
    return (
        (getattr(item, "rent_cost", None) or 0)
        + (getattr(item, "utilities_cost", None) or 0)
        + (getattr(item, "other_cost", None) or 0)
    )


def _validate_reference_url(v):
    if v is None:
        return None
    v = str(v).strip()
    if v == "":
        return None
    if not (v.startswith("http://") or v.startswith("https://")):
        raise ValueError("reference_url must be an http(s) URL")
    return v


class ContactCreate(BaseModel):
    """Contact payload for create/update requests"""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    kind: ContactKind = Field(..., description="phone, email or name")
    value: str = Field(..., min_length=1, description="Contact value")


class ContactRead(BaseModel):
    """Stored contact"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    listing_id: int
    kind: ContactKind
    value: str
    created_at: Optional[datetime] = None


class ListingCreate(BaseModel):
    """
    Payload for creating a listing
    Costs are whole euros per month
    """

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    # Location
    location: str = Field(..., min_length=1, description="Neighbourhood or place name")
    address: Optional[str] = Field(None, description="Full address used for geocoding")
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    # Accommodation
    housing_type: str = Field(..., min_length=1, description="Apartment, room, ...")
    room_type: Optional[str] = Field(None, description="Single, double (shared) ...")
    room_count: Optional[int] = Field(None, gt=0, description="Total rooms in the apartment")

    # Costs
    rent_cost: Optional[int] = Field(None, ge=0, description="Monthly rent")
    utilities_cost: Optional[int] = Field(None, ge=0, description="Monthly utilities")
    other_cost: Optional[int] = Field(None, ge=0, description="Condo fees and other costs")

    # Availability
    available_from: Optional[str] = Field(None, description="Date or free-text availability")
    parking: bool = Field(False, description="Has a parking space")

    reference_url: Optional[str] = Field(None, description="Link to the original ad")

    # Status tracking
    contacted: bool = False
    replied: bool = False

    notes: Optional[str] = None

    contacts: List[ContactCreate] = Field(default_factory=list)

    @field_validator("reference_url", mode="before")
    @classmethod
    def validate_reference_url(cls, v):
        return _validate_reference_url(v)

    @field_validator("address", "room_type", "available_from", "notes", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        """Store empty optional text as null"""
        if isinstance(v, str) and v.strip() == "":
            return None
        return v

    def listing_values(self) -> Dict[str, Any]:
        """Column values without the nested contacts"""
        return self.model_dump(exclude={"contacts"})


class ListingUpdate(BaseModel):
    """
    Partial update payload
    Only fields present in the request are written. Empty strings clear a field.
    When contacts is present it replaces the whole contact set.
    """

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    location: Optional[str] = Field(None, min_length=1)
    address: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    housing_type: Optional[str] = Field(None, min_length=1)
    room_type: Optional[str] = None
    room_count: Optional[int] = Field(None, gt=0)
    rent_cost: Optional[int] = Field(None, ge=0)
    utilities_cost: Optional[int] = Field(None, ge=0)
    other_cost: Optional[int] = Field(None, ge=0)
    available_from: Optional[str] = None
    parking: Optional[bool] = None
    reference_url: Optional[str] = None
    contacted: Optional[bool] = None
    replied: Optional[bool] = None
    notes: Optional[str] = None
    contacts: Optional[List[ContactCreate]] = None

    @field_validator("reference_url", mode="before")
    @classmethod
    def validate_reference_url(cls, v):
        return _validate_reference_url(v)

    @model_validator(mode="after")
    def required_fields_not_cleared(self):
        for name in ("location", "housing_type", "parking", "contacted", "replied"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def listing_values(self) -> Dict[str, Any]:
        """Explicitly provided column values, empty strings mapped to null"""
        values = {}
        for name in self.model_fields_set:
            if name == "contacts":
                continue
            value = getattr(self, name)
            values[name] = None if value == "" else value
        return values

    @property
    def replaces_contacts(self) -> bool:
        return "contacts" in self.model_fields_set and self.contacts is not None


class ListingRead(BaseModel):
    """Stored listing with its contacts and derived display values"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    location: str
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    housing_type: str
    room_type: Optional[str] = None
    room_count: Optional[int] = None
    rent_cost: Optional[int] = None
    utilities_cost: Optional[int] = None
    other_cost: Optional[int] = None
    available_from: Optional[str] = None
    parking: bool = False
    reference_url: Optional[str] = None
    contacted: bool = False
    replied: bool = False
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    contacts: List[ContactRead] = Field(default_factory=list)

    @computed_field
    @property
    def total_cost(self) -> int:
        return total_cost(self)

    @computed_field
    @property
    def roommates(self) -> Optional[int]:
        # Display only, nothing ties this to the contact records
        if self.room_count is None:
            return None
        return self.room_count - 1

    @computed_field
    @property
    def status(self) -> ListingStatus:
        if self.replied:
            return ListingStatus.REPLIED
        if self.contacted:
            return ListingStatus.CONTACTED
        return ListingStatus.NEW

    @computed_field
    @property
    def display_name(self) -> str:
        return self.address or self.location


class ListingFilters(BaseModel):
    """Criteria accepted by the listing query"""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    # Pushed down to the store
    housing_type: Optional[str] = None
    room_type: Optional[str] = None
    contacted: Optional[bool] = None
    replied: Optional[bool] = None
    parking: Optional[bool] = None
    location_search: Optional[str] = None

    # Evaluated in memory
    min_cost: Optional[int] = Field(None, ge=0)
    max_cost: Optional[int] = Field(None, ge=0)
    max_walking_minutes: Optional[int] = Field(None, ge=1)
    max_transit_minutes: Optional[int] = Field(None, ge=1)
    destination_lat: Optional[float] = Field(None, ge=-90, le=90)
    destination_lng: Optional[float] = Field(None, ge=-180, le=180)

    sort_by: Optional[SortKey] = None
    sort_order: SortOrder = SortOrder.ASC

    @field_validator("housing_type", "room_type", "location_search", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and v.strip() == "":
            return None
        return v

    @property
    def has_destination(self) -> bool:
        return self.destination_lat is not None and self.destination_lng is not None

    def store_filters(self) -> Dict[str, Any]:
        """Equality and substring filters for the database query"""
        return {
            "housing_type": self.housing_type,
            "room_type": self.room_type,
            "contacted": self.contacted,
            "replied": self.replied,
            "parking": self.parking,
            "location_search": self.location_search,
        }


class MapMarker(BaseModel):
    """Pin data for the map view"""

    id: int
    display_name: str
    latitude: float
    longitude: float
    status: ListingStatus
    total_cost: int


class AverageCosts(BaseModel):
    rent: int = 0
    utilities: int = 0
    other: int = 0
    total: int = 0


class ListingStatistics(BaseModel):
    """Aggregate numbers for the statistics view"""

    total: int = 0
    contacted: int = 0
    replied: int = 0
    contacted_percentage: int = 0
    replied_percentage: int = 0
    average_costs: AverageCosts = Field(default_factory=AverageCosts)
    by_neighborhood: Dict[str, int] = Field(default_factory=dict)
    by_housing_type: Dict[str, int] = Field(default_factory=dict)
    by_room_type: Dict[str, int] = Field(default_factory=dict)
