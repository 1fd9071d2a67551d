"""
Travel estimate and geocoding data models
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from aptracker.core.models import ListingRead


class RouteResult(BaseModel):
    """Outcome of a routing API call"""

    success: bool = Field(True, description="Whether a route was obtained")
    duration_seconds: Optional[float] = Field(None, description="Route duration in seconds")
    distance_meters: Optional[float] = Field(None, description="Route length in metres")
    error_message: Optional[str] = Field(None, description="Error message if failed")


class WalkingEstimate(BaseModel):
    """Walking distance and time from a listing to a destination"""

    listing_id: int = Field(description="Listing identifier")
    distance_meters: Optional[int] = Field(None, description="Great-circle distance in metres")
    walking_minutes: Optional[int] = Field(None, description="Walking time in minutes")
    message: Optional[str] = Field(None, description="Why no estimate is available")


class TransitEstimate(BaseModel):
    """Transit time from a listing to a destination"""

    listing_id: int = Field(description="Listing identifier")
    transit_minutes: Optional[int] = Field(None, description="Transit time in minutes")
    distance_meters: Optional[int] = Field(None, description="Distance in metres")
    message: Optional[str] = Field(None, description="Explanation for approximate or missing values")
    approximate: bool = Field(False, description="Derived from the fallback formula")
    calculated_at: datetime = Field(default_factory=datetime.now, description="When calculated")


class GeocodingResult(BaseModel):
    """Result of geocoding an address"""

    query: str = Field(description="Address as entered")
    success: bool = Field(False, description="Whether coordinates were found")
    latitude: Optional[float] = Field(None, description="Latitude")
    longitude: Optional[float] = Field(None, description="Longitude")
    display_name: Optional[str] = Field(None, description="Formatted address from the API")
    message: Optional[str] = Field(None, description="Error or not-found message")


class ComparisonEntry(BaseModel):
    """One column of the comparison view"""

    listing: ListingRead
    walking: Optional[WalkingEstimate] = None
    transit: Optional[TransitEstimate] = None
