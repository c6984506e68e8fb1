from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field

from lifeline.models.location import LocationProvider, LocationSource, PlaceType


# Coordinates stay loosely typed here; range checks live in the store so
# HTTP and non-HTTP callers get the same ValidationError.
Coordinates = list[float]


class AddressFields(BaseModel):
    street: Optional[str] = Field(None, max_length=200)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    zip_code: Optional[str] = Field(None, max_length=20)
    building_name: Optional[str] = Field(None, max_length=200)
    floor: Optional[str] = Field(None, max_length=20)
    apartment_unit: Optional[str] = Field(None, max_length=50)
    landmark: Optional[str] = Field(None, max_length=200)
    emergency_access_notes: Optional[str] = None


class PositionReadings(BaseModel):
    accuracy: Optional[float] = None
    altitude: Optional[float] = None
    altitude_accuracy: Optional[float] = None
    speed: Optional[float] = None
    heading: Optional[float] = None
    provider: Optional[LocationProvider] = None


class LocationCreate(AddressFields, PositionReadings):
    coordinates: Coordinates = Field(..., description="[longitude, latitude]")
    address: str = Field(..., max_length=500)
    place_type: Optional[PlaceType] = None
    source: Optional[LocationSource] = None

    def location_fields(self) -> dict:
        return self.model_dump(
            exclude={"coordinates", "address", "place_type"},
            exclude_none=True,
        )


class CurrentLocationUpdate(PositionReadings):
    coordinates: Coordinates = Field(..., description="[longitude, latitude]")
    source: Optional[LocationSource] = None


class LocationUpdate(AddressFields, PositionReadings):
    coordinates: Optional[Coordinates] = None
    address: Optional[str] = Field(None, max_length=500)
    place_type: Optional[PlaceType] = None
    source: Optional[LocationSource] = None


class AddressUpdate(AddressFields):
    address: Optional[str] = Field(None, max_length=500)


class LocationResponse(BaseModel):
    id: UUID
    user_id: Optional[UUID]
    helper_id: Optional[UUID]
    coordinates: list[float]
    longitude: float
    latitude: float
    place_type: PlaceType
    address: Optional[str]
    street: Optional[str]
    city: Optional[str]
    state: Optional[str]
    country: Optional[str]
    zip_code: Optional[str]
    building_name: Optional[str]
    floor: Optional[str]
    apartment_unit: Optional[str]
    landmark: Optional[str]
    emergency_access_notes: Optional[str]
    accuracy: Optional[float]
    altitude: Optional[float]
    altitude_accuracy: Optional[float]
    speed: Optional[float]
    heading: Optional[float]
    provider: LocationProvider
    source: LocationSource
    is_active: bool
    is_verified: bool
    verified_at: Optional[datetime]
    last_updated: datetime
    created_at: datetime
    updated_at: datetime

    # Derived at response time
    is_stale: bool = False
    distance: Optional[float] = None

    model_config = ConfigDict(from_attributes=True)
