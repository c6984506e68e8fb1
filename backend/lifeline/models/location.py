import uuid
from enum import Enum as PyEnum
from typing import Optional
from sqlalchemy import Column, Float, Boolean, DateTime, String, Enum, Index, text

from lifeline.database import Base
from lifeline.models.base import PortableUUID as UUID, TimestampMixin, utcnow
from lifeline.services import geo


class PlaceType(str, PyEnum):
    HOME = "home"
    WORK = "work"
    HOSPITAL = "hospital"
    NGO = "ngo"
    PUBLIC = "public"
    OTHER = "other"
    UNKNOWN = "unknown"
    CURRENT = "current"


class LocationProvider(str, PyEnum):
    GPS = "gps"
    NETWORK = "network"
    MANUAL = "manual"
    WIFI = "wifi"
    UNKNOWN = "unknown"


class LocationSource(str, PyEnum):
    APP = "app"
    SOS = "sos"
    BACKGROUND = "background"
    MANUAL = "manual"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Location(TimestampMixin, Base):
    __tablename__ = "locations"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)

    # Owner reference: exactly one is set. Weak references, checked at
    # write time rather than by foreign keys.
    user_id = Column(UUID(), nullable=True)
    helper_id = Column(UUID(), nullable=True)

    # Geographic coordinates
    longitude = Column(Float, nullable=False)
    latitude = Column(Float, nullable=False)
    accuracy = Column(Float, nullable=True)  # meters, 0-10000
    altitude = Column(Float, nullable=True)  # meters above sea level
    altitude_accuracy = Column(Float, nullable=True)

    # Movement
    speed = Column(Float, nullable=True)  # meters per second
    heading = Column(Float, nullable=True)  # degrees (0-360)

    provider = Column(
        Enum(LocationProvider, name="location_provider", values_callable=_enum_values),
        default=LocationProvider.UNKNOWN,
        nullable=False,
    )

    # Address
    address = Column(String(500), nullable=True)
    street = Column(String(200), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    country = Column(String(100), default="India", nullable=True)
    zip_code = Column(String(20), nullable=True)

    # Building/floor information (critical for emergencies)
    building_name = Column(String(200), nullable=True)
    floor = Column(String(20), nullable=True)
    apartment_unit = Column(String(50), nullable=True)
    landmark = Column(String(200), nullable=True)
    emergency_access_notes = Column(String(300), nullable=True)  # "Gate code: 1234"

    place_type = Column(
        Enum(PlaceType, name="place_type", values_callable=_enum_values),
        default=PlaceType.UNKNOWN,
        nullable=False,
    )
    source = Column(
        Enum(LocationSource, name="location_source", values_callable=_enum_values),
        default=LocationSource.APP,
        nullable=False,
    )

    # Status
    is_active = Column(Boolean, default=True, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
    verified_at = Column(DateTime, nullable=True)

    last_updated = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_locations_geo", "latitude", "longitude"),
        Index("idx_locations_user_active", "user_id", "is_active"),
        Index("idx_locations_helper_active", "helper_id", "is_active"),
        Index("idx_locations_city_state", "city", "state"),
        Index("idx_locations_last_updated", "last_updated"),
        # One active location per helper
        Index(
            "uq_locations_active_helper",
            "helper_id",
            unique=True,
            sqlite_where=text("is_active = 1 AND helper_id IS NOT NULL"),
            postgresql_where=text("is_active AND helper_id IS NOT NULL"),
        ),
        # One active "current" location per user
        Index(
            "uq_locations_current_user",
            "user_id",
            unique=True,
            sqlite_where=text("is_active = 1 AND place_type = 'current' AND user_id IS NOT NULL"),
            postgresql_where=text("is_active AND place_type = 'current' AND user_id IS NOT NULL"),
        ),
    )

    def __repr__(self):
        return f"<Location {self.longitude}, {self.latitude} ({self.place_type.value})>"

    @property
    def coordinates(self) -> list[float]:
        """[longitude, latitude], the order every API uses."""
        if self.longitude is None or self.latitude is None:
            return []
        return [self.longitude, self.latitude]

    @property
    def owner_id(self) -> Optional[uuid.UUID]:
        return self.helper_id or self.user_id

    def distance_to(self, other: "Location") -> float:
        """Great-circle distance to another location, in meters."""
        return geo.distance_to(self.coordinates, other.coordinates)
