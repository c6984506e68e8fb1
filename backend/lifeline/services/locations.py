"""LocationStore: persistence, invariants and proximity search for locations.

Invariants enforced here (backed by partial unique indexes):

* a helper has at most one active location;
* a user has at most one active ``current`` location.

Writes that would create a second such row update the existing one instead.
"""
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Optional, Sequence
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lifeline.exceptions import NotFoundError, ReferentialIntegrityError, ValidationError
from lifeline.models.base import utcnow
from lifeline.models.location import Location, LocationProvider, LocationSource, PlaceType
from lifeline.services import geo
from lifeline.services.helpers import HelperDirectory, HelperProfile
from lifeline.services.identity import IdentityResolver, OwnerRef
from lifeline.services.validation import (
    ADDRESS_FIELDS,
    validate_address,
    validate_coordinates,
    validate_location_fields,
    validate_place_type,
    validate_point,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_DISTANCE_M = 5000
DEFAULT_STALE_MINUTES = 5
CURRENT_LOCATION_ADDRESS = "Current Location"

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 100

SORT_COLUMNS = {
    "createdAt": Location.created_at,
    "created_at": Location.created_at,
    "updatedAt": Location.updated_at,
    "updated_at": Location.updated_at,
    "lastUpdated": Location.last_updated,
    "last_updated": Location.last_updated,
    "placeType": Location.place_type,
    "place_type": Location.place_type,
}


@dataclass
class NearbyLocation:
    location: Location
    distance: float  # meters from the query point


def helper_card(match: NearbyLocation, profile: Optional[HelperProfile]) -> Optional[dict]:
    """Shape a nearby helper location into the card the mobile client renders.

    Returns None for rows that cannot be shown: no joined profile, a helper
    that is not verified and available, or malformed coordinates.
    """
    if profile is None or not profile.is_matchable:
        return None
    coordinates = match.location.coordinates
    if len(coordinates) != 2:
        return None

    longitude, latitude = coordinates
    return {
        "id": str(profile.helper_id),
        "name": profile.name,
        "role": profile.role,
        "degree": profile.degree or "",
        "responseRate": f"{round(profile.response_rate)}%",
        "avatar": profile.avatar or "",
        "verified": profile.is_verified,
        "latitude": latitude,
        "longitude": longitude,
        "phone": profile.phone,
        "distance": geo.format_distance(match.distance),
    }


class LocationStore:
    def __init__(
        self,
        session: AsyncSession,
        helpers: Optional[HelperDirectory] = None,
        identity: Optional[IdentityResolver] = None,
    ):
        self.session = session
        self.helpers = helpers or HelperDirectory(session)
        self.identity = identity or IdentityResolver(session)

    # Pure helpers

    @staticmethod
    def distance_to(a: Sequence[float], b: Sequence[float]) -> float:
        return geo.distance_to(a, b)

    @staticmethod
    def is_stale(
        location: Location,
        threshold_minutes: float = DEFAULT_STALE_MINUTES,
        now: Optional[datetime] = None,
    ) -> bool:
        return geo.is_stale(location.last_updated, threshold_minutes, now=now)

    # Writes

    async def create_location(
        self,
        owner: OwnerRef,
        coordinates: Sequence[float],
        address: str,
        place_type: Optional[Any] = None,
        metadata: Optional[dict] = None,
    ) -> Location:
        """Store a location for a user or helper.

        A helper's existing active location is updated in place, as is a
        user's active ``current`` location.
        """
        longitude, latitude = validate_coordinates(coordinates)
        address = validate_address(address)
        place = validate_place_type(place_type) if place_type is not None else PlaceType.UNKNOWN
        fields = validate_location_fields(metadata)
        await self._check_owner(owner)

        values = {
            **fields,
            "longitude": longitude,
            "latitude": latitude,
            "address": address,
            "place_type": place,
            "last_updated": utcnow(),
        }

        conditions = self._active_match(owner, place)
        if conditions is None:
            location = await self._insert(owner, values)
            logger.info("Location %s created for %s %s", location.id, owner.role.value, owner.owner_id)
            return location

        return await self._upsert(owner, conditions, values, values)

    async def update_current_location(
        self,
        owner_id: UUID,
        coordinates: Sequence[float],
        accuracy: Optional[float] = None,
        provider: Optional[Any] = None,
        altitude: Optional[float] = None,
        altitude_accuracy: Optional[float] = None,
        speed: Optional[float] = None,
        heading: Optional[float] = None,
        source: Optional[Any] = None,
    ) -> Location:
        """Record the latest position fix for the account ``owner_id``."""
        owner = await self.identity.resolve_role(owner_id)
        return await self.record_current_position(
            owner,
            coordinates,
            accuracy=accuracy,
            provider=provider,
            altitude=altitude,
            altitude_accuracy=altitude_accuracy,
            speed=speed,
            heading=heading,
            source=source,
        )

    async def record_current_position(
        self,
        owner: OwnerRef,
        coordinates: Sequence[float],
        **readings: Any,
    ) -> Location:
        longitude, latitude = validate_coordinates(coordinates)
        source = readings.pop("source", None)
        fields = validate_location_fields(readings)
        await self._check_owner(owner)

        # A new fix replaces the previous one entirely
        values = {
            "longitude": longitude,
            "latitude": latitude,
            "accuracy": fields.get("accuracy"),
            "altitude": fields.get("altitude"),
            "altitude_accuracy": fields.get("altitude_accuracy"),
            "speed": fields.get("speed"),
            "heading": fields.get("heading"),
            "provider": fields.get("provider") or LocationProvider.UNKNOWN,
            "last_updated": utcnow(),
        }
        insert_values = {
            **values,
            "place_type": PlaceType.CURRENT,
            "address": CURRENT_LOCATION_ADDRESS,
            "source": validate_location_fields({"source": source}).get("source", LocationSource.APP),
        }

        conditions = self._active_match(owner, PlaceType.CURRENT)
        return await self._upsert(owner, conditions, values, insert_values)

    async def verify(self, location: Location) -> Location:
        """Mark a location verified. Verifying twice just refreshes verified_at."""
        location.is_verified = True
        location.verified_at = utcnow()
        await self.session.flush()
        await self.session.refresh(location)
        return location

    async def verify_location(self, location_id: UUID) -> Location:
        location = await self.get_location(location_id)
        return await self.verify(location)

    async def update_location(self, location_id: UUID, changes: dict) -> Location:
        location = await self.get_location(location_id)
        changes = dict(changes)

        if "coordinates" in changes:
            location.longitude, location.latitude = validate_coordinates(changes.pop("coordinates"))
        if "place_type" in changes:
            location.place_type = validate_place_type(changes.pop("place_type"))
        if "address" in changes:
            changes["address"] = validate_address(changes["address"])

        for field, value in validate_location_fields(changes).items():
            setattr(location, field, value)

        location.last_updated = utcnow()
        return await self._flush_checked(location)

    async def update_address(self, location_id: UUID, address_fields: dict) -> Location:
        unknown = set(address_fields) - set(ADDRESS_FIELDS)
        if unknown:
            raise ValidationError(f"Not address fields: {', '.join(sorted(unknown))}")
        return await self.update_location(location_id, address_fields)

    async def deactivate(self, location_id: UUID) -> Location:
        location = await self.get_location(location_id)
        location.is_active = False
        await self.session.flush()
        await self.session.refresh(location)
        return location

    async def delete_location(self, location_id: UUID) -> bool:
        location = await self.session.get(Location, location_id)
        if location is None:
            return False
        await self.session.delete(location)
        await self.session.flush()
        return True

    # Reads

    async def get_location(self, location_id: UUID) -> Location:
        location = await self.session.get(Location, location_id)
        if location is None:
            raise NotFoundError()
        return location

    async def list_for_owner(self, owner: OwnerRef) -> list[Location]:
        result = await self.session.execute(
            select(Location)
            .where(self._owner_clause(owner))
            .order_by(Location.created_at.desc())
        )
        return list(result.scalars().all())

    async def find_nearby(
        self,
        longitude: float,
        latitude: float,
        max_distance_m: float = DEFAULT_MAX_DISTANCE_M,
        place_types: Optional[Iterable[Any]] = None,
        limit: Optional[int] = None,
        helpers_only: bool = False,
    ) -> list[NearbyLocation]:
        """Active locations within ``max_distance_m`` of a point, nearest first."""
        longitude, latitude = validate_point(longitude, latitude)
        if (
            not isinstance(max_distance_m, (int, float))
            or isinstance(max_distance_m, bool)
            or not math.isfinite(max_distance_m)
            or max_distance_m <= 0
        ):
            raise ValidationError("maxDistance must be greater than 0")

        box = geo.bounding_box(longitude, latitude, max_distance_m)
        query = select(Location).where(
            Location.is_active == True,
            Location.latitude.between(box.min_lat, box.max_lat),
        )
        if box.bounds_longitude:
            query = query.where(Location.longitude.between(box.min_lon, box.max_lon))
        if place_types:
            query = query.where(Location.place_type.in_([validate_place_type(p) for p in place_types]))
        if helpers_only:
            query = query.where(Location.helper_id.is_not(None))

        result = await self.session.execute(query)
        candidates = result.scalars().all()
        origin = (longitude, latitude)

        matches = []
        for location in candidates:
            distance = geo.distance_to(origin, location.coordinates)
            if distance <= max_distance_m:
                matches.append(NearbyLocation(location=location, distance=distance))

        matches.sort(key=lambda match: match.distance)
        logger.debug(
            "Nearby search (%s, %s) r=%sm: %d of %d candidates",
            longitude, latitude, max_distance_m, len(matches), len(candidates),
        )
        return matches[:limit] if limit is not None else matches

    async def find_nearby_helpers(
        self,
        longitude: float,
        latitude: float,
        max_distance_m: float = DEFAULT_MAX_DISTANCE_M,
        limit: Optional[int] = None,
    ) -> list[dict]:
        """Cards for verified, available helpers near a point, nearest first."""
        nearby = await self.find_nearby(longitude, latitude, max_distance_m, helpers_only=True)
        profiles = await self.helpers.profiles_for(match.location.helper_id for match in nearby)

        cards = []
        for match in nearby:
            card = helper_card(match, profiles.get(match.location.helper_id))
            if card is not None:
                cards.append(card)
        return cards[:limit] if limit is not None else cards

    async def search(
        self,
        filters: Optional[dict] = None,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> dict:
        filters = filters or {}
        page = max(page, 1)
        limit = min(max(limit, 1), MAX_LIMIT)

        query = select(Location)
        if filters.get("user_id"):
            query = query.where(Location.user_id == filters["user_id"])
        if filters.get("helper_id"):
            query = query.where(Location.helper_id == filters["helper_id"])
        if filters.get("place_type"):
            query = query.where(Location.place_type == validate_place_type(filters["place_type"]))
        if filters.get("is_verified") is not None:
            query = query.where(Location.is_verified == filters["is_verified"])
        if filters.get("is_active") is not None:
            query = query.where(Location.is_active == filters["is_active"])
        if filters.get("city"):
            query = query.where(Location.city.icontains(filters["city"], autoescape=True))
        if filters.get("country"):
            query = query.where(Location.country.icontains(filters["country"], autoescape=True))

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.session.execute(count_query)).scalar()

        column = SORT_COLUMNS.get(sort_by, Location.created_at)
        order = column.asc() if sort_order == "asc" else column.desc()
        query = query.order_by(order).offset((page - 1) * limit).limit(limit)
        result = await self.session.execute(query)

        return {
            "locations": list(result.scalars().all()),
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit) if total else 0,
            },
        }

    async def stats_for_owner(self, owner: OwnerRef) -> dict:
        locations = await self.list_for_owner(owner)

        place_types: dict[str, int] = {}
        for location in locations:
            key = location.place_type.value
            place_types[key] = place_types.get(key, 0) + 1

        average_accuracy = 0
        if locations:
            total_accuracy = sum(location.accuracy or 0 for location in locations)
            average_accuracy = math.floor(total_accuracy / len(locations) + 0.5)

        return {
            "totalLocations": len(locations),
            "verifiedLocations": sum(1 for location in locations if location.is_verified),
            "locationTypes": place_types,
            "hasCurrentLocation": any(
                location.place_type == PlaceType.CURRENT and location.is_active
                for location in locations
            ),
            "averageAccuracy": average_accuracy,
        }

    # Internals

    async def _check_owner(self, owner: OwnerRef) -> None:
        if owner.helper_id is not None and not await self.helpers.exists(owner.helper_id):
            raise ReferentialIntegrityError.missing_helper(owner.helper_id)

    @staticmethod
    def _owner_clause(owner: OwnerRef):
        if owner.helper_id is not None:
            return Location.helper_id == owner.helper_id
        return Location.user_id == owner.user_id

    @staticmethod
    def _active_match(owner: OwnerRef, place_type: PlaceType) -> Optional[list]:
        """Conditions selecting the row a write must update instead of inserting."""
        if owner.helper_id is not None:
            return [Location.helper_id == owner.helper_id, Location.is_active == True]
        if place_type == PlaceType.CURRENT:
            return [
                Location.user_id == owner.user_id,
                Location.place_type == PlaceType.CURRENT,
                Location.is_active == True,
            ]
        return None

    async def _insert(self, owner: OwnerRef, values: dict) -> Location:
        location = Location(
            user_id=owner.user_id,
            helper_id=owner.helper_id,
            is_active=True,
            **values,
        )
        self.session.add(location)
        await self.session.flush()
        await self.session.refresh(location)
        return location

    async def _update_where(self, conditions: list, values: dict) -> Optional[Location]:
        """Match-and-update in one statement; returns the updated row, if any."""
        result = await self.session.execute(
            update(Location)
            .where(*conditions)
            .values(**values)
            .returning(Location.id)
            .execution_options(synchronize_session=False)
        )
        location_id = result.scalars().first()
        if location_id is None:
            return None
        return await self.session.get(Location, location_id, populate_existing=True)

    async def _upsert(
        self,
        owner: OwnerRef,
        conditions: list,
        values: dict,
        insert_values: dict,
    ) -> Location:
        location = await self._update_where(conditions, values)
        if location is not None:
            return location

        try:
            location = await self._insert(owner, insert_values)
        except IntegrityError:
            # Another request inserted the active row between our update and
            # insert; the unique index rejected ours, so update theirs.
            await self.session.rollback()
            logger.warning("Concurrent location insert for %s %s", owner.role.value, owner.owner_id)
            location = await self._update_where(conditions, values)
            if location is None:
                raise ValidationError("Location could not be stored, please retry")
            return location

        logger.info("Location %s created for %s %s", location.id, owner.role.value, owner.owner_id)
        return location

    async def _flush_checked(self, location: Location) -> Location:
        try:
            await self.session.flush()
        except IntegrityError:
            await self.session.rollback()
            raise ValidationError("Owner already has an active location of this kind") from None
        await self.session.refresh(location)
        return location
