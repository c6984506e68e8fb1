from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status, Query

from lifeline.config import get_settings
from lifeline.models.account import Account
from lifeline.models.location import Location, PlaceType
from lifeline.schemas.common import ok
from lifeline.schemas.location import (
    AddressUpdate,
    CurrentLocationUpdate,
    LocationCreate,
    LocationResponse,
    LocationUpdate,
)
from lifeline.services.identity import OwnerRef
from lifeline.services.locations import LocationStore
from lifeline.utils.deps import get_current_account, get_current_owner, get_location_store

settings = get_settings()
router = APIRouter()


def serialize(location: Location, distance: Optional[float] = None) -> dict:
    response = LocationResponse.model_validate(location).model_copy(
        update={
            "is_stale": LocationStore.is_stale(location, settings.location_stale_minutes),
            "distance": round(distance, 1) if distance is not None else None,
        }
    )
    return response.model_dump(mode="json")


def radius_in_meters(radius_km: Optional[float]) -> float:
    """Clamp the client's radius (km) to the configured maximum."""
    radius_km = radius_km or settings.nearby_default_radius_km
    return min(radius_km, settings.nearby_max_radius_km) * 1000


def ensure_owner(location: Location, owner: OwnerRef) -> None:
    if location.owner_id != owner.owner_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to modify this location",
        )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_location(
    data: LocationCreate,
    owner: OwnerRef = Depends(get_current_owner),
    store: LocationStore = Depends(get_location_store),
):
    """Create a location for the calling user or helper.

    A helper has a single active location, so posting again updates it.
    """
    location = await store.create_location(
        owner,
        data.coordinates,
        data.address,
        place_type=data.place_type,
        metadata=data.location_fields(),
    )
    return ok(serialize(location), "Location created successfully")


@router.post("/current")
@router.patch("/current")
async def update_current_location(
    data: CurrentLocationUpdate,
    account: Account = Depends(get_current_account),
    store: LocationStore = Depends(get_location_store),
):
    """Record the caller's latest GPS fix."""
    location = await store.update_current_location(
        account.id,
        data.coordinates,
        accuracy=data.accuracy,
        provider=data.provider,
        altitude=data.altitude,
        altitude_accuracy=data.altitude_accuracy,
        speed=data.speed,
        heading=data.heading,
        source=data.source,
    )
    return ok(serialize(location), "Current location updated successfully")


@router.get("/me/locations")
async def get_my_locations(
    owner: OwnerRef = Depends(get_current_owner),
    store: LocationStore = Depends(get_location_store),
):
    locations = await store.list_for_owner(owner)
    return ok([serialize(location) for location in locations])


@router.get("/me/stats")
async def get_my_location_stats(
    owner: OwnerRef = Depends(get_current_owner),
    store: LocationStore = Depends(get_location_store),
):
    return ok(await store.stats_for_owner(owner))


@router.get("/user/{user_id}")
async def get_user_locations(
    user_id: UUID,
    account: Account = Depends(get_current_account),
    store: LocationStore = Depends(get_location_store),
):
    locations = await store.list_for_owner(OwnerRef.for_user(user_id))
    return ok([serialize(location) for location in locations])


@router.get("/user/{user_id}/stats")
async def get_user_location_stats(
    user_id: UUID,
    account: Account = Depends(get_current_account),
    store: LocationStore = Depends(get_location_store),
):
    return ok(await store.stats_for_owner(OwnerRef.for_user(user_id)))


@router.get("/nearby/search")
async def search_nearby_locations(
    lat: float = Query(...),
    lng: float = Query(...),
    radius: Optional[float] = Query(None, gt=0, description="Search radius in km"),
    place_type: Optional[list[PlaceType]] = Query(None),
    store: LocationStore = Depends(get_location_store),
):
    """Active places near a point (relief centers, hospitals), nearest first."""
    matches = await store.find_nearby(
        lng,
        lat,
        radius_in_meters(radius),
        place_types=place_type,
        limit=settings.nearby_result_limit,
    )
    return ok([serialize(match.location, match.distance) for match in matches])


@router.get("/nearby/helpers")
async def search_nearby_helpers(
    lat: float = Query(...),
    lng: float = Query(...),
    radius: Optional[float] = Query(None, gt=0, description="Search radius in km"),
    store: LocationStore = Depends(get_location_store),
):
    """Verified, available helpers near a point, as cards for the map screen."""
    cards = await store.find_nearby_helpers(
        lng,
        lat,
        radius_in_meters(radius),
        limit=settings.nearby_result_limit,
    )
    return ok(cards)


@router.get("")
async def search_locations(
    user_id: Optional[UUID] = None,
    helper_id: Optional[UUID] = None,
    place_type: Optional[PlaceType] = None,
    verified: Optional[bool] = None,
    active: Optional[bool] = None,
    city: Optional[str] = None,
    country: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    sort_by: str = Query("created_at"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    account: Account = Depends(get_current_account),
    store: LocationStore = Depends(get_location_store),
):
    result = await store.search(
        {
            "user_id": user_id,
            "helper_id": helper_id,
            "place_type": place_type,
            "is_verified": verified,
            "is_active": active,
            "city": city,
            "country": country,
        },
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return ok({
        "locations": [serialize(location) for location in result["locations"]],
        "pagination": result["pagination"],
    })


@router.get("/{location_id}")
async def get_location(
    location_id: UUID,
    account: Account = Depends(get_current_account),
    store: LocationStore = Depends(get_location_store),
):
    return ok(serialize(await store.get_location(location_id)))


@router.put("/{location_id}")
async def update_location(
    location_id: UUID,
    data: LocationUpdate,
    owner: OwnerRef = Depends(get_current_owner),
    store: LocationStore = Depends(get_location_store),
):
    ensure_owner(await store.get_location(location_id), owner)
    location = await store.update_location(location_id, data.model_dump(exclude_unset=True))
    return ok(serialize(location), "Location updated successfully")


@router.patch("/{location_id}/address")
async def update_location_address(
    location_id: UUID,
    data: AddressUpdate,
    owner: OwnerRef = Depends(get_current_owner),
    store: LocationStore = Depends(get_location_store),
):
    ensure_owner(await store.get_location(location_id), owner)
    location = await store.update_address(location_id, data.model_dump(exclude_unset=True))
    return ok(serialize(location), "Location address updated successfully")


@router.patch("/{location_id}/verify")
async def verify_location(
    location_id: UUID,
    account: Account = Depends(get_current_account),
    store: LocationStore = Depends(get_location_store),
):
    location = await store.verify_location(location_id)
    return ok(serialize(location), "Location verified successfully")


@router.patch("/{location_id}/deactivate")
async def deactivate_location(
    location_id: UUID,
    owner: OwnerRef = Depends(get_current_owner),
    store: LocationStore = Depends(get_location_store),
):
    ensure_owner(await store.get_location(location_id), owner)
    location = await store.deactivate(location_id)
    return ok(serialize(location), "Location deactivated successfully")


@router.delete("/{location_id}")
async def delete_location(
    location_id: UUID,
    owner: OwnerRef = Depends(get_current_owner),
    store: LocationStore = Depends(get_location_store),
):
    ensure_owner(await store.get_location(location_id), owner)
    await store.delete_location(location_id)
    return ok(message="Location deleted successfully")
