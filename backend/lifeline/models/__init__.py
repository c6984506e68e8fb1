from lifeline.models.account import Account, AccountRole
from lifeline.models.user import User
from lifeline.models.helper import Helper
from lifeline.models.location import Location, PlaceType, LocationProvider, LocationSource

__all__ = [
    "Account",
    "AccountRole",
    "User",
    "Helper",
    "Location",
    "PlaceType",
    "LocationProvider",
    "LocationSource",
]
