"""Field validators for Location writes.

Each validator returns the normalized value or raises ValidationError, so
the store can run them all before touching the database.
"""
import math
from enum import Enum
from numbers import Real
from typing import Any, Optional, Type

from lifeline.exceptions import ValidationError
from lifeline.models.location import LocationProvider, LocationSource, PlaceType

MIN_LONGITUDE, MAX_LONGITUDE = -180.0, 180.0
MIN_LATITUDE, MAX_LATITUDE = -90.0, 90.0
MAX_ACCURACY_M = 10_000
MAX_ACCESS_NOTES = 300

INVALID_COORDINATES = "Invalid coordinates. Format: [longitude, latitude]"

ADDRESS_FIELDS = (
    "address",
    "street",
    "city",
    "state",
    "country",
    "zip_code",
    "building_name",
    "floor",
    "apartment_unit",
    "landmark",
    "emergency_access_notes",
)

READING_FIELDS = (
    "accuracy",
    "altitude",
    "altitude_accuracy",
    "speed",
    "heading",
    "provider",
)

METADATA_FIELDS = ADDRESS_FIELDS + READING_FIELDS + ("source",)


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def validate_coordinates(coordinates: Any) -> tuple[float, float]:
    """Check a [longitude, latitude] pair and return it as floats."""
    if coordinates is None or isinstance(coordinates, (str, bytes)):
        raise ValidationError(INVALID_COORDINATES)
    try:
        values = list(coordinates)
    except TypeError:
        raise ValidationError(INVALID_COORDINATES) from None

    if len(values) != 2 or not all(_is_number(v) for v in values):
        raise ValidationError(INVALID_COORDINATES)

    longitude, latitude = float(values[0]), float(values[1])
    if not (MIN_LONGITUDE <= longitude <= MAX_LONGITUDE):
        raise ValidationError(INVALID_COORDINATES)
    if not (MIN_LATITUDE <= latitude <= MAX_LATITUDE):
        raise ValidationError(INVALID_COORDINATES)
    return longitude, latitude


def validate_point(longitude: Any, latitude: Any) -> tuple[float, float]:
    return validate_coordinates([longitude, latitude])


def _validate_enum(enum_cls: Type[Enum], value: Any, field: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid {field} '{value}'. Allowed values: {allowed}") from None


def validate_place_type(value: Any) -> PlaceType:
    return _validate_enum(PlaceType, value, "place_type")


def _validate_range(
    field: str,
    value: Any,
    minimum: Optional[float] = None,
    maximum: Optional[float] = None,
) -> Optional[float]:
    if value is None:
        return None
    if not _is_number(value):
        raise ValidationError(f"{field} must be a number")
    if minimum is not None and value < minimum:
        raise ValidationError(f"{field} must be at least {minimum:g}")
    if maximum is not None and value > maximum:
        raise ValidationError(f"{field} cannot exceed {maximum:g}")
    return float(value)


def validate_address(address: Any) -> str:
    if not isinstance(address, str) or not address.strip():
        raise ValidationError("Address is required")
    return address.strip()


def validate_location_fields(fields: Optional[dict]) -> dict:
    """Validate optional Location attributes and return the cleaned dict.

    Unknown keys are rejected so typos do not silently vanish.
    """
    if not fields:
        return {}

    unknown = set(fields) - set(METADATA_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown location fields: {', '.join(sorted(unknown))}")

    cleaned: dict = {}
    for field in ADDRESS_FIELDS:
        if field not in fields:
            continue
        value = fields[field]
        if value is not None:
            if not isinstance(value, str):
                raise ValidationError(f"{field} must be a string")
            value = value.strip() or None
        cleaned[field] = value

    notes = cleaned.get("emergency_access_notes")
    if notes and len(notes) > MAX_ACCESS_NOTES:
        raise ValidationError(
            f"Emergency access notes cannot exceed {MAX_ACCESS_NOTES} characters"
        )

    if "accuracy" in fields:
        cleaned["accuracy"] = _validate_range("accuracy", fields["accuracy"], 0, MAX_ACCURACY_M)
    if "altitude" in fields:
        cleaned["altitude"] = _validate_range("altitude", fields["altitude"])
    if "altitude_accuracy" in fields:
        cleaned["altitude_accuracy"] = _validate_range(
            "altitude_accuracy", fields["altitude_accuracy"], 0
        )
    if "speed" in fields:
        cleaned["speed"] = _validate_range("speed", fields["speed"], 0)
    if "heading" in fields:
        cleaned["heading"] = _validate_range("heading", fields["heading"], 0, 360)

    if fields.get("provider") is not None:
        cleaned["provider"] = _validate_enum(LocationProvider, fields["provider"], "provider")
    if fields.get("source") is not None:
        cleaned["source"] = _validate_enum(LocationSource, fields["source"], "source")

    return cleaned
