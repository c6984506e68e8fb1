"""Unit tests for the location field validators."""
import math

import pytest

from lifeline.exceptions import ValidationError
from lifeline.models.location import LocationProvider, LocationSource, PlaceType
from lifeline.services.validation import (
    INVALID_COORDINATES,
    validate_address,
    validate_coordinates,
    validate_location_fields,
    validate_place_type,
)


class TestValidateCoordinates:
    def test_returns_floats(self):
        assert validate_coordinates([77, 28]) == (77.0, 28.0)

    def test_accepts_tuple_and_boundaries(self):
        assert validate_coordinates((-180, 90)) == (-180.0, 90.0)
        assert validate_coordinates((180, -90)) == (180.0, -90.0)

    @pytest.mark.parametrize(
        "coordinates",
        [
            [200, 10],
            [10, 95],
            [-180.5, 0],
            [1],
            [1, 2, 3],
            [],
            None,
            "77,28",
            ["77", "28"],
            [True, False],
            [math.nan, 0],
            [0, math.inf],
            42,
        ],
    )
    def test_rejects_invalid(self, coordinates):
        with pytest.raises(ValidationError) as exc_info:
            validate_coordinates(coordinates)
        assert exc_info.value.message == INVALID_COORDINATES


class TestValidatePlaceType:
    def test_accepts_value_and_member(self):
        assert validate_place_type("ngo") is PlaceType.NGO
        assert validate_place_type(PlaceType.HOME) is PlaceType.HOME

    def test_rejects_unknown(self):
        with pytest.raises(ValidationError, match="Invalid place_type 'castle'"):
            validate_place_type("castle")


class TestValidateAddress:
    def test_strips(self):
        assert validate_address("  12 Main Road ") == "12 Main Road"

    @pytest.mark.parametrize("address", ["", "   ", None, 12])
    def test_required(self, address):
        with pytest.raises(ValidationError, match="Address is required"):
            validate_address(address)


class TestValidateLocationFields:
    def test_empty(self):
        assert validate_location_fields(None) == {}
        assert validate_location_fields({}) == {}

    def test_cleans_and_converts(self):
        cleaned = validate_location_fields({
            "city": "  New Delhi ",
            "landmark": "   ",
            "accuracy": 12,
            "heading": 360,
            "provider": "gps",
            "source": "sos",
        })
        assert cleaned == {
            "city": "New Delhi",
            "landmark": None,
            "accuracy": 12.0,
            "heading": 360.0,
            "provider": LocationProvider.GPS,
            "source": LocationSource.SOS,
        }

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError, match="Unknown location fields: colour"):
            validate_location_fields({"colour": "red"})

    @pytest.mark.parametrize(
        "fields,message",
        [
            ({"accuracy": -1}, "accuracy must be at least 0"),
            ({"accuracy": 10_001}, "accuracy cannot exceed 10000"),
            ({"speed": -0.5}, "speed must be at least 0"),
            ({"heading": 361}, "heading cannot exceed 360"),
            ({"altitude_accuracy": -3}, "altitude_accuracy must be at least 0"),
            ({"altitude": "high"}, "altitude must be a number"),
            ({"city": 5}, "city must be a string"),
            ({"provider": "satellite"}, "Invalid provider 'satellite'"),
            ({"source": "fax"}, "Invalid source 'fax'"),
        ],
    )
    def test_rejects_out_of_range(self, fields, message):
        with pytest.raises(ValidationError, match=message):
            validate_location_fields(fields)

    def test_access_notes_limit(self):
        assert validate_location_fields({"emergency_access_notes": "x" * 300})
        with pytest.raises(ValidationError, match="cannot exceed 300 characters"):
            validate_location_fields({"emergency_access_notes": "x" * 301})

    def test_negative_altitude_allowed(self):
        assert validate_location_fields({"altitude": -28}) == {"altitude": -28.0}
