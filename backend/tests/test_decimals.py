"""Tests for decimal-string storage of coordinates."""

import pytest

from synoptics.decimals import GEO_PLACES, parse_decimal, to_decimal_string
from synoptics.errors import ValidationError


def test_coordinates_are_stored_with_two_places():
    assert to_decimal_string(10) == "10.00"
    assert to_decimal_string(12.5) == "12.50"
    assert to_decimal_string("-3.14159") == "-3.14"


def test_rounding_is_half_up_not_bankers():
    assert to_decimal_string(0.125) == "0.13"
    assert to_decimal_string(2.675) == "2.68"


def test_geo_places():
    assert to_decimal_string(48.856614, GEO_PLACES) == "48.85661400"


def test_none_passes_through():
    assert to_decimal_string(None) is None
    assert parse_decimal(None) is None
    assert parse_decimal("") is None


@pytest.mark.parametrize("value", ["abc", float("nan"), float("inf")])
def test_non_numeric_values_are_rejected(value):
    with pytest.raises(ValidationError):
        to_decimal_string(value, field="x_position")


@pytest.mark.parametrize("value", [0, 1.5, 99.99, 123.456, -250.004, 1e6 + 0.01])
def test_round_trip_matches_to_two_places(value):
    assert parse_decimal(to_decimal_string(value)) == pytest.approx(value, abs=0.005)


@pytest.mark.parametrize("value", [1e30, -1e8, "1e8", 123456789.5])
def test_out_of_range_values_are_rejected(value):
    with pytest.raises(ValidationError) as excinfo:
        to_decimal_string(value, field="x_position")
    assert excinfo.value.details == {"field": "x_position"}


def test_largest_storable_value_is_accepted():
    assert to_decimal_string(99999999.99) == "99999999.99"
    assert to_decimal_string("-99999999.994") == "-99999999.99"
