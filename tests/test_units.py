"""Unit conversion tests."""

import pytest

from recipehub.services.units import convert_units, known_units, unit_category


@pytest.mark.parametrize(
    ("quantity", "from_unit", "to_unit", "expected"),
    [
        (2, "cup", "ml", 473.176),
        (1, "l", "ml", 1000),
        (3, "tsp", "tbsp", 1.0),
        (1, "gallon", "quarts", 4.0),
        (1, "kg", "lb", 2.205),
        (16, "oz", "pound", 1.0),
        (1, "fl oz", "ml", 29.574),
    ],
)
def test_convert_units(quantity, from_unit, to_unit, expected):
    assert convert_units(quantity, from_unit, to_unit) == pytest.approx(expected, abs=0.001)


def test_convert_units_is_case_and_space_insensitive():
    assert convert_units(1, " Fluid  Ounce ", "ML") == pytest.approx(29.574, abs=0.001)


def test_convert_units_rounds_to_three_places():
    assert convert_units(1, "ml", "cup") == 0.004


def test_convert_units_across_categories():
    assert convert_units(1, "cup", "gram") is None


def test_convert_units_unknown_unit():
    assert convert_units(1, "pinch", "tsp") is None


def test_unit_category():
    assert unit_category("Tablespoons") == "volume"
    assert unit_category("kg") == "weight"
    assert unit_category("handful") is None


def test_known_units():
    units = known_units()
    assert set(units) == {"volume", "weight"}
    assert "teaspoons" in units["volume"]
    assert "grams" in units["weight"]


@pytest.mark.parametrize(
    ("quantity", "unit_a", "unit_b"),
    [
        (2, "cup", "ml"),
        (3, "tbsp", "tsp"),
        (5, "l", "gallon"),
        (2, "pint", "fl oz"),
        (2, "kg", "lb"),
        (10, "oz", "g"),
    ],
)
def test_convert_units_round_trip(quantity, unit_a, unit_b):
    """Converting there and back returns the original quantity within rounding."""
    there = convert_units(quantity, unit_a, unit_b)
    back = convert_units(there, unit_b, unit_a)
    assert back == pytest.approx(quantity, rel=1e-3)
