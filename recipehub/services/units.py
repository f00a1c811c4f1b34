"""Cooking unit conversion between units of the same physical category."""

# Volume units, expressed in milliliters
VOLUME_UNITS: dict[str, float] = {
    "ml": 1,
    "milliliter": 1,
    "milliliters": 1,
    "l": 1000,
    "liter": 1000,
    "liters": 1000,
    "tsp": 4.92892,
    "teaspoon": 4.92892,
    "teaspoons": 4.92892,
    "tbsp": 14.7868,
    "tablespoon": 14.7868,
    "tablespoons": 14.7868,
    "cup": 236.588,
    "cups": 236.588,
    "fl oz": 29.5735,
    "fluid ounce": 29.5735,
    "fluid ounces": 29.5735,
    "pint": 473.176,
    "pints": 473.176,
    "quart": 946.353,
    "quarts": 946.353,
    "gallon": 3785.41,
    "gallons": 3785.41,
}

# Weight units, expressed in grams
WEIGHT_UNITS: dict[str, float] = {
    "g": 1,
    "gram": 1,
    "grams": 1,
    "kg": 1000,
    "kilogram": 1000,
    "kilograms": 1000,
    "oz": 28.3495,
    "ounce": 28.3495,
    "ounces": 28.3495,
    "lb": 453.592,
    "pound": 453.592,
    "pounds": 453.592,
}

UNIT_TABLES: dict[str, dict[str, float]] = {
    "volume": VOLUME_UNITS,
    "weight": WEIGHT_UNITS,
}


def normalize_unit(unit: str) -> str:
    """Lowercase a unit name and collapse surrounding/inner whitespace."""
    return " ".join(unit.lower().split())


def unit_category(unit: str) -> str | None:
    """Return "volume" or "weight" for a known unit, None otherwise."""
    normalized = normalize_unit(unit)
    for category, table in UNIT_TABLES.items():
        if normalized in table:
            return category
    return None


def convert_units(quantity: float, from_unit: str, to_unit: str) -> float | None:
    """Convert a quantity between two units of the same category.

    Returns None when either unit is unknown or the units measure different
    things (e.g. liters to grams). The result is rounded to 3 decimal places.
    """
    source = normalize_unit(from_unit)
    target = normalize_unit(to_unit)

    for table in UNIT_TABLES.values():
        if source in table and target in table:
            base_value = quantity * table[source]
            return round(base_value / table[target], 3)

    return None


def known_units() -> dict[str, list[str]]:
    """List every recognized unit name per category."""
    return {category: list(table) for category, table in UNIT_TABLES.items()}
