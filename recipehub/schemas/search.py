"""Search and unit conversion schemas."""

from pydantic import BaseModel, Field


class ConvertUnitsRequest(BaseModel):
    """Convert a quantity between two units."""

    quantity: float | None = None
    from_unit: str | None = Field(None, max_length=50)
    to_unit: str | None = Field(None, max_length=50)


class ConvertUnitsResponse(BaseModel):
    """Result of a unit conversion."""

    original_quantity: float
    original_unit: str
    converted_quantity: float
    converted_unit: str
    conversion: str


class SuggestRecipesRequest(BaseModel):
    """Ingredients on hand, used to suggest recipes."""

    ingredients: list[str] | None = None
    limit: int = Field(50, ge=1, le=100)
