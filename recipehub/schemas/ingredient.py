"""Ingredient schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class IngredientCreate(BaseModel):
    """Create or update an ingredient."""

    name: str | None = Field(None, max_length=255)
    category: str | None = Field(None, max_length=100)


class IngredientBulkCreate(BaseModel):
    """Create several ingredients at once."""

    ingredients: list[IngredientCreate] | None = None


class IngredientResponse(BaseModel):
    """Ingredient response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    category: str | None
    created_at: datetime


class RecipeUsage(BaseModel):
    """A public recipe that uses an ingredient or tag."""

    id: int
    title: str
    quantity: float | None = None
    unit: str | None = None


class UsageResponse(BaseModel):
    """How many recipes reference an ingredient or tag."""

    total_usage: int
    public_usage: int
    recipes: list[RecipeUsage]
