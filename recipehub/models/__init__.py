"""SQLAlchemy models."""

from recipehub.models.ingredient import Ingredient
from recipehub.models.recipe import Recipe, RecipeIngredient, RecipeRating, RecipeTag
from recipehub.models.tag import Tag
from recipehub.models.user import User

__all__ = [
    "User",
    "Recipe",
    "RecipeIngredient",
    "RecipeTag",
    "RecipeRating",
    "Ingredient",
    "Tag",
]
