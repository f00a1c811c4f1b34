"""Pydantic schemas for API requests and responses."""

from recipehub.schemas.auth import (
    AuthorResponse,
    ProfileUpdate,
    SessionResponse,
    UserLogin,
    UserRegister,
    UserResponse,
)
from recipehub.schemas.ingredient import IngredientCreate, IngredientResponse
from recipehub.schemas.recipe import (
    RatingCreate,
    RatingResponse,
    RecipeCreate,
    RecipeDetailResponse,
    RecipeResponse,
    RecipeUpdate,
)
from recipehub.schemas.search import ConvertUnitsRequest, SuggestRecipesRequest
from recipehub.schemas.tag import TagCreate, TagResponse

__all__ = [
    "UserRegister",
    "UserLogin",
    "ProfileUpdate",
    "SessionResponse",
    "UserResponse",
    "AuthorResponse",
    "RecipeCreate",
    "RecipeUpdate",
    "RecipeResponse",
    "RecipeDetailResponse",
    "RatingCreate",
    "RatingResponse",
    "IngredientCreate",
    "IngredientResponse",
    "TagCreate",
    "TagResponse",
    "ConvertUnitsRequest",
    "SuggestRecipesRequest",
]
