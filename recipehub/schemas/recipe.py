"""Recipe schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from recipehub.schemas.auth import AuthorResponse
from recipehub.schemas.tag import TagResponse

# --- Recipe Ingredient ---


class RecipeIngredientInput(BaseModel):
    """Ingredient line in a recipe payload. Unknown ingredient names are created."""

    name: str | None = Field(None, max_length=255)
    quantity: float | None = None
    unit: str | None = Field(None, max_length=50)
    notes: str | None = Field(None, max_length=500)
    category: str | None = Field(None, max_length=100)


class RecipeIngredientResponse(BaseModel):
    """Ingredient line of a recipe."""

    id: int
    ingredient_id: int
    name: str
    category: str | None
    quantity: float | None
    unit: str | None
    notes: str | None


# --- Recipe ---


class RecipeCreate(BaseModel):
    """Create a new recipe.

    Numeric fields accept strings so the validation helpers can report
    malformed values with their own messages. Tags are tag ids or tag names.
    """

    title: str | None = Field(None, max_length=255)
    description: str | None = Field(None, max_length=5000)
    instructions: str | None = Field(None, max_length=50000)
    prep_time: int | str | None = None
    cook_time: int | str | None = None
    servings: int | str | None = None
    difficulty: str | None = None
    image_url: str | None = Field(None, max_length=500)
    is_public: bool = False
    ingredients: list[RecipeIngredientInput] = []
    tags: list[int | str] = []


class RecipeUpdate(BaseModel):
    """Update a recipe. Omitted fields are unchanged; given lists replace the old ones."""

    title: str | None = Field(None, max_length=255)
    description: str | None = Field(None, max_length=5000)
    instructions: str | None = Field(None, max_length=50000)
    prep_time: int | str | None = None
    cook_time: int | str | None = None
    servings: int | str | None = None
    difficulty: str | None = None
    image_url: str | None = Field(None, max_length=500)
    is_public: bool | None = None
    ingredients: list[RecipeIngredientInput] | None = None
    tags: list[int | str] | None = None


class RecipeResponse(BaseModel):
    """Recipe with tags, ingredients and derived rating statistics."""

    id: int
    user_id: int
    title: str
    description: str | None
    instructions: str
    prep_time: int | None
    cook_time: int | None
    servings: int | None
    difficulty: str | None
    image_url: str | None
    is_public: bool
    created_at: datetime
    updated_at: datetime
    author: AuthorResponse | None
    tags: list[TagResponse]
    ingredients: list[RecipeIngredientResponse]
    average_rating: float
    total_ratings: int


# --- Ratings ---


class RatingCreate(BaseModel):
    """Rate a recipe. A second rating by the same user replaces the first."""

    rating: float | None = None
    review: str | None = Field(None, max_length=5000)


class RatingResponse(BaseModel):
    """A single rating with the reviewer's name when it may be shown."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    recipe_id: int
    user_id: int
    rating: int
    review: str | None
    reviewer_name: str | None = None
    created_at: datetime
    updated_at: datetime


class RecipeDetailResponse(RecipeResponse):
    """Single recipe view including individual ratings."""

    ratings: list[RatingResponse]

