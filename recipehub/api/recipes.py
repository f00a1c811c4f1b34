"""Recipe API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status

from recipehub.api.dependencies import (
    get_optional_gateway,
    get_query_builder,
    get_recipe_service,
    get_user_gateway,
)
from recipehub.api.responses import paginated, send_success
from recipehub.config import get_settings
from recipehub.gateway import DataGateway
from recipehub.schemas.recipe import RatingCreate, RecipeCreate, RecipeUpdate
from recipehub.services.recipe_query import RecipeFilters, RecipeQueryBuilder, split_terms
from recipehub.services.recipe_service import RecipeService
from recipehub.services.validation import (
    ensure_valid,
    validate_pagination,
    validate_rating_data,
    validate_recipe_data,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/recipes", tags=["recipes"])


def _listing(builder: RecipeQueryBuilder, filters: RecipeFilters, page, limit) -> dict:
    window = validate_pagination(page, limit, get_settings().default_page_size)
    result = builder.list(filters, window.page, window.limit)
    recipes = [builder.gateway.present_recipe(recipe) for recipe in result.recipes]
    return paginated(recipes, result.page, result.limit, result.total, key="recipes")


@router.get("")
def list_recipes(
    builder: Annotated[RecipeQueryBuilder, Depends(get_query_builder)],
    page: str | None = None,
    limit: str | None = None,
    search: str | None = None,
    tags: str | None = None,
    difficulty: str | None = None,
    user_id: int | None = None,
    public_only: bool = False,
):
    """List recipes visible to the caller, newest first."""
    filters = RecipeFilters(
        search=search,
        tags=split_terms(tags),
        difficulty=difficulty,
        user_id=user_id,
        public_only=public_only,
    )
    return send_success(_listing(builder, filters, page, limit))


@router.get("/my-recipes")
def list_my_recipes(
    gateway: Annotated[DataGateway, Depends(get_user_gateway)],
    page: str | None = None,
    limit: str | None = None,
):
    """List the caller's own recipes, public and private."""
    builder = RecipeQueryBuilder(gateway)
    filters = RecipeFilters(user_id=gateway.user_id)
    return send_success(_listing(builder, filters, page, limit))


@router.get("/{recipe_id}")
def get_recipe(
    recipe_id: int,
    gateway: Annotated[DataGateway, Depends(get_optional_gateway)],
):
    """Get a single recipe with its ratings."""
    recipe = RecipeService(gateway).load_recipe(recipe_id)
    return send_success({"recipe": gateway.present_recipe(recipe, include_ratings=True)})


@router.post("", status_code=status.HTTP_201_CREATED)
def create_recipe(
    recipe_data: RecipeCreate,
    service: Annotated[RecipeService, Depends(get_recipe_service)],
):
    """Create a recipe with its ingredients and tags."""
    ensure_valid(validate_recipe_data(recipe_data.model_dump()))
    recipe = service.create_recipe(recipe_data)
    return send_success(
        {"recipe": service.gateway.present_recipe(recipe)},
        "Recipe created successfully",
        status.HTTP_201_CREATED,
    )


@router.put("/{recipe_id}")
def update_recipe(
    recipe_id: int,
    recipe_data: RecipeUpdate,
    service: Annotated[RecipeService, Depends(get_recipe_service)],
):
    """Update a recipe the caller owns."""
    recipe = service.gateway.require_owned_recipe(recipe_id, "update")
    ensure_valid(validate_recipe_data(service.merged_values(recipe, recipe_data)))
    recipe = service.update_recipe(recipe_id, recipe_data)
    return send_success(
        {"recipe": service.gateway.present_recipe(recipe)}, "Recipe updated successfully"
    )


@router.post("/{recipe_id}/copy", status_code=status.HTTP_201_CREATED)
def copy_recipe(
    recipe_id: int,
    service: Annotated[RecipeService, Depends(get_recipe_service)],
):
    """Copy a visible recipe into the caller's private collection."""
    recipe = service.copy_recipe(recipe_id)
    return send_success(
        {"recipe": service.gateway.present_recipe(recipe)},
        "Recipe copied successfully",
        status.HTTP_201_CREATED,
    )


@router.delete("/{recipe_id}")
def delete_recipe(
    recipe_id: int,
    service: Annotated[RecipeService, Depends(get_recipe_service)],
):
    """Delete a recipe the caller owns."""
    service.delete_recipe(recipe_id)
    return send_success(message="Recipe deleted successfully")


@router.post("/{recipe_id}/rate")
def rate_recipe(
    recipe_id: int,
    rating_data: RatingCreate,
    service: Annotated[RecipeService, Depends(get_recipe_service)],
):
    """Rate a recipe. Rating again replaces the earlier rating."""
    ensure_valid(validate_rating_data(rating_data.model_dump()))
    rating = service.rate_recipe(recipe_id, int(rating_data.rating), rating_data.review)

    recipe = service.load_recipe(recipe_id)
    return send_success(
        {
            "rating": {
                "id": rating.id,
                "recipe_id": rating.recipe_id,
                "user_id": rating.user_id,
                "rating": rating.rating,
                "review": rating.review,
                "created_at": rating.created_at,
                "updated_at": rating.updated_at,
            },
            "average_rating": recipe.average_rating,
            "total_ratings": recipe.total_ratings,
        },
        "Rating submitted successfully",
    )
