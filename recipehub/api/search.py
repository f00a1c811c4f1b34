"""Search, unit conversion and recipe suggestion endpoints."""

import logging
import math
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from recipehub.api.dependencies import get_optional_gateway, get_query_builder
from recipehub.api.responses import paginated, send_success
from recipehub.config import get_settings
from recipehub.database import get_db
from recipehub.gateway import DataGateway
from recipehub.models.ingredient import Ingredient
from recipehub.models.recipe import Recipe, RecipeIngredient, RecipeRating, RecipeTag
from recipehub.models.tag import Tag
from recipehub.schemas.ingredient import IngredientResponse
from recipehub.schemas.search import (
    ConvertUnitsRequest,
    ConvertUnitsResponse,
    SuggestRecipesRequest,
)
from recipehub.schemas.tag import TagResponse
from recipehub.services.recipe_query import (
    RecipeFilters,
    RecipeQueryBuilder,
    normalize_sort,
    split_terms,
)
from recipehub.services.units import convert_units, known_units
from recipehub.services.validation import validate_pagination, validate_required_fields

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/search", tags=["search"])

LOOKUP_PAGE_SIZE = 100


def _format_quantity(value: float) -> str:
    return str(int(value)) if value == int(value) else str(value)


@router.get("/recipes")
def search_recipes(
    builder: Annotated[RecipeQueryBuilder, Depends(get_query_builder)],
    q: str | None = None,
    title: str | None = None,
    description: str | None = None,
    ingredients: str | None = None,
    include_ingredients: str | None = None,
    exclude_ingredients: str | None = None,
    tags: str | None = None,
    difficulty: str | None = None,
    prep_time: str | None = None,
    cook_time: str | None = None,
    servings: str | None = None,
    rating: str | None = None,
    author: str | None = None,
    page: str | None = None,
    limit: str | None = None,
    sort_by: str | None = None,
    sort_order: str | None = None,
):
    """Advanced recipe search.

    ``ingredients`` matches recipes containing any of the listed names,
    ``include_ingredients`` requires all of them and ``exclude_ingredients``
    rejects recipes containing any. Range filters take ``op:value`` with op one
    of gte, lte, gt, lt, eq.
    """
    sort_field, order = normalize_sort(sort_by, sort_order)
    filters = RecipeFilters(
        search=q,
        title=title,
        description=description,
        ingredients=split_terms(ingredients),
        include_ingredients=split_terms(include_ingredients),
        exclude_ingredients=split_terms(exclude_ingredients),
        tags=split_terms(tags),
        difficulty=difficulty,
        prep_time=prep_time,
        cook_time=cook_time,
        servings=servings,
        rating=rating,
        author=author,
        sort_by=sort_field,
        sort_order=order,
    )
    window = validate_pagination(page, limit, get_settings().default_page_size)
    result = builder.list(filters, window.page, window.limit)

    body = paginated(
        [builder.gateway.present_recipe(recipe) for recipe in result.recipes],
        result.page,
        result.limit,
        result.total,
        key="recipes",
    )
    body["filters"] = {
        "q": q,
        "title": title,
        "description": description,
        "ingredients": ingredients,
        "include_ingredients": include_ingredients,
        "exclude_ingredients": exclude_ingredients,
        "tags": tags,
        "difficulty": difficulty,
        "prep_time": prep_time,
        "cook_time": cook_time,
        "servings": servings,
        "rating": rating,
        "author": author,
    }
    body["sorting"] = {"sort_by": sort_field, "sort_order": order}
    return send_success(body)


@router.get("/ingredients")
def search_ingredients(
    db: Annotated[Session, Depends(get_db)],
    q: str | None = None,
    category: str | None = None,
    page: str | None = None,
    limit: str | None = None,
):
    window = validate_pagination(page, limit, LOOKUP_PAGE_SIZE)
    query = db.query(Ingredient)
    if q:
        query = query.filter(Ingredient.name.icontains(q.strip(), autoescape=True))
    if category:
        query = query.filter(Ingredient.category == category)

    total = query.count()
    rows = query.order_by(Ingredient.name).offset(window.offset).limit(window.limit).all()
    items = [IngredientResponse.model_validate(row) for row in rows]
    return send_success(paginated(items, window.page, window.limit, total, key="ingredients"))


@router.get("/tags")
def search_tags(
    db: Annotated[Session, Depends(get_db)],
    q: str | None = None,
    page: str | None = None,
    limit: str | None = None,
):
    window = validate_pagination(page, limit, LOOKUP_PAGE_SIZE)
    query = db.query(Tag)
    if q:
        query = query.filter(Tag.name.icontains(q.strip(), autoescape=True))

    total = query.count()
    rows = query.order_by(Tag.name).offset(window.offset).limit(window.limit).all()
    items = [TagResponse.model_validate(row) for row in rows]
    return send_success(paginated(items, window.page, window.limit, total, key="tags"))


@router.get("/global")
def global_search(
    gateway: Annotated[DataGateway, Depends(get_optional_gateway)],
    q: str | None = None,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
):
    """Search recipes, ingredients and tags at once."""
    if not q or not q.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Search query is required",
        )
    term = q.strip()
    db = gateway.db

    recipes = (
        gateway.recipes()
        .options(selectinload(Recipe.user))
        .filter(
            or_(
                Recipe.title.icontains(term, autoescape=True),
                Recipe.description.icontains(term, autoescape=True),
                Recipe.instructions.icontains(term, autoescape=True),
            )
        )
        .order_by(Recipe.created_at.desc(), Recipe.id.desc())
        .limit(limit)
        .all()
    )
    ingredients = (
        db.query(Ingredient)
        .filter(Ingredient.name.icontains(term, autoescape=True))
        .order_by(Ingredient.name)
        .limit(limit)
        .all()
    )
    tags = (
        db.query(Tag)
        .filter(Tag.name.icontains(term, autoescape=True))
        .order_by(Tag.name)
        .limit(limit)
        .all()
    )

    results = {
        "recipes": [
            {
                "id": recipe.id,
                "title": recipe.title,
                "description": recipe.description,
                "image_url": recipe.image_url,
                "author": gateway.present_author(recipe.user),
            }
            for recipe in recipes
        ],
        "ingredients": [IngredientResponse.model_validate(i) for i in ingredients],
        "tags": [TagResponse.model_validate(t) for t in tags],
    }
    return send_success(
        {
            "query": term,
            "results": results,
            "total_results": len(recipes) + len(ingredients) + len(tags),
        }
    )


@router.post("/convert-units")
def convert_units_endpoint(data: ConvertUnitsRequest):
    """Convert a quantity between two volume units or two weight units."""
    missing = validate_required_fields(data.model_dump(), ["quantity", "from_unit", "to_unit"])
    # A zero quantity counts as missing
    if missing is not None or not data.quantity:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Quantity, from_unit, and to_unit are required",
        )

    converted = convert_units(data.quantity, data.from_unit, data.to_unit)
    if converted is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot convert between these unit types",
        )
    if not math.isfinite(data.quantity) or not math.isfinite(converted):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Quantity out of range",
        )

    result = ConvertUnitsResponse(
        original_quantity=data.quantity,
        original_unit=data.from_unit,
        converted_quantity=converted,
        converted_unit=data.to_unit,
        conversion=(
            f"{_format_quantity(data.quantity)} {data.from_unit} = "
            f"{_format_quantity(converted)} {data.to_unit}"
        ),
    )
    return send_success(result, "Conversion successful")


@router.get("/units")
def list_units():
    """Unit names accepted by the converter, per category."""
    return send_success(known_units())


@router.post("/suggest-recipes")
def suggest_recipes(
    data: SuggestRecipesRequest,
    gateway: Annotated[DataGateway, Depends(get_optional_gateway)],
):
    """Public recipes using any of the given ingredients, most matches first."""
    names = [name.strip().lower() for name in data.ingredients or [] if name and name.strip()]
    if not names:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Ingredients array is required",
        )

    db = gateway.db
    match_count = func.count(RecipeIngredient.id).label("match_score")
    rows = (
        db.query(Recipe.id, match_count)
        .join(RecipeIngredient, RecipeIngredient.recipe_id == Recipe.id)
        .join(Ingredient, RecipeIngredient.ingredient_id == Ingredient.id)
        .filter(Recipe.is_public.is_(True), func.lower(Ingredient.name).in_(names))
        .group_by(Recipe.id)
        .order_by(match_count.desc(), Recipe.id.desc())
        .limit(data.limit)
        .all()
    )
    if not rows:
        return send_success(
            {"search_ingredients": data.ingredients, "suggested_recipes": [], "total_suggestions": 0}
        )

    recipes = {
        recipe.id: recipe
        for recipe in db.query(Recipe)
        .filter(Recipe.id.in_([row.id for row in rows]))
        .options(
            selectinload(Recipe.user),
            selectinload(Recipe.recipe_tags).selectinload(RecipeTag.tag),
            selectinload(Recipe.recipe_ingredients).selectinload(RecipeIngredient.ingredient),
            selectinload(Recipe.ratings).selectinload(RecipeRating.user),
        )
        .all()
    }

    suggestions = []
    for row in rows:
        recipe = recipes[row.id]
        matched = [
            line.ingredient.name
            for line in recipe.recipe_ingredients
            if line.ingredient.name.lower() in names
        ]
        suggestion = gateway.present_recipe(recipe).model_dump(mode="json")
        suggestion["matched_ingredients"] = matched
        suggestion["match_score"] = row.match_score
        suggestions.append(suggestion)

    return send_success(
        {
            "search_ingredients": data.ingredients,
            "suggested_recipes": suggestions,
            "total_suggestions": len(suggestions),
        }
    )
