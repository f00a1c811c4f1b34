"""Ingredient API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session, joinedload

from recipehub.api.dependencies import get_current_user
from recipehub.api.responses import paginated, send_success
from recipehub.config import get_settings
from recipehub.database import get_db
from recipehub.gateway import upsert_statement
from recipehub.models.ingredient import Ingredient
from recipehub.models.recipe import RecipeIngredient
from recipehub.models.user import User
from recipehub.schemas.ingredient import (
    IngredientBulkCreate,
    IngredientCreate,
    IngredientResponse,
    RecipeUsage,
    UsageResponse,
)
from recipehub.services.validation import (
    ensure_valid,
    validate_ingredient_data,
    validate_pagination,
    validate_required_fields,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/ingredients", tags=["ingredients"])


def _clean_category(category: str | None) -> str | None:
    if category is None:
        return None
    return category.strip() or None


def get_ingredient_or_404(db: Session, ingredient_id: int) -> Ingredient:
    ingredient = db.query(Ingredient).filter(Ingredient.id == ingredient_id).first()
    if not ingredient:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ingredient not found")
    return ingredient


@router.get("")
def list_ingredients(
    db: Annotated[Session, Depends(get_db)],
    page: str | None = None,
    limit: str | None = None,
    search: str | None = None,
    category: str | None = None,
):
    """List ingredients alphabetically, optionally filtered by name or category."""
    window = validate_pagination(page, limit, get_settings().default_page_size)

    query = db.query(Ingredient)
    if search:
        query = query.filter(Ingredient.name.icontains(search.strip(), autoescape=True))
    if category:
        query = query.filter(Ingredient.category == category)

    total = query.count()
    ingredients = (
        query.order_by(Ingredient.name).offset(window.offset).limit(window.limit).all()
    )
    items = [IngredientResponse.model_validate(i) for i in ingredients]
    return send_success(paginated(items, window.page, window.limit, total, key="ingredients"))


@router.get("/categories")
def list_categories(db: Annotated[Session, Depends(get_db)]):
    """Distinct, sorted ingredient categories."""
    rows = (
        db.query(Ingredient.category)
        .filter(Ingredient.category.isnot(None))
        .distinct()
        .order_by(Ingredient.category)
        .all()
    )
    return send_success({"categories": [row.category for row in rows]})


@router.get("/{ingredient_id}")
def get_ingredient(ingredient_id: int, db: Annotated[Session, Depends(get_db)]):
    ingredient = get_ingredient_or_404(db, ingredient_id)
    return send_success({"ingredient": IngredientResponse.model_validate(ingredient)})


@router.post("", status_code=status.HTTP_201_CREATED)
def create_ingredient(
    data: IngredientCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Create an ingredient. Names are unique."""
    ensure_valid(validate_ingredient_data(data.model_dump()))
    name = data.name.strip()

    if db.query(Ingredient).filter(Ingredient.name == name).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Ingredient already exists",
        )

    ingredient = Ingredient(name=name, category=_clean_category(data.category))
    db.add(ingredient)
    db.commit()
    db.refresh(ingredient)
    logger.info(f"User {current_user.id} created ingredient {ingredient.id}")
    return send_success(
        {"ingredient": IngredientResponse.model_validate(ingredient)},
        "Ingredient created successfully",
        status.HTTP_201_CREATED,
    )


@router.put("/{ingredient_id}")
def update_ingredient(
    ingredient_id: int,
    data: IngredientCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Rename or recategorize an ingredient."""
    ensure_valid(validate_ingredient_data(data.model_dump()))
    ingredient = get_ingredient_or_404(db, ingredient_id)
    name = data.name.strip()

    conflict = (
        db.query(Ingredient)
        .filter(Ingredient.name == name, Ingredient.id != ingredient_id)
        .first()
    )
    if conflict:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An ingredient with this name already exists",
        )

    ingredient.name = name
    ingredient.category = _clean_category(data.category)
    db.commit()
    db.refresh(ingredient)
    return send_success(
        {"ingredient": IngredientResponse.model_validate(ingredient)},
        "Ingredient updated successfully",
    )


@router.delete("/{ingredient_id}")
def delete_ingredient(
    ingredient_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Delete an ingredient that no recipe uses."""
    ingredient = get_ingredient_or_404(db, ingredient_id)

    in_use = (
        db.query(RecipeIngredient.id)
        .filter(RecipeIngredient.ingredient_id == ingredient_id)
        .first()
    )
    if in_use:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Cannot delete ingredient that is used in recipes",
        )

    db.delete(ingredient)
    db.commit()
    logger.info(f"User {current_user.id} deleted ingredient {ingredient_id}")
    return send_success(message="Ingredient deleted successfully")


@router.get("/{ingredient_id}/usage")
def get_ingredient_usage(ingredient_id: int, db: Annotated[Session, Depends(get_db)]):
    """Count the recipes using an ingredient; only public ones are listed."""
    get_ingredient_or_404(db, ingredient_id)
    lines = (
        db.query(RecipeIngredient)
        .options(joinedload(RecipeIngredient.recipe))
        .filter(RecipeIngredient.ingredient_id == ingredient_id)
        .order_by(RecipeIngredient.id)
        .all()
    )
    public_lines = [line for line in lines if line.recipe.is_public]
    usage = UsageResponse(
        total_usage=len(lines),
        public_usage=len(public_lines),
        recipes=[
            RecipeUsage(
                id=line.recipe.id,
                title=line.recipe.title,
                quantity=line.quantity,
                unit=line.unit,
            )
            for line in public_lines
        ],
    )
    return send_success(usage)


@router.post("/bulk", status_code=status.HTTP_201_CREATED)
def bulk_create_ingredients(
    data: IngredientBulkCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Create many ingredients, reporting which were created, already existed or failed."""
    if not data.ingredients:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Ingredients array is required",
        )

    results: dict[str, list] = {"created": [], "existing": [], "errors": []}
    for entry in data.ingredients:
        if validate_required_fields(entry.model_dump(), ["name"]) is not None:
            results["errors"].append({"ingredient": entry, "error": "Name is required"})
            continue

        name = entry.name.strip()
        stmt = (
            upsert_statement(db, Ingredient)
            .values(name=name, category=_clean_category(entry.category))
            .on_conflict_do_nothing(index_elements=["name"])
        )
        inserted = db.execute(stmt).rowcount == 1
        ingredient = db.query(Ingredient).filter(Ingredient.name == name).one()
        bucket = "created" if inserted else "existing"
        results[bucket].append(IngredientResponse.model_validate(ingredient))

    db.commit()
    logger.info(
        f"Bulk ingredient import by user {current_user.id}: "
        f"{len(results['created'])} created, {len(results['existing'])} existing"
    )
    return send_success(
        {"results": results},
        "Bulk ingredient creation completed",
        status.HTTP_201_CREATED,
    )
