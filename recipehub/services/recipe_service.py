"""Recipe service for single-recipe mutations.

Each public method performs one recipe mutation (the recipe row plus its
ingredient, tag or rating rows) and commits once at the end, so a failure part
way through leaves nothing behind.
"""

import logging
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from recipehub.gateway import DataGateway, upsert_statement
from recipehub.models.ingredient import Ingredient
from recipehub.models.recipe import Recipe, RecipeIngredient, RecipeRating, RecipeTag
from recipehub.models.tag import DEFAULT_TAG_COLOR, Tag
from recipehub.schemas.recipe import RecipeCreate, RecipeIngredientInput, RecipeUpdate
from recipehub.services.validation import parse_int

logger = logging.getLogger(__name__)

RECIPE_FIELDS = (
    "title",
    "description",
    "instructions",
    "prep_time",
    "cook_time",
    "servings",
    "difficulty",
    "image_url",
    "is_public",
)
NUMERIC_FIELDS = ("prep_time", "cook_time", "servings")


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def find_or_create_ingredient(db: Session, name: str, category: str | None = None) -> Ingredient:
    """Return the ingredient with this exact name, creating it atomically if needed."""
    name = name.strip()
    stmt = (
        upsert_statement(db, Ingredient)
        .values(name=name, category=_clean(category))
        .on_conflict_do_nothing(index_elements=["name"])
    )
    db.execute(stmt)
    return db.query(Ingredient).filter(Ingredient.name == name).one()


def find_or_create_tag(db: Session, name: str, color: str = DEFAULT_TAG_COLOR) -> Tag:
    """Return the tag with this exact name, creating it atomically if needed."""
    name = name.strip()
    stmt = (
        upsert_statement(db, Tag)
        .values(name=name, color=color)
        .on_conflict_do_nothing(index_elements=["name"])
    )
    db.execute(stmt)
    return db.query(Tag).filter(Tag.name == name).one()


class RecipeService:
    """Service for recipe create/update/copy/delete and rating operations."""

    def __init__(self, gateway: DataGateway):
        self.gateway = gateway
        self.db = gateway.db

    def load_recipe(self, recipe_id: int) -> Recipe:
        """Get a visible recipe with every relation loaded, or fail with 404."""
        recipe = (
            self.gateway.recipes()
            .filter(Recipe.id == recipe_id)
            .options(
                selectinload(Recipe.user),
                selectinload(Recipe.recipe_tags).selectinload(RecipeTag.tag),
                selectinload(Recipe.recipe_ingredients).selectinload(
                    RecipeIngredient.ingredient
                ),
                selectinload(Recipe.ratings).selectinload(RecipeRating.user),
            )
            .first()
        )
        if recipe is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recipe not found")
        return recipe

    def _build_ingredient_lines(
        self, ingredients: list[RecipeIngredientInput]
    ) -> list[RecipeIngredient]:
        lines: list[RecipeIngredient] = []
        seen: set[int] = set()
        for entry in ingredients:
            if not entry.name or not entry.name.strip():
                continue
            ingredient = find_or_create_ingredient(self.db, entry.name, entry.category)
            if ingredient.id in seen:
                continue
            seen.add(ingredient.id)
            lines.append(
                RecipeIngredient(
                    ingredient_id=ingredient.id,
                    quantity=entry.quantity,
                    unit=_clean(entry.unit),
                    notes=_clean(entry.notes),
                )
            )
        return lines

    def _build_tag_links(self, tags: list[int | str]) -> list[RecipeTag]:
        links: list[RecipeTag] = []
        seen: set[int] = set()
        for ref in tags:
            if isinstance(ref, int):
                tag = self.db.query(Tag).filter(Tag.id == ref).first()
                if tag is None:
                    raise HTTPException(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        detail=f"Tag {ref} not found",
                    )
            elif ref.strip():
                tag = find_or_create_tag(self.db, ref)
            else:
                continue
            if tag.id in seen:
                continue
            seen.add(tag.id)
            links.append(RecipeTag(tag_id=tag.id))
        return links

    def _replace_children(
        self,
        recipe: Recipe,
        ingredients: list[RecipeIngredientInput] | None,
        tags: list[int | str] | None,
    ) -> None:
        # Old rows must be deleted before the new ones are inserted, or re-saving
        # the same ingredient would trip the (recipe, ingredient) unique constraint.
        if ingredients is not None:
            recipe.recipe_ingredients.clear()
        if tags is not None:
            recipe.recipe_tags.clear()
        self.db.flush()

        if ingredients is not None:
            recipe.recipe_ingredients.extend(self._build_ingredient_lines(ingredients))
        if tags is not None:
            recipe.recipe_tags.extend(self._build_tag_links(tags))

    def _commit(self, operation: str) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception(f"Failed to {operation}")
            raise

    def create_recipe(self, data: RecipeCreate) -> Recipe:
        """Create a recipe owned by the caller, with its ingredients and tags."""
        user = self.gateway.require_user()
        values = data.model_dump(include=set(RECIPE_FIELDS))
        for numeric in NUMERIC_FIELDS:
            values[numeric] = parse_int(values[numeric])
        values["title"] = values["title"].strip()
        values["difficulty"] = values["difficulty"] or None

        recipe = Recipe(user_id=user.id, **values)
        self.db.add(recipe)
        try:
            self.db.flush()
            self._replace_children(recipe, data.ingredients, data.tags)
        except Exception:
            self.db.rollback()
            raise
        self._commit("create recipe")
        logger.info(f"User {user.id} created recipe {recipe.id}")
        return self.load_recipe(recipe.id)

    def merged_values(self, recipe: Recipe, data: RecipeUpdate) -> dict[str, Any]:
        """Recipe fields as they will be after applying the update, for validation."""
        values = {name: getattr(recipe, name) for name in RECIPE_FIELDS}
        values.update(data.model_dump(include=set(RECIPE_FIELDS), exclude_unset=True))
        return values

    def update_recipe(self, recipe_id: int, data: RecipeUpdate) -> Recipe:
        """Update an owned recipe; given ingredient/tag lists replace the existing ones."""
        recipe = self.gateway.require_owned_recipe(recipe_id, "update")
        updates = data.model_dump(include=set(RECIPE_FIELDS), exclude_unset=True)
        for name, value in updates.items():
            if name in NUMERIC_FIELDS:
                value = parse_int(value)
            elif name == "is_public" and value is None:
                continue
            elif name == "title" and value:
                value = value.strip()
            elif name == "difficulty":
                value = value or None
            setattr(recipe, name, value)
        # Child-row replacement alone must still bump the modification time
        recipe.updated_at = func.now()

        try:
            self._replace_children(recipe, data.ingredients, data.tags)
        except Exception:
            self.db.rollback()
            raise
        self._commit("update recipe")
        logger.info(f"Recipe {recipe_id} updated")
        return self.load_recipe(recipe_id)

    def copy_recipe(self, recipe_id: int) -> Recipe:
        """Duplicate a visible recipe as a private recipe owned by the caller."""
        user = self.gateway.require_user()
        original = self.load_recipe(recipe_id)

        copy = Recipe(
            user_id=user.id,
            title=f"{original.title} (Copy)",
            description=original.description,
            instructions=original.instructions,
            prep_time=original.prep_time,
            cook_time=original.cook_time,
            servings=original.servings,
            difficulty=original.difficulty,
            image_url=original.image_url,
            is_public=False,
        )
        for line in original.recipe_ingredients:
            copy.recipe_ingredients.append(
                RecipeIngredient(
                    ingredient_id=line.ingredient_id,
                    quantity=line.quantity,
                    unit=line.unit,
                    notes=line.notes,
                )
            )
        for link in original.recipe_tags:
            copy.recipe_tags.append(RecipeTag(tag_id=link.tag_id))

        self.db.add(copy)
        self._commit("copy recipe")
        logger.info(f"User {user.id} copied recipe {recipe_id} to {copy.id}")
        return self.load_recipe(copy.id)

    def delete_recipe(self, recipe_id: int) -> None:
        """Delete an owned recipe; its ingredient lines, tags and ratings go with it."""
        recipe = self.gateway.require_owned_recipe(recipe_id, "delete")
        self.db.delete(recipe)
        self._commit("delete recipe")
        logger.info(f"Recipe {recipe_id} deleted")

    def rate_recipe(self, recipe_id: int, rating: int, review: str | None) -> RecipeRating:
        """Insert or replace the caller's rating of a visible recipe."""
        user = self.gateway.require_user()
        self.gateway.require_recipe(recipe_id)

        stmt = upsert_statement(self.db, RecipeRating).values(
            recipe_id=recipe_id, user_id=user.id, rating=rating, review=review
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["recipe_id", "user_id"],
            set_={
                "rating": stmt.excluded.rating,
                "review": stmt.excluded.review,
                "updated_at": func.now(),
            },
        )
        self.db.execute(stmt)
        self._commit("rate recipe")
        return (
            self.db.query(RecipeRating)
            .filter(RecipeRating.recipe_id == recipe_id, RecipeRating.user_id == user.id)
            .one()
        )
