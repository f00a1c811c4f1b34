"""Filtered, paginated recipe listings.

Every listing endpoint funnels through :class:`RecipeQueryBuilder`. Filters on
joined child rows (tags, ingredients) and on the derived average rating are
expressed as correlated subqueries, so the row window and the reported total
both reflect the complete set of matching recipes.
"""

import logging
import math
import operator
from collections.abc import Callable
from dataclasses import dataclass, field

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Query, selectinload

from recipehub.gateway import DataGateway
from recipehub.models.enums import Difficulty
from recipehub.models.ingredient import Ingredient
from recipehub.models.recipe import Recipe, RecipeIngredient, RecipeRating, RecipeTag
from recipehub.models.tag import Tag
from recipehub.models.user import User
from recipehub.services.validation import sanitize_string

logger = logging.getLogger(__name__)

DEFAULT_SORT_FIELD = "created_at"
DEFAULT_SORT_ORDER = "desc"
SORT_FIELDS = (
    "created_at",
    "updated_at",
    "title",
    "prep_time",
    "cook_time",
    "servings",
    "difficulty",
    "rating",
)

RANGE_OPERATORS: dict[str, Callable] = {
    "gte": operator.ge,
    "lte": operator.le,
    "gt": operator.gt,
    "lt": operator.lt,
    "eq": operator.eq,
}

# Tolerance for "eq" comparisons against an average rating
RATING_EQ_TOLERANCE = 0.1


@dataclass
class RecipeFilters:
    """Everything a caller can narrow or order a recipe listing by."""

    search: str | None = None
    difficulty: str | None = None
    tags: list[str] = field(default_factory=list)
    tag_id: int | None = None
    ingredients: list[str] = field(default_factory=list)  # any of
    include_ingredients: list[str] = field(default_factory=list)  # all of
    exclude_ingredients: list[str] = field(default_factory=list)  # none of
    user_id: int | None = None
    public_only: bool = False
    title: str | None = None
    description: str | None = None
    author: str | None = None
    prep_time: str | None = None  # "lte:30", bare value means lte
    cook_time: str | None = None  # "lte:30", bare value means lte
    servings: str | None = None  # "gte:4", bare value means eq
    rating: str | None = None  # "gte:4", bare value means gte
    sort_by: str = DEFAULT_SORT_FIELD
    sort_order: str = DEFAULT_SORT_ORDER


@dataclass
class RecipePage:
    """One page of a recipe listing."""

    recipes: list[Recipe]
    page: int
    limit: int
    total: int


def split_terms(raw: str | None) -> list[str]:
    """Split a comma-separated filter into lowercase, non-empty terms."""
    if not raw:
        return []
    return [term.strip().lower() for term in raw.split(",") if term.strip()]


def parse_range_filter(expression: str | None, default_op: str) -> tuple[str, float] | None:
    """Parse "op:value" (or a bare value using ``default_op``).

    Unknown operators fall back to ``default_op``; a value that is not a finite
    number disables the filter.
    """
    if not expression:
        return None
    if ":" in expression:
        op, _, raw_value = expression.partition(":")
        op = op.strip().lower()
    else:
        op, raw_value = default_op, expression
    if op not in RANGE_OPERATORS:
        op = default_op
    try:
        value = float(raw_value)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return op, value


def normalize_sort(sort_by: str | None, sort_order: str | None) -> tuple[str, str]:
    """Whitelist the sort field and direction, falling back to newest first."""
    field_name = sort_by if sort_by in SORT_FIELDS else DEFAULT_SORT_FIELD
    order = (sort_order or "").lower()
    if order not in ("asc", "desc"):
        order = DEFAULT_SORT_ORDER
    return field_name, order


def average_rating_expression():
    """Correlated scalar subquery computing a recipe's mean rating, 0 when unrated."""
    return (
        select(func.coalesce(func.avg(RecipeRating.rating), 0))
        .where(RecipeRating.recipe_id == Recipe.id)
        .correlate(Recipe)
        .scalar_subquery()
    )


def _ingredient_exists(terms: list[str]):
    """EXISTS clause: the recipe has an ingredient whose name contains any of the terms."""
    return (
        select(RecipeIngredient.id)
        .join(Ingredient, RecipeIngredient.ingredient_id == Ingredient.id)
        .where(
            RecipeIngredient.recipe_id == Recipe.id,
            or_(*[Ingredient.name.icontains(term, autoescape=True) for term in terms]),
        )
        .exists()
    )


def _tag_exists(terms: list[str]):
    """EXISTS clause: the recipe has a tag whose name contains any of the terms."""
    return (
        select(RecipeTag.id)
        .join(Tag, RecipeTag.tag_id == Tag.id)
        .where(
            RecipeTag.recipe_id == Recipe.id,
            or_(*[Tag.name.icontains(term, autoescape=True) for term in terms]),
        )
        .exists()
    )


class RecipeQueryBuilder:
    """Compose recipe listings on top of a gateway's row-level policy."""

    def __init__(self, gateway: DataGateway):
        self.gateway = gateway

    def _apply_visibility(self, query: Query, filters: RecipeFilters) -> Query:
        if filters.user_id is not None:
            return query.filter(Recipe.user_id == filters.user_id)
        if filters.public_only:
            return query.filter(Recipe.is_public.is_(True))
        viewer_id = self.gateway.user_id
        if viewer_id is not None:
            return query.filter(or_(Recipe.is_public.is_(True), Recipe.user_id == viewer_id))
        return query.filter(Recipe.is_public.is_(True))

    def _apply_text_filters(self, query: Query, filters: RecipeFilters) -> Query:
        search = sanitize_string(filters.search, 100)
        if search:
            query = query.filter(
                or_(
                    Recipe.title.icontains(search, autoescape=True),
                    Recipe.description.icontains(search, autoescape=True),
                    Recipe.instructions.icontains(search, autoescape=True),
                )
            )
        if filters.title:
            query = query.filter(Recipe.title.icontains(filters.title, autoescape=True))
        if filters.description:
            query = query.filter(
                Recipe.description.icontains(filters.description, autoescape=True)
            )
        if filters.author:
            viewer_id = self.gateway.user_id
            query = query.filter(
                Recipe.user.has(
                    and_(
                        User.full_name.icontains(filters.author, autoescape=True),
                        or_(User.show_author_name.is_(True), User.id == viewer_id),
                    )
                )
            )
        return query

    def _apply_attribute_filters(self, query: Query, filters: RecipeFilters) -> Query:
        if filters.difficulty in Difficulty.values():
            query = query.filter(Recipe.difficulty == filters.difficulty)

        ranges = (
            (Recipe.prep_time, filters.prep_time, "lte"),
            (Recipe.cook_time, filters.cook_time, "lte"),
            (Recipe.servings, filters.servings, "eq"),
        )
        for column, expression, default_op in ranges:
            parsed = parse_range_filter(expression, default_op)
            if parsed is not None:
                op, value = parsed
                query = query.filter(RANGE_OPERATORS[op](column, value))
        return query

    def _apply_child_filters(self, query: Query, filters: RecipeFilters) -> Query:
        if filters.tags:
            query = query.filter(_tag_exists(filters.tags))
        if filters.tag_id is not None:
            query = query.filter(Recipe.recipe_tags.any(RecipeTag.tag_id == filters.tag_id))
        if filters.ingredients:
            query = query.filter(_ingredient_exists(filters.ingredients))
        for term in filters.include_ingredients:
            query = query.filter(_ingredient_exists([term]))
        if filters.exclude_ingredients:
            query = query.filter(~_ingredient_exists(filters.exclude_ingredients))

        parsed = parse_range_filter(filters.rating, "gte")
        if parsed is not None:
            op, value = parsed
            average = average_rating_expression()
            if op == "eq":
                query = query.filter(
                    and_(
                        average > value - RATING_EQ_TOLERANCE,
                        average < value + RATING_EQ_TOLERANCE,
                    )
                )
            else:
                query = query.filter(RANGE_OPERATORS[op](average, value))
        return query

    def build(self, filters: RecipeFilters) -> Query:
        """Return the filtered (unordered, unpaginated) recipe query."""
        query = self.gateway.recipes()
        query = self._apply_visibility(query, filters)
        query = self._apply_text_filters(query, filters)
        query = self._apply_attribute_filters(query, filters)
        return self._apply_child_filters(query, filters)

    def list(self, filters: RecipeFilters, page: int, limit: int) -> RecipePage:
        """Fetch one page of matching recipes with their relations eagerly loaded."""
        query = self.build(filters)
        total = query.count()

        sort_field, sort_order = normalize_sort(filters.sort_by, filters.sort_order)
        if sort_field == "rating":
            sort_column = average_rating_expression()
        else:
            sort_column = getattr(Recipe, sort_field)
        if sort_order == "asc":
            query = query.order_by(sort_column.asc(), Recipe.id.asc())
        else:
            query = query.order_by(sort_column.desc(), Recipe.id.desc())

        recipes = (
            query.options(
                selectinload(Recipe.user),
                selectinload(Recipe.recipe_tags).selectinload(RecipeTag.tag),
                selectinload(Recipe.recipe_ingredients).selectinload(
                    RecipeIngredient.ingredient
                ),
                selectinload(Recipe.ratings).selectinload(RecipeRating.user),
            )
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        logger.debug(f"Recipe listing page {page}: {len(recipes)} of {total} matches")
        return RecipePage(recipes=recipes, page=page, limit=limit, total=total)
