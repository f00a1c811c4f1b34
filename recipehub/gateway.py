"""Scoped data access.

A :class:`DataGateway` binds a database session to the identity making the
request and applies the row-level access policies for that identity, so that
route handlers never see rows the caller is not allowed to see:

* ``ANONYMOUS`` sees public recipes only.
* ``USER`` sees public recipes plus its own private ones, and may mutate only
  rows it owns.
* ``SERVICE`` sees everything. It exists for the one trusted write that has no
  caller session yet: bootstrapping a user profile at registration.

The same layer decides how author data is rendered: a user's name and avatar
are only exposed when their ``show_author_name`` preference allows it or the
viewer is that user.
"""

import logging
from datetime import UTC, datetime
from enum import Enum

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Query, Session

from recipehub.models.recipe import Recipe
from recipehub.models.user import User
from recipehub.schemas.auth import AuthorResponse
from recipehub.schemas.recipe import (
    RatingResponse,
    RecipeDetailResponse,
    RecipeIngredientResponse,
    RecipeResponse,
)
from recipehub.schemas.tag import TagResponse

logger = logging.getLogger(__name__)


class Scope(str, Enum):
    """Privilege level a gateway operates with."""

    ANONYMOUS = "anonymous"
    USER = "user"
    SERVICE = "service"


def upsert_statement(db: Session, model):
    """Return an INSERT for ``model`` that supports ON CONFLICT on the session's dialect."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql_insert(model)
    if dialect == "sqlite":
        return sqlite_insert(model)
    raise RuntimeError(f"Upserts are not supported on the {dialect} dialect")


class DataGateway:
    """Database session bound to a caller identity and its access policies."""

    def __init__(self, db: Session, user: User | None = None, scope: Scope | None = None):
        self.db = db
        self.user = user
        if scope is None:
            scope = Scope.USER if user is not None else Scope.ANONYMOUS
        if scope == Scope.USER and user is None:
            raise ValueError("A user-scoped gateway needs a user")
        self.scope = scope

    @property
    def user_id(self) -> int | None:
        return self.user.id if self.user is not None else None

    def require_user(self) -> User:
        """Return the bound user or fail with 401."""
        if self.user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Authentication required",
                headers={"WWW-Authenticate": "Bearer"},
            )
        return self.user

    # --- Recipes ---

    def recipes(self) -> Query:
        """Recipe query restricted to the rows this identity may read."""
        query = self.db.query(Recipe)
        if self.scope == Scope.SERVICE:
            return query
        if self.scope == Scope.USER:
            return query.filter(or_(Recipe.is_public.is_(True), Recipe.user_id == self.user_id))
        return query.filter(Recipe.is_public.is_(True))

    def get_recipe(self, recipe_id: int) -> Recipe | None:
        """Get a recipe if it exists and is visible to this identity."""
        return self.recipes().filter(Recipe.id == recipe_id).first()

    def require_recipe(self, recipe_id: int) -> Recipe:
        """Get a visible recipe or fail with 404."""
        recipe = self.get_recipe(recipe_id)
        if recipe is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recipe not found")
        return recipe

    def require_owned_recipe(self, recipe_id: int, action: str = "modify") -> Recipe:
        """Get a recipe the caller owns: 404 when invisible, 403 when owned by someone else."""
        user = self.require_user()
        recipe = self.require_recipe(recipe_id)
        if recipe.user_id != user.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Not authorized to {action} this recipe",
            )
        return recipe

    # --- Users ---

    def create_profile(
        self,
        email: str,
        password_hash: str,
        full_name: str | None = None,
        confirmed: bool = False,
    ) -> User:
        """Create a user profile row. Only the service scope may do this."""
        if self.scope != Scope.SERVICE:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied",
            )
        user = User(
            email=email,
            password_hash=password_hash,
            full_name=full_name or "",
            email_confirmed_at=datetime.now(UTC) if confirmed else None,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"Created profile for user {user.id}")
        return user

    def author_name_visible(self, author: User | None) -> bool:
        """Check whether the author's identity may be shown to this viewer."""
        if author is None:
            return False
        if self.scope == Scope.SERVICE or author.id == self.user_id:
            return True
        return bool(author.show_author_name)

    def present_author(self, author: User | None) -> AuthorResponse | None:
        if author is None:
            return None
        if self.author_name_visible(author):
            return AuthorResponse(
                id=author.id, full_name=author.full_name, avatar_url=author.avatar_url
            )
        return AuthorResponse(id=author.id, full_name=None, avatar_url=None)

    def present_recipe(
        self, recipe: Recipe, include_ratings: bool = False
    ) -> RecipeResponse | RecipeDetailResponse:
        """Render a recipe with its relations, derived rating stats and privacy-filtered author."""
        fields = {
            "id": recipe.id,
            "user_id": recipe.user_id,
            "title": recipe.title,
            "description": recipe.description,
            "instructions": recipe.instructions,
            "prep_time": recipe.prep_time,
            "cook_time": recipe.cook_time,
            "servings": recipe.servings,
            "difficulty": recipe.difficulty,
            "image_url": recipe.image_url,
            "is_public": recipe.is_public,
            "created_at": recipe.created_at,
            "updated_at": recipe.updated_at,
            "author": self.present_author(recipe.user),
            "tags": [TagResponse.model_validate(tag) for tag in recipe.tags],
            "ingredients": [
                RecipeIngredientResponse(
                    id=line.id,
                    ingredient_id=line.ingredient_id,
                    name=line.ingredient.name,
                    category=line.ingredient.category,
                    quantity=line.quantity,
                    unit=line.unit,
                    notes=line.notes,
                )
                for line in recipe.recipe_ingredients
            ],
            "average_rating": recipe.average_rating,
            "total_ratings": recipe.total_ratings,
        }
        if not include_ratings:
            return RecipeResponse(**fields)

        ratings = [
            RatingResponse(
                id=rating.id,
                recipe_id=rating.recipe_id,
                user_id=rating.user_id,
                rating=rating.rating,
                review=rating.review,
                reviewer_name=rating.user.full_name
                if self.author_name_visible(rating.user)
                else None,
                created_at=rating.created_at,
                updated_at=rating.updated_at,
            )
            for rating in recipe.ratings
        ]
        return RecipeDetailResponse(**fields, ratings=ratings)
