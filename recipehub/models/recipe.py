"""Recipe model and its join tables."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    false,
)
from sqlalchemy.orm import relationship

from recipehub.database import Base
from recipehub.models.mixins import CreatedAtMixin, TimestampMixin


class Recipe(Base, TimestampMixin):
    """Recipe authored by a user."""

    __tablename__ = "recipes"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    instructions = Column(Text, nullable=False)  # Markdown
    prep_time = Column(Integer, nullable=True)  # minutes
    cook_time = Column(Integer, nullable=True)  # minutes
    servings = Column(Integer, nullable=True)
    difficulty = Column(String(10), nullable=True)  # Difficulty enum value
    image_url = Column(String(500), nullable=True)
    is_public = Column(Boolean, nullable=False, default=False, server_default=false())

    # Relationships
    user = relationship("User", backref="recipes")
    recipe_ingredients = relationship(
        "RecipeIngredient",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeIngredient.id",
    )
    recipe_tags = relationship(
        "RecipeTag",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeTag.id",
    )
    ratings = relationship(
        "RecipeRating",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeRating.created_at.desc()",
    )

    @property
    def tags(self) -> list:
        """Tags attached to the recipe."""
        return [link.tag for link in self.recipe_tags]

    @property
    def total_ratings(self) -> int:
        """Number of ratings the recipe has received."""
        return len(self.ratings)

    @property
    def average_rating(self) -> float:
        """Arithmetic mean of all ratings, 0 when unrated."""
        if not self.ratings:
            return 0
        return sum(r.rating for r in self.ratings) / len(self.ratings)


class RecipeIngredient(Base, CreatedAtMixin):
    """Ingredient line within a recipe."""

    __tablename__ = "recipe_ingredients"
    __table_args__ = (
        UniqueConstraint("recipe_id", "ingredient_id", name="uq_recipe_ingredient"),
    )

    id = Column(Integer, primary_key=True, index=True)
    recipe_id = Column(
        Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    ingredient_id = Column(Integer, ForeignKey("ingredients.id"), nullable=False, index=True)
    quantity = Column(Float, nullable=True)
    unit = Column(String(50), nullable=True)
    notes = Column(String(500), nullable=True)

    # Relationships
    recipe = relationship("Recipe", back_populates="recipe_ingredients")
    ingredient = relationship("Ingredient", back_populates="recipe_links")


class RecipeTag(Base, CreatedAtMixin):
    """Tag attached to a recipe."""

    __tablename__ = "recipe_tags"
    __table_args__ = (UniqueConstraint("recipe_id", "tag_id", name="uq_recipe_tag"),)

    id = Column(Integer, primary_key=True, index=True)
    recipe_id = Column(
        Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    tag_id = Column(Integer, ForeignKey("tags.id"), nullable=False, index=True)

    # Relationships
    recipe = relationship("Recipe", back_populates="recipe_tags")
    tag = relationship("Tag")


class RecipeRating(Base, TimestampMixin):
    """A user's rating of a recipe. One per (recipe, user)."""

    __tablename__ = "recipe_ratings"
    __table_args__ = (
        UniqueConstraint("recipe_id", "user_id", name="uq_recipe_rating_user"),
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_recipe_rating_range"),
    )

    id = Column(Integer, primary_key=True, index=True)
    recipe_id = Column(
        Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    rating = Column(Integer, nullable=False)
    review = Column(Text, nullable=True)

    # Relationships
    recipe = relationship("Recipe", back_populates="ratings")
    user = relationship("User")
