"""Ingredient model."""

from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from recipehub.database import Base
from recipehub.models.mixins import CreatedAtMixin


class Ingredient(Base, CreatedAtMixin):
    """Global ingredient shared across recipes."""

    __tablename__ = "ingredients"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False, index=True)
    category = Column(String(100), nullable=True)

    # Relationships
    recipe_links = relationship("RecipeIngredient", back_populates="ingredient")
