"""Tag model."""

from sqlalchemy import Column, Integer, String

from recipehub.database import Base
from recipehub.models.mixins import CreatedAtMixin

DEFAULT_TAG_COLOR = "#3B82F6"


class Tag(Base, CreatedAtMixin):
    """Global tag shared across recipes."""

    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False, index=True)
    color = Column(String(7), nullable=False, default=DEFAULT_TAG_COLOR)
