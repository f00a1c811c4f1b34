"""Enums for model fields."""

from enum import Enum


class Difficulty(str, Enum):
    """Difficulty levels for recipes."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @classmethod
    def values(cls) -> list[str]:
        """Return the accepted string values in declaration order."""
        return [member.value for member in cls]
