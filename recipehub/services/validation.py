"""Field-level validation helpers.

Every ``validate_*`` function is pure: it inspects raw input and returns
``None`` when the input is acceptable or a :class:`ValidationIssue` carrying
the message and HTTP status to report. Handlers run them before touching the
database and raise the first issue with :func:`ensure_valid`.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from email_validator import EmailNotValidError, validate_email as check_email_address
from fastapi import HTTPException, status

from recipehub.models.enums import Difficulty
from recipehub.models.tag import DEFAULT_TAG_COLOR

HEX_COLOR_PATTERN = re.compile(r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}

MAX_PAGE_SIZE = 100
# Keeps (page - 1) * limit within a signed 64-bit OFFSET
MAX_PAGE = (2**63 - 1) // MAX_PAGE_SIZE


@dataclass(frozen=True)
class ValidationIssue:
    """A rejected input, ready to be turned into an error response."""

    message: str
    status_code: int = status.HTTP_400_BAD_REQUEST


@dataclass(frozen=True)
class Pagination:
    """Normalized pagination window."""

    page: int
    limit: int
    offset: int


def ensure_valid(*issues: ValidationIssue | None) -> None:
    """Raise the first issue found as an HTTPException."""
    for issue in issues:
        if issue is not None:
            raise HTTPException(status_code=issue.status_code, detail=issue.message)


def parse_int(value: Any) -> int | None:
    """Parse a leading integer the way form inputs are usually read, or return None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    match = re.match(r"^\s*([+-]?\d+)", str(value))
    return int(match.group(1)) if match else None


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or value.strip() == ""


def validate_email(email: Any) -> ValidationIssue | None:
    if not email or not isinstance(email, str):
        return ValidationIssue("Email is required")
    try:
        check_email_address(email, check_deliverability=False)
    except EmailNotValidError:
        return ValidationIssue("Invalid email format")
    return None


def validate_password(password: Any, min_length: int = 6) -> ValidationIssue | None:
    if not password or not isinstance(password, str):
        return ValidationIssue("Password is required")
    if len(password) < min_length:
        return ValidationIssue(f"Password must be at least {min_length} characters long")
    return None


def validate_recipe_data(data: Mapping[str, Any]) -> ValidationIssue | None:
    """Check title, instructions, numeric fields and difficulty of a recipe payload."""
    if _is_blank(data.get("title")):
        return ValidationIssue("Recipe title is required")
    if _is_blank(data.get("instructions")):
        return ValidationIssue("Recipe instructions are required")

    for field in ("prep_time", "cook_time", "servings"):
        if data.get(field) is None:
            continue
        value = parse_int(data[field])
        if value is None or value < 0:
            return ValidationIssue(f"{field} must be a positive number")

    difficulty = data.get("difficulty")
    if difficulty and difficulty not in Difficulty.values():
        return ValidationIssue("Difficulty must be easy, medium, or hard")

    return None


def validate_ingredient_data(data: Mapping[str, Any]) -> ValidationIssue | None:
    if _is_blank(data.get("name")):
        return ValidationIssue("Ingredient name is required")
    return None


def validate_tag_data(data: Mapping[str, Any]) -> ValidationIssue | None:
    if _is_blank(data.get("name")):
        return ValidationIssue("Tag name is required")
    color = data.get("color")
    if color and not HEX_COLOR_PATTERN.match(color):
        return ValidationIssue("Color must be a valid hex color code")
    return None


def resolve_tag_color(color: str | None) -> str:
    """Return the color when it is a valid hex code, otherwise the default tag color."""
    if color and HEX_COLOR_PATTERN.match(color):
        return color
    return DEFAULT_TAG_COLOR


def validate_rating_data(data: Mapping[str, Any]) -> ValidationIssue | None:
    rating = data.get("rating")
    if rating is None or isinstance(rating, bool) or not isinstance(rating, int | float):
        return ValidationIssue("Rating is required and must be a number")
    if rating < 1 or rating > 5:
        return ValidationIssue("Rating must be between 1 and 5")
    if rating != int(rating):
        return ValidationIssue("Rating must be a whole number")
    return None


def validate_required_fields(
    data: Mapping[str, Any], required_fields: list[str]
) -> ValidationIssue | None:
    """Report every field that is missing, null or blank."""
    missing = [
        field
        for field in required_fields
        if data.get(field) is None
        or (isinstance(data.get(field), str) and data[field].strip() == "")
    ]
    if missing:
        return ValidationIssue(f"Missing required fields: {', '.join(missing)}")
    return None


def validate_file_upload(
    content_type: str | None,
    size: int,
    max_size: int,
    allowed_types: set[str] = ALLOWED_IMAGE_TYPES,
) -> ValidationIssue | None:
    if content_type not in allowed_types:
        return ValidationIssue("Invalid file type. Only images are allowed.")
    if size > max_size:
        return ValidationIssue(
            "File size exceeds maximum allowed limit",
            status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        )
    return None


def validate_pagination(page: Any, limit: Any, default_limit: int) -> Pagination:
    """Clamp page to [1, MAX_PAGE] and limit to [1, 100]; unparseable values use defaults."""
    page_value = min(MAX_PAGE, max(1, parse_int(page) or 1))
    limit_value = min(MAX_PAGE_SIZE, max(1, parse_int(limit) or default_limit))
    return Pagination(page=page_value, limit=limit_value, offset=(page_value - 1) * limit_value)


def sanitize_string(value: Any, max_length: int = 1000) -> str:
    if not value or not isinstance(value, str):
        return ""
    return value.strip()[:max_length]
