"""Tag API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from recipehub.api.dependencies import get_anonymous_gateway, get_current_user
from recipehub.api.responses import paginated, send_success
from recipehub.config import get_settings
from recipehub.database import get_db
from recipehub.gateway import DataGateway, upsert_statement
from recipehub.models.recipe import RecipeTag
from recipehub.models.tag import Tag
from recipehub.models.user import User
from recipehub.schemas.ingredient import RecipeUsage, UsageResponse
from recipehub.schemas.tag import TagBulkCreate, TagCreate, TagDetailResponse, TagResponse
from recipehub.services.recipe_query import RecipeFilters, RecipeQueryBuilder
from recipehub.services.validation import (
    ensure_valid,
    resolve_tag_color,
    validate_pagination,
    validate_required_fields,
    validate_tag_data,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/tags", tags=["tags"])

TAG_PAGE_SIZE = 50


def get_tag_or_404(db: Session, tag_id: int) -> Tag:
    tag = db.query(Tag).filter(Tag.id == tag_id).first()
    if not tag:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tag not found")
    return tag


def usage_count(db: Session, tag_id: int) -> int:
    return db.query(func.count(RecipeTag.id)).filter(RecipeTag.tag_id == tag_id).scalar()


def _detail(tag: Tag, count: int) -> TagDetailResponse:
    return TagDetailResponse(
        id=tag.id, name=tag.name, color=tag.color, created_at=tag.created_at, usage_count=count
    )


@router.get("")
def list_tags(
    db: Annotated[Session, Depends(get_db)],
    page: str | None = None,
    limit: str | None = None,
    search: str | None = None,
):
    """List tags alphabetically."""
    window = validate_pagination(page, limit, TAG_PAGE_SIZE)

    query = db.query(Tag)
    if search:
        query = query.filter(Tag.name.icontains(search.strip(), autoescape=True))

    total = query.count()
    tags = query.order_by(Tag.name).offset(window.offset).limit(window.limit).all()
    items = [TagResponse.model_validate(tag) for tag in tags]
    return send_success(paginated(items, window.page, window.limit, total, key="tags"))


@router.get("/popular")
def popular_tags(
    db: Annotated[Session, Depends(get_db)],
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
):
    """Most used tags first."""
    count = func.count(RecipeTag.id).label("usage_count")
    rows = (
        db.query(Tag, count)
        .outerjoin(RecipeTag, RecipeTag.tag_id == Tag.id)
        .group_by(Tag.id)
        .order_by(count.desc(), Tag.name)
        .limit(limit)
        .all()
    )
    return send_success({"tags": [_detail(tag, usage) for tag, usage in rows]})


@router.get("/{tag_id}")
def get_tag(tag_id: int, db: Annotated[Session, Depends(get_db)]):
    tag = get_tag_or_404(db, tag_id)
    return send_success({"tag": _detail(tag, usage_count(db, tag_id))})


@router.post("", status_code=status.HTTP_201_CREATED)
def create_tag(
    data: TagCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Create a tag. Without a color the default one is used."""
    ensure_valid(validate_tag_data(data.model_dump()))
    name = data.name.strip()

    if db.query(Tag).filter(Tag.name == name).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Tag already exists")

    tag = Tag(name=name, color=resolve_tag_color(data.color))
    db.add(tag)
    db.commit()
    db.refresh(tag)
    logger.info(f"User {current_user.id} created tag {tag.id}")
    return send_success(
        {"tag": TagResponse.model_validate(tag)},
        "Tag created successfully",
        status.HTTP_201_CREATED,
    )


@router.put("/{tag_id}")
def update_tag(
    tag_id: int,
    data: TagCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    ensure_valid(validate_tag_data(data.model_dump()))
    tag = get_tag_or_404(db, tag_id)
    name = data.name.strip()

    if db.query(Tag).filter(Tag.name == name, Tag.id != tag_id).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A tag with this name already exists",
        )

    tag.name = name
    tag.color = resolve_tag_color(data.color)
    db.commit()
    db.refresh(tag)
    return send_success({"tag": TagResponse.model_validate(tag)}, "Tag updated successfully")


@router.delete("/{tag_id}")
def delete_tag(
    tag_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Delete a tag that no recipe uses."""
    tag = get_tag_or_404(db, tag_id)
    if usage_count(db, tag_id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Cannot delete tag that is used in recipes",
        )

    db.delete(tag)
    db.commit()
    logger.info(f"User {current_user.id} deleted tag {tag_id}")
    return send_success(message="Tag deleted successfully")


@router.get("/{tag_id}/usage")
def get_tag_usage(tag_id: int, db: Annotated[Session, Depends(get_db)]):
    """Count the recipes carrying a tag; only public ones are listed."""
    get_tag_or_404(db, tag_id)
    links = (
        db.query(RecipeTag)
        .options(joinedload(RecipeTag.recipe))
        .filter(RecipeTag.tag_id == tag_id)
        .order_by(RecipeTag.id)
        .all()
    )
    public_links = [link for link in links if link.recipe.is_public]
    usage = UsageResponse(
        total_usage=len(links),
        public_usage=len(public_links),
        recipes=[RecipeUsage(id=link.recipe.id, title=link.recipe.title) for link in public_links],
    )
    return send_success(usage)


@router.get("/{tag_id}/recipes")
def get_tag_recipes(
    tag_id: int,
    gateway: Annotated[DataGateway, Depends(get_anonymous_gateway)],
    page: str | None = None,
    limit: str | None = None,
):
    """Public recipes carrying a tag."""
    get_tag_or_404(gateway.db, tag_id)
    builder = RecipeQueryBuilder(gateway)
    window = validate_pagination(page, limit, get_settings().default_page_size)
    result = builder.list(RecipeFilters(tag_id=tag_id, public_only=True), window.page, window.limit)
    recipes = [gateway.present_recipe(recipe) for recipe in result.recipes]
    return send_success(paginated(recipes, result.page, result.limit, result.total, key="recipes"))


@router.post("/bulk", status_code=status.HTTP_201_CREATED)
def bulk_create_tags(
    data: TagBulkCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Create many tags. Invalid colors fall back to the default color."""
    if not data.tags:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Tags array is required",
        )

    results: dict[str, list] = {"created": [], "existing": [], "errors": []}
    for entry in data.tags:
        if validate_required_fields(entry.model_dump(), ["name"]) is not None:
            results["errors"].append({"tag": entry, "error": "Name is required"})
            continue

        name = entry.name.strip()
        stmt = (
            upsert_statement(db, Tag)
            .values(name=name, color=resolve_tag_color(entry.color))
            .on_conflict_do_nothing(index_elements=["name"])
        )
        inserted = db.execute(stmt).rowcount == 1
        tag = db.query(Tag).filter(Tag.name == name).one()
        results["created" if inserted else "existing"].append(TagResponse.model_validate(tag))

    db.commit()
    logger.info(
        f"Bulk tag import by user {current_user.id}: "
        f"{len(results['created'])} created, {len(results['existing'])} existing"
    )
    return send_success({"results": results}, "Bulk tag creation completed", status.HTTP_201_CREATED)
