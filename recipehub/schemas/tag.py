"""Tag schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class TagCreate(BaseModel):
    """Create or update a tag."""

    name: str | None = Field(None, max_length=100)
    color: str | None = Field(None, max_length=20)


class TagBulkCreate(BaseModel):
    """Create several tags at once."""

    tags: list[TagCreate] | None = None


class TagResponse(BaseModel):
    """Tag response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    color: str


class TagDetailResponse(TagResponse):
    """Tag with creation time and usage count."""

    created_at: datetime
    usage_count: int = 0
