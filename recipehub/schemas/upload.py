"""Upload schemas."""

from pydantic import BaseModel, Field


class ImageResizeRequest(BaseModel):
    """Resize a stored image into a new center-cropped copy."""

    width: int = Field(..., ge=1, le=2000)
    height: int = Field(..., ge=1, le=2000)
    quality: int = Field(85, ge=1, le=100)
