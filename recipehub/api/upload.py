"""Image upload API endpoints.

These endpoints must remain async because UploadFile.read() is async. Image
decoding and re-encoding run in the threadpool.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from recipehub.api.dependencies import get_current_user
from recipehub.api.responses import send_success
from recipehub.config import get_settings
from recipehub.database import get_db
from recipehub.models.user import User
from recipehub.schemas.upload import ImageResizeRequest
from recipehub.services.images import (
    AVATARS_DIR,
    ImageProcessingError,
    delete_image,
    find_image,
    image_info,
    image_url,
    is_safe_filename,
    resize_image,
    save_avatar,
    save_recipe_image,
)
from recipehub.services.validation import ensure_valid, validate_file_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/upload", tags=["upload"])

MAX_FILES_PER_REQUEST = 5


async def read_image_upload(file: UploadFile) -> bytes:
    """Read an uploaded image, rejecting other content types and oversized files."""
    max_size = get_settings().max_file_size
    # Reject on the declared size first so oversized bodies are never decoded
    ensure_valid(validate_file_upload(file.content_type, file.size or 0, max_size))
    data = await file.read()
    ensure_valid(validate_file_upload(file.content_type, len(data), max_size))
    return data


def _filename(url: str) -> str:
    return url.rsplit("/", 1)[-1]


def locate_image(filename: str):
    if not is_safe_filename(filename):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid filename")
    path = find_image(filename)
    if path is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Image not found")
    return path


def _require_avatar_owner(path, user: User, action: str) -> None:
    if path.parent.name == AVATARS_DIR and not path.name.startswith(f"avatar_{user.id}_"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Not authorized to {action} this image",
        )


@router.post("/recipe-image")
async def upload_recipe_image(
    current_user: Annotated[User, Depends(get_current_user)],
    image: Annotated[UploadFile | None, File(description="Recipe image")] = None,
):
    """Upload a recipe image, resized to fit 800x600 and stored as JPEG."""
    if image is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="No image file provided"
        )
    data = await read_image_upload(image)
    try:
        url = await run_in_threadpool(save_recipe_image, data)
    except ImageProcessingError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    return send_success(
        {"image_url": url, "filename": _filename(url)}, "Recipe image uploaded successfully"
    )


@router.post("/avatar")
async def upload_avatar(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    avatar: Annotated[UploadFile | None, File(description="Avatar image")] = None,
):
    """Upload an avatar (200x200 crop) and set it on the caller's profile."""
    if avatar is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="No avatar file provided"
        )
    data = await read_image_upload(avatar)
    try:
        url = await run_in_threadpool(save_avatar, data, current_user.id)
    except ImageProcessingError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    current_user.avatar_url = url
    db.commit()

    return send_success(
        {"avatar_url": url, "filename": _filename(url)}, "Avatar uploaded successfully"
    )


@router.post("/recipe-images")
async def upload_recipe_images(
    current_user: Annotated[User, Depends(get_current_user)],
    images: Annotated[list[UploadFile] | None, File(description="Recipe images")] = None,
):
    """Upload several recipe images. Failures are reported per file."""
    if not images:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="No image files provided"
        )
    if len(images) > MAX_FILES_PER_REQUEST:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Too many files. At most {MAX_FILES_PER_REQUEST} images per upload",
        )

    uploaded = []
    errors = []
    for image in images:
        try:
            data = await read_image_upload(image)
            url = await run_in_threadpool(save_recipe_image, data)
        except HTTPException as e:
            errors.append({"file": image.filename, "error": e.detail})
            continue
        except ImageProcessingError as e:
            errors.append({"file": image.filename, "error": str(e)})
            continue
        uploaded.append(
            {"original_name": image.filename, "filename": _filename(url), "image_url": url}
        )

    return send_success(
        {
            "uploaded_images": uploaded,
            "errors": errors,
            "total_uploaded": len(uploaded),
            "total_errors": len(errors),
        },
        "Image upload completed",
    )


@router.delete("/image/{filename}")
def remove_image(
    filename: str,
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Delete a stored image. Avatars can only be deleted by their owner."""
    path = locate_image(filename)
    _require_avatar_owner(path, current_user, "delete")
    delete_image(path)
    return send_success(message="Image deleted successfully")


@router.get("/image/{filename}/info")
def get_image_info(filename: str):
    path = locate_image(filename)
    try:
        info = image_info(path)
    except (ImageProcessingError, OSError) as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get image info",
        ) from e
    return send_success(info)


@router.post("/image/{filename}/resize")
def resize_stored_image(
    filename: str,
    data: ImageResizeRequest,
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Create a resized copy of a stored image."""
    path = locate_image(filename)
    _require_avatar_owner(path, current_user, "resize")
    try:
        target = resize_image(path, data.width, data.height, data.quality)
    except ImageProcessingError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    return send_success(
        {
            "original_filename": filename,
            "new_filename": target.name,
            "image_url": image_url(target),
            "dimensions": {"width": data.width, "height": data.height},
            "quality": data.quality,
        },
        "Image resized successfully",
    )
