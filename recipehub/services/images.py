"""Image processing and storage for recipe pictures and avatars."""

import logging
import time
import uuid
from datetime import UTC, datetime
from io import BytesIO
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from recipehub.config import get_settings

logger = logging.getLogger(__name__)

RECIPES_DIR = "recipes"
AVATARS_DIR = "avatars"

RECIPE_IMAGE_MAX_SIZE = (800, 600)
AVATAR_SIZE = (200, 200)
JPEG_QUALITY = 85


class ImageProcessingError(Exception):
    """Raised when uploaded data cannot be decoded or stored as an image."""


def upload_root() -> Path:
    return Path(get_settings().upload_path)


def ensure_upload_dirs() -> None:
    """Create the upload directories if they do not exist yet."""
    root = upload_root()
    for subdir in (RECIPES_DIR, AVATARS_DIR):
        (root / subdir).mkdir(parents=True, exist_ok=True)


def _open_image(data: bytes) -> Image.Image:
    try:
        img = Image.open(BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as e:
        raise ImageProcessingError(f"Invalid or corrupted image: {e}") from e

    # Apply EXIF rotation before resizing, then drop alpha for JPEG
    img = ImageOps.exif_transpose(img)
    if img.mode in ("RGBA", "LA", "P"):
        img = img.convert("RGBA")
        background = Image.new("RGB", img.size, (255, 255, 255))
        background.paste(img, mask=img.split()[-1])
        img = background
    elif img.mode != "RGB":
        img = img.convert("RGB")
    return img


def _save_jpeg(img: Image.Image, subdir: str, filename: str) -> Path:
    ensure_upload_dirs()
    path = upload_root() / subdir / filename
    img.save(path, "JPEG", quality=JPEG_QUALITY, progressive=True, optimize=True)
    return path


def save_recipe_image(data: bytes) -> str:
    """Store a recipe image resized to fit 800x600 (never enlarged). Returns its URL path."""
    img = _open_image(data)
    img.thumbnail(RECIPE_IMAGE_MAX_SIZE, Image.Resampling.LANCZOS)
    filename = f"recipe_{uuid.uuid4()}.jpg"
    _save_jpeg(img, RECIPES_DIR, filename)
    logger.info(f"Saved recipe image {filename}")
    return f"/uploads/{RECIPES_DIR}/{filename}"


def save_avatar(data: bytes, user_id: int) -> str:
    """Store an avatar cropped to a centered 200x200 square. Returns its URL path."""
    img = _open_image(data)
    img = ImageOps.fit(img, AVATAR_SIZE, Image.Resampling.LANCZOS, centering=(0.5, 0.5))
    filename = f"avatar_{user_id}_{int(time.time() * 1000)}.jpg"
    _save_jpeg(img, AVATARS_DIR, filename)
    logger.info(f"Saved avatar {filename} for user {user_id}")
    return f"/uploads/{AVATARS_DIR}/{filename}"


def is_safe_filename(filename: str) -> bool:
    return bool(filename) and ".." not in filename and "/" not in filename and "\\" not in filename


def find_image(filename: str) -> Path | None:
    """Locate a stored image in the recipe or avatar directory."""
    if not is_safe_filename(filename):
        return None
    for subdir in (RECIPES_DIR, AVATARS_DIR):
        path = upload_root() / subdir / filename
        if path.is_file():
            return path
    return None


def image_kind(path: Path) -> str:
    return "avatar" if path.parent.name == AVATARS_DIR else "recipe"


def image_url(path: Path) -> str:
    return f"/uploads/{path.parent.name}/{path.name}"


def image_info(path: Path) -> dict:
    """Describe a stored image: dimensions, format and size on disk."""
    with Image.open(path) as img:
        width, height = img.size
        image_format = img.format
    stat = path.stat()
    return {
        "filename": path.name,
        "type": image_kind(path),
        "size": stat.st_size,
        "width": width,
        "height": height,
        "format": image_format,
        "url": image_url(path),
        "modified": datetime.fromtimestamp(stat.st_mtime, UTC),
    }


def delete_image(path: Path) -> None:
    path.unlink()
    logger.info(f"Deleted image {path.name}")


def resize_image(path: Path, width: int, height: int, quality: int = JPEG_QUALITY) -> Path:
    """Write a center-cropped ``width`` x ``height`` copy next to the original."""
    try:
        with Image.open(path) as source:
            img = ImageOps.fit(
                source.convert("RGB"), (width, height), Image.Resampling.LANCZOS
            )
    except (UnidentifiedImageError, OSError) as e:
        raise ImageProcessingError(f"Invalid or corrupted image: {e}") from e

    target = path.with_name(f"{path.stem}_{width}x{height}{path.suffix}")
    img.save(target, "JPEG", quality=quality, progressive=True, optimize=True)
    logger.info(f"Resized {path.name} to {width}x{height}")
    return target
