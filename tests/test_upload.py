"""Image upload API tests."""

import asyncio
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

from recipehub.api import upload


def make_image(size=(1600, 900), color=(200, 100, 50), image_format="PNG") -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, image_format)
    return buffer.getvalue()


@pytest.fixture
def uploaded_image(client, auth_headers):
    response = client.post(
        "/api/v1/upload/recipe-image",
        headers=auth_headers,
        files={"image": ("dish.png", make_image(), "image/png")},
    )
    assert response.status_code == 200
    return response.json()


def test_upload_recipe_image(client, settings, uploaded_image):
    """Test recipe images are resized to fit 800x600 and stored as JPEG."""
    assert uploaded_image["message"] == "Recipe image uploaded successfully"
    assert uploaded_image["image_url"] == f"/uploads/recipes/{uploaded_image['filename']}"

    path = Path(settings.upload_path) / "recipes" / uploaded_image["filename"]
    with Image.open(path) as img:
        assert img.format == "JPEG"
        assert img.size == (800, 450)


def _event_loop_running() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


def test_image_processing_runs_off_the_event_loop(client, auth_headers, monkeypatch):
    """Test that Pillow work happens in a worker thread, not on the event loop."""
    calls = []

    def fake_save_recipe_image(data):
        calls.append(("recipe", _event_loop_running()))
        return "/uploads/recipes/recipe_fake.jpg"

    def fake_save_avatar(data, user_id):
        calls.append(("avatar", _event_loop_running()))
        return f"/uploads/avatars/avatar_{user_id}_1.jpg"

    monkeypatch.setattr(upload, "save_recipe_image", fake_save_recipe_image)
    monkeypatch.setattr(upload, "save_avatar", fake_save_avatar)

    image = ("dish.png", make_image((10, 10)), "image/png")
    client.post("/api/v1/upload/recipe-image", headers=auth_headers, files={"image": image})
    client.post("/api/v1/upload/avatar", headers=auth_headers, files={"avatar": image})
    client.post(
        "/api/v1/upload/recipe-images", headers=auth_headers, files=[("images", image)]
    )

    assert calls == [("recipe", False), ("avatar", False), ("recipe", False)]


def test_upload_small_image_is_not_enlarged(client, auth_headers, settings):
    response = client.post(
        "/api/v1/upload/recipe-image",
        headers=auth_headers,
        files={"image": ("small.png", make_image((100, 50)), "image/png")},
    )
    path = Path(settings.upload_path) / "recipes" / response.json()["filename"]
    with Image.open(path) as img:
        assert img.size == (100, 50)


def test_upload_requires_auth(client):
    response = client.post(
        "/api/v1/upload/recipe-image",
        files={"image": ("dish.png", make_image(), "image/png")},
    )
    assert response.status_code == 401


def test_upload_without_file(client, auth_headers):
    response = client.post("/api/v1/upload/recipe-image", headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "No image file provided"


def test_upload_rejects_non_images(client, auth_headers):
    response = client.post(
        "/api/v1/upload/recipe-image",
        headers=auth_headers,
        files={"image": ("notes.txt", b"hello", "text/plain")},
    )
    assert response.status_code == 400


def test_upload_rejects_corrupt_image(client, auth_headers):
    response = client.post(
        "/api/v1/upload/recipe-image",
        headers=auth_headers,
        files={"image": ("broken.png", b"not really a png", "image/png")},
    )
    assert response.status_code == 400


def test_upload_too_large(client, auth_headers, settings, monkeypatch):
    monkeypatch.setattr(settings, "max_file_size", 100)
    response = client.post(
        "/api/v1/upload/recipe-image",
        headers=auth_headers,
        files={"image": ("dish.png", make_image(), "image/png")},
    )
    assert response.status_code == 413


def test_upload_avatar_updates_profile(client, auth_headers, settings):
    """Test avatars are cropped to 200x200 and set on the profile."""
    response = client.post(
        "/api/v1/upload/avatar",
        headers=auth_headers,
        files={"avatar": ("me.jpg", make_image(image_format="JPEG"), "image/jpeg")},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["filename"].startswith(f"avatar_{auth_headers.user_id}_")

    path = Path(settings.upload_path) / "avatars" / data["filename"]
    with Image.open(path) as img:
        assert img.size == (200, 200)

    profile = client.get("/api/v1/auth/profile", headers=auth_headers).json()["user"]
    assert profile["avatar_url"] == data["avatar_url"]


def test_upload_multiple_images(client, auth_headers):
    """Test batch upload with a per-file failure."""
    response = client.post(
        "/api/v1/upload/recipe-images",
        headers=auth_headers,
        files=[
            ("images", ("a.png", make_image(), "image/png")),
            ("images", ("b.txt", b"text", "text/plain")),
        ],
    )
    assert response.status_code == 200
    data = response.json()
    assert data["total_uploaded"] == 1
    assert data["total_errors"] == 1
    assert data["uploaded_images"][0]["original_name"] == "a.png"
    assert data["errors"][0]["file"] == "b.txt"


def test_upload_too_many_images(client, auth_headers):
    files = [("images", (f"{i}.png", make_image((10, 10)), "image/png")) for i in range(6)]
    response = client.post("/api/v1/upload/recipe-images", headers=auth_headers, files=files)
    assert response.status_code == 400


def test_image_info(client, uploaded_image):
    response = client.get(f"/api/v1/upload/image/{uploaded_image['filename']}/info")
    assert response.status_code == 200
    data = response.json()
    assert data["type"] == "recipe"
    assert (data["width"], data["height"]) == (800, 450)
    assert data["format"] == "JPEG"

    assert client.get("/api/v1/upload/image/missing.jpg/info").status_code == 404


def test_image_filename_traversal(client, auth_headers):
    response = client.delete("/api/v1/upload/image/..secret.jpg", headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid filename"


def test_delete_image(client, auth_headers, settings, uploaded_image):
    filename = uploaded_image["filename"]
    response = client.delete(f"/api/v1/upload/image/{filename}", headers=auth_headers)
    assert response.status_code == 200
    assert not (Path(settings.upload_path) / "recipes" / filename).exists()

    response = client.delete(f"/api/v1/upload/image/{filename}", headers=auth_headers)
    assert response.status_code == 404


def test_delete_avatar_of_another_user(client, auth_headers, second_auth_headers):
    response = client.post(
        "/api/v1/upload/avatar",
        headers=auth_headers,
        files={"avatar": ("me.png", make_image(), "image/png")},
    )
    filename = response.json()["filename"]

    response = client.delete(f"/api/v1/upload/image/{filename}", headers=second_auth_headers)
    assert response.status_code == 403


def test_resize_image(client, auth_headers, uploaded_image):
    response = client.post(
        f"/api/v1/upload/image/{uploaded_image['filename']}/resize",
        headers=auth_headers,
        json={"width": 300, "height": 300},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["new_filename"].endswith("_300x300.jpg")

    info = client.get(f"/api/v1/upload/image/{data['new_filename']}/info").json()
    assert (info["width"], info["height"]) == (300, 300)


def test_resize_image_rejects_bad_dimensions(client, auth_headers, uploaded_image):
    response = client.post(
        f"/api/v1/upload/image/{uploaded_image['filename']}/resize",
        headers=auth_headers,
        json={"width": 5000, "height": 300},
    )
    assert response.status_code == 400
