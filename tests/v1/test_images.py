# tests/v1/test_images.py
"""Tests for image upload, edit and deletion."""

import io

from fastapi import status
from PIL import Image as PILImage

from quill.core.settings import settings
from quill.models import Image, Profile


def _upload(client, headers, data: bytes, **fields):
    return client.post(
        "/api/v1/images",
        files={"image": ("pic.png", data, "image/png")},
        data=fields,
        headers=headers,
    )


def test_upload_png(client, db_session, user, auth_token, png, storage) -> None:
    response = _upload(client, auth_token, png, alt="A red square", xPos="3")
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["mimetype"] == "image/png"
    assert (data["width"], data["height"]) == (4, 3)
    assert data["size"] == len(png)
    assert data["alt"] == "A red square"
    assert data["x_pos"] == 3
    assert data["owner"]["username"] == "alice"
    assert "storage_full_path" not in data

    image = db_session.get(Image, data["id"])
    assert image.storage_full_path in storage.objects
    assert image.storage_full_path.startswith(f"images/test/alice/{user.id}-")


def test_upload_as_avatar(client, db_session, user, auth_token, png) -> None:
    image = _upload(client, auth_token, png, isAvatar="true").json()
    profile = db_session.query(Profile).filter(Profile.user_id == user.id).one()
    assert profile.avatar_id == image["id"]


def test_upload_requires_file(client, auth_token) -> None:
    response = client.post("/api/v1/images", data={"alt": "nothing"}, headers=auth_token)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"]["name"] == "FileNotExistError"


def test_upload_rejects_non_image(client, auth_token) -> None:
    response = _upload(client, auth_token, b"definitely not an image")
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"]["name"] == "InvalidImageError"


def test_upload_rejects_unsupported_type(client, auth_token) -> None:
    buffer = io.BytesIO()
    PILImage.new("RGB", (2, 2)).save(buffer, format="GIF")
    response = _upload(client, auth_token, buffer.getvalue())
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"]["name"] == "UnsupportedImageTypeError"


def test_upload_rejects_large_file(client, auth_token, monkeypatch, png) -> None:
    monkeypatch.setattr(settings, "max_file_size_mb", 0.00001)
    response = _upload(client, auth_token, png)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"]["name"] == "FileTooLargeError"


def test_upload_requires_auth(client, png) -> None:
    assert _upload(client, {}, png).status_code == status.HTTP_401_UNAUTHORIZED


def test_update_image_meta_owner_only(client, auth_token, other_auth_token, png) -> None:
    image = _upload(client, auth_token, png).json()

    denied = client.put(
        f"/api/v1/images/{image['id']}", data={"alt": "x"}, headers=other_auth_token
    )
    assert denied.status_code == status.HTTP_401_UNAUTHORIZED

    response = client.put(
        f"/api/v1/images/{image['id']}", data={"info": "Taken at noon"}, headers=auth_token
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["info"] == "Taken at noon"


def test_delete_image(client, db_session, auth_token, png, storage) -> None:
    image = _upload(client, auth_token, png).json()
    response = client.delete(f"/api/v1/images/{image['id']}", headers=auth_token)
    assert response.status_code == status.HTTP_204_NO_CONTENT
    db_session.expire_all()
    assert db_session.get(Image, image["id"]) is None
    assert len(storage.removed) == 1


def test_get_missing_image(client) -> None:
    response = client.get("/api/v1/images/42")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["error"]["message"] == "image not found"
