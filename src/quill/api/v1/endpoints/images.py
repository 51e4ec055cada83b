# src/quill/api/v1/endpoints/images.py
"""Image hosting endpoints. Uploads are multipart with an ``image`` file field."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from quill.api.v1.dependencies import CurrentUserDep, PageDep, SessionDep, StorageDep
from quill.models import Image
from quill.schemas.image import ImageMeta, ImageResponse
from quill.services import images as service

router = APIRouter(prefix="/images", tags=["images"])


def get_image_meta(
    alt: str | None = Form(None, max_length=512),
    info: str | None = Form(None, max_length=2048),
    scale: float | None = Form(None, gt=0, le=10),
    x_pos: int | None = Form(None, alias="xPos"),
    y_pos: int | None = Form(None, alias="yPos"),
) -> ImageMeta:
    return ImageMeta(alt=alt, info=info, scale=scale, x_pos=x_pos, y_pos=y_pos)


ImageMetaDep = Annotated[ImageMeta, Depends(get_image_meta)]


@router.get("", response_model=list[ImageResponse])
async def list_images(db: SessionDep, page: PageDep) -> list[Image]:
    return service.get_all_images(db, page)


@router.get("/{image_id}", response_model=ImageResponse)
async def get_image(image_id: int, db: SessionDep) -> Image:
    return service.get_image_or_404(db, image_id)


@router.post("", response_model=ImageResponse, status_code=status.HTTP_201_CREATED)
async def upload_image(
    db: SessionDep,
    storage: StorageDep,
    current_user: CurrentUserDep,
    meta: ImageMetaDep,
    image: UploadFile | None = File(None),
    is_avatar: bool = Form(False, alias="isAvatar"),
) -> Image:
    """Upload a png, jpeg or webp image owned by the caller.

    With ``isAvatar`` set the image also becomes the caller's avatar.
    """
    data = await image.read() if image is not None else None
    file = service.read_image_file(data)
    return await service.upload_image(db, storage, current_user, file, meta, is_avatar=is_avatar)


@router.put("/{image_id}", response_model=ImageResponse)
async def update_image(
    image_id: int,
    db: SessionDep,
    storage: StorageDep,
    current_user: CurrentUserDep,
    meta: ImageMetaDep,
    image: UploadFile | None = File(None),
) -> Image:
    """Edit an image's metadata, replacing its file when one is sent. Owner only."""
    file = None
    if image is not None:
        file = service.read_image_file(await image.read())
    return await service.update_image(db, storage, image_id, current_user, meta, file)


@router.delete("/{image_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_image(
    image_id: int, db: SessionDep, storage: StorageDep, current_user: CurrentUserDep
) -> None:
    await service.delete_image(db, storage, image_id, current_user)
