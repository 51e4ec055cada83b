# src/quill/services/images.py
"""Image validation, upload and bookkeeping."""

from __future__ import annotations

import io
import logging
import secrets
from dataclasses import dataclass

from PIL import Image as PILImage
from PIL import UnidentifiedImageError
from sqlalchemy.orm import Session

from quill.core.errors import AppError, InvalidImageError, NotFoundError, UnauthorizedError
from quill.core.settings import settings
from quill.db.session import transaction
from quill.models import Image, User
from quill.schemas.common import PageParams
from quill.schemas.image import ImageMeta
from quill.services.pagination import paginate
from quill.services.stats import register_creation
from quill.services.storage import ObjectStorage, remove_quietly

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "image not found"

# Pillow format name -> (mimetype, file extension)
SUPPORTED_FORMATS = {
    "PNG": ("image/png", ".png"),
    "JPEG": ("image/jpeg", ".jpg"),
    "WEBP": ("image/webp", ".webp"),
}


@dataclass(frozen=True)
class ImageFile:
    """An uploaded file that passed validation."""

    data: bytes
    mimetype: str
    ext: str
    width: int
    height: int

    @property
    def size(self) -> int:
        return len(self.data)


def read_image_file(data: bytes | None) -> ImageFile:
    """Validate raw upload bytes and extract their format and dimensions.

    Raises:
        AppError: If no file was sent, it is too large, or its type is unsupported
        InvalidImageError: If the bytes are not a readable image
    """
    if not data:
        raise AppError("image is required", 400, "FileNotExistError")
    if len(data) > settings.max_file_size_bytes:
        raise AppError(
            f"Image must not exceed {settings.max_file_size_mb:g}MB",
            400,
            "FileTooLargeError",
        )
    try:
        with PILImage.open(io.BytesIO(data)) as img:
            img.verify()
            fmt = img.format
            width, height = img.size
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as exc:
        raise InvalidImageError("Invalid image file") from exc
    if fmt not in SUPPORTED_FORMATS:
        raise AppError(
            "Unsupported image type (expect png, jpg, or webp)",
            400,
            "UnsupportedImageTypeError",
        )
    mimetype, ext = SUPPORTED_FORMATS[fmt]
    return ImageFile(data=data, mimetype=mimetype, ext=ext, width=width, height=height)


def build_storage_path(root_dir: str, user: User, ext: str) -> str:
    """``<root>/<username>/<user id>-<random><ext>``"""
    suffix = secrets.randbelow(10**8)
    return f"{root_dir}/{user.username}/{user.id}-{suffix}{ext}"


def get_all_images(db: Session, page: PageParams) -> list[Image]:
    return paginate(db.query(Image), Image.id, page)


def get_image_or_404(db: Session, image_id: int) -> Image:
    image = db.get(Image, image_id)
    if image is None:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return image


def _apply_meta(image: Image, meta: ImageMeta) -> None:
    for name, value in meta.model_dump(exclude_none=True).items():
        setattr(image, name, value)


async def upload_image(
    db: Session,
    storage: ObjectStorage,
    user: User,
    file: ImageFile,
    meta: ImageMeta,
    is_avatar: bool = False,
) -> Image:
    """Store the file and record its metadata, owned by ``user``.

    If the row cannot be written the just-uploaded object is removed again.
    """
    path = build_storage_path(storage.root_dir, user, file.ext)
    uploaded = await storage.upload(path, file.data, file.mimetype, upsert=False)
    image = Image(
        owner_id=user.id,
        src=uploaded.public_url,
        mimetype=file.mimetype,
        size=file.size,
        width=file.width,
        height=file.height,
        storage_full_path=uploaded.full_path,
        storage_id=uploaded.id,
    )
    _apply_meta(image, meta)
    try:
        with transaction(db):
            db.add(image)
            db.flush()
            if is_avatar:
                user.profile.avatar_id = image.id
            register_creation(db, "IMAGE", user)
    except Exception:
        await remove_quietly(storage, uploaded.full_path)
        raise
    db.refresh(image)
    logger.info("User %s uploaded image %s", user.id, image.id)
    return image


async def update_image(
    db: Session,
    storage: ObjectStorage,
    image_id: int,
    user: User,
    meta: ImageMeta,
    file: ImageFile | None = None,
) -> Image:
    """Edit metadata and optionally replace the stored bytes in place. Owner only."""
    image = get_image_or_404(db, image_id)
    if image.owner_id != user.id:
        raise UnauthorizedError()
    if file is not None:
        bucket_prefix, _, path = image.storage_full_path.partition("/")
        uploaded = await storage.upload(path or bucket_prefix, file.data, file.mimetype, upsert=True)
        image.src = uploaded.public_url
        image.mimetype = file.mimetype
        image.size = file.size
        image.width = file.width
        image.height = file.height
    with transaction(db):
        _apply_meta(image, meta)
    db.refresh(image)
    return image


async def delete_image(db: Session, storage: ObjectStorage, image_id: int, user: User) -> None:
    """Delete an image row, then its stored object. Owner or admin only."""
    image = get_image_or_404(db, image_id)
    if not (user.is_admin or image.owner_id == user.id):
        raise UnauthorizedError()
    full_path = image.storage_full_path
    with transaction(db):
        db.delete(image)
    await remove_quietly(storage, full_path)
