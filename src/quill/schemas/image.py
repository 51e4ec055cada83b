"""Image-related Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ImageMeta(BaseModel):
    """Editable presentation attributes of an image."""

    alt: str | None = Field(None, max_length=512)
    info: str | None = Field(None, max_length=2048)
    scale: float | None = Field(None, gt=0, le=10)
    x_pos: int | None = None
    y_pos: int | None = None


class ImageOwner(BaseModel):
    id: int
    username: str
    fullname: str
    is_admin: bool

    model_config = ConfigDict(from_attributes=True)


class ImageResponse(BaseModel):
    """Image metadata returned by the API. Storage paths are never exposed."""

    id: int
    src: str
    alt: str
    info: str
    mimetype: str
    size: int
    width: int
    height: int
    scale: float
    x_pos: int
    y_pos: int
    owner_id: int
    owner: ImageOwner | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
