"""Chat Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from quill.schemas.image import ImageResponse


class MessageCreate(BaseModel):
    body: str = Field(..., min_length=1, max_length=10_000)
    image_id: int | None = None

    @field_validator("body")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("A message must have a body")
        return value


class ChatCreate(MessageCreate):
    """Start (or continue) a chat with the given profiles."""

    profiles: list[int] = Field(..., min_length=1, max_length=50)


class MessageResponse(BaseModel):
    id: int
    chat_id: int
    profile_id: int | None
    profile_name: str
    body: str
    image_id: int | None
    image: ImageResponse | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ChatMemberResponse(BaseModel):
    profile_id: int | None
    profile_name: str
    joined_at: datetime
    last_seen_at: datetime | None
    last_received_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


class ChatManagerResponse(BaseModel):
    profile_id: int
    role: str

    model_config = ConfigDict(from_attributes=True)


class ChatResponse(BaseModel):
    id: int
    profiles: list[ChatMemberResponse]
    managers: list[ChatManagerResponse]
    messages: list[MessageResponse]
    created_at: datetime
    updated_at: datetime
