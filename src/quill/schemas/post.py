"""Post, comment, tag and vote Pydantic schemas."""
from __future__ import annotations

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from quill.schemas.image import ImageResponse

MAX_TAGS_PER_POST = 7
_WHITESPACE = re.compile(r"\s")


def normalize_tags(tags: list[str]) -> list[str]:
    """Lower-case, drop blanks and duplicates while keeping first-seen order."""
    seen: dict[str, None] = {}
    for tag in tags:
        tag = tag.strip()
        if not tag:
            continue
        if _WHITESPACE.search(tag):
            raise ValueError("A tag cannot have spaces")
        seen.setdefault(tag.lower(), None)
    return list(seen)


class PostCreate(BaseModel):
    """Schema for creating a new post."""

    title: str = Field(..., min_length=1, max_length=512)
    content: str = Field(..., min_length=1)
    published: bool = False
    tags: list[str] = Field(default_factory=list)
    image_id: int | None = Field(None, description="Existing image to attach")

    @field_validator("title", "content")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("tags")
    @classmethod
    def _valid_tags(cls, value: list[str]) -> list[str]:
        if len(value) > MAX_TAGS_PER_POST:
            raise ValueError(f"Expect maximum of {MAX_TAGS_PER_POST} tags")
        return normalize_tags(value)


class PostUpdate(PostCreate):
    """Full replacement of a post's editable fields, tags included."""


class PostAuthor(BaseModel):
    id: int
    username: str
    fullname: str
    is_admin: bool

    model_config = ConfigDict(from_attributes=True)


class PostResponse(BaseModel):
    """Schema for post information returned by the API."""

    id: int
    title: str
    content: str
    published: bool
    author_id: int
    author: PostAuthor
    image_id: int | None
    image: ImageResponse | None = None
    tags: list[str]
    comments_count: int = 0
    votes_count: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=10_000)

    @field_validator("content")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("A comment must have content")
        return value


class CommentResponse(BaseModel):
    id: int
    post_id: int
    author_id: int
    author: PostAuthor
    content: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VoteResponse(BaseModel):
    id: int
    post_id: int
    user_id: int
    user: PostAuthor
    is_upvote: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TagResponse(BaseModel):
    name: str

    model_config = ConfigDict(from_attributes=True)
