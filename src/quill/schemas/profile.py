"""Profile Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from quill.schemas.image import ImageResponse


class ProfileUser(BaseModel):
    id: int
    username: str
    fullname: str
    bio: str | None
    is_admin: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProfileResponse(BaseModel):
    """Profile as seen by the requesting actor.

    ``last_seen`` is the user's signup date when the profile is not visible.
    """

    id: int
    user_id: int
    user: ProfileUser
    avatar: ImageResponse | None = None
    last_seen: datetime
    visible: bool
    tangible: bool
    followed_by_current_user: bool = False


class ProfileUpdate(BaseModel):
    visible: bool | None = None
    tangible: bool | None = None
