"""User and authentication Pydantic schemas."""
from __future__ import annotations

import re
from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator

from quill.core.settings import settings
from quill.schemas.image import ImageResponse

USERNAME_PATTERN = re.compile(r"^\w+$")
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[^a-zA-Z\d]).{8,}$")


def _check_username(value: str) -> str:
    value = value.strip()
    if not USERNAME_PATTERN.match(value):
        raise ValueError("Username can only have letters, numbers, and underscores (_)")
    if len(value) < 3:
        raise ValueError("Username must contain at least 3 characters")
    if len(value) > 48:
        raise ValueError("Username must contain at most 48 characters")
    return value


def _check_fullname(value: str) -> str:
    value = value.strip()
    if len(value) < 3:
        raise ValueError("Fullname must contain at least 3 characters")
    if len(value) > 96:
        raise ValueError("Fullname must contain at most 96 characters")
    return value


def _check_password(value: str) -> str:
    value = value.strip()
    if len(value) < 8:
        raise ValueError("Password must contain at least 8 characters")
    if len(value) > 50:
        raise ValueError("Password must contain at most 50 characters")
    if not PASSWORD_PATTERN.match(value):
        raise ValueError(
            "Password must contain a number, a special character, "
            "a lowercase letter, and an uppercase letter"
        )
    return value


def _check_secret(value: str) -> str:
    value = value.strip()
    if value and value != settings.admin_secret:
        raise ValueError("Invalid secret")
    return value


Username = Annotated[str, AfterValidator(_check_username)]
Fullname = Annotated[str, AfterValidator(_check_fullname)]
Password = Annotated[str, AfterValidator(_check_password)]
Secret = Annotated[str, AfterValidator(_check_secret)]


class UserCreate(BaseModel):
    """Signup payload. A ``secret`` equal to the admin secret grants admin rights."""

    username: Username
    fullname: Fullname
    password: Password
    confirm: str = Field(..., min_length=1)
    secret: Secret | None = None
    bio: str | None = None
    avatar_id: int | None = None

    @model_validator(mode="after")
    def _passwords_match(self) -> UserCreate:
        if self.password != self.confirm.strip():
            raise ValueError("Passwords do not match")
        return self


class UserUpdate(BaseModel):
    """Partial update; changing the password requires ``confirm``."""

    username: Username | None = None
    fullname: Fullname | None = None
    password: Password | None = None
    confirm: str | None = None
    secret: Secret | None = None
    bio: str | None = None
    avatar_id: int | None = None

    @model_validator(mode="after")
    def _passwords_match(self) -> UserUpdate:
        if self.password is not None and self.password != (self.confirm or "").strip():
            raise ValueError("Passwords do not match")
        return self


class UserResponse(BaseModel):
    """Public user representation. The password hash is never serialized."""

    id: int
    username: str
    fullname: str
    bio: str | None
    is_admin: bool
    avatar: ImageResponse | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuthResponse(BaseModel):
    """Token (``"Bearer <jwt>"``) plus the authenticated user."""

    token: str
    user: UserResponse


class SignInRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
