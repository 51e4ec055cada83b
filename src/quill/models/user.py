# src/quill/models/user.py
"""SQLAlchemy models for accounts, public profiles and follow edges."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quill.db.session import Base
from quill.db.time import utcnow

if TYPE_CHECKING:
    from quill.models.image import Image


class User(Base):
    """Account identity. Passwords are stored as bcrypt hashes only."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(48), unique=True, nullable=False)
    fullname: Mapped[str] = mapped_column(String(96), nullable=False)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    profile: Mapped[Profile] = relationship(
        "Profile",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
        uselist=False,
    )

    @property
    def avatar(self) -> Image | None:
        return self.profile.avatar if self.profile else None


class Profile(Base):
    """Public face of a user; the unit addressed by chats, follows and notifications."""

    __tablename__ = "profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    avatar_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("images.id", ondelete="SET NULL"),
        nullable=True,
    )
    last_seen: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    # visible: others see the real last_seen.
    # tangible: this profile may see others' chat seen-dates.
    visible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    tangible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    user: Mapped[User] = relationship("User", back_populates="profile")
    avatar: Mapped[Image | None] = relationship("Image", foreign_keys=[avatar_id])

    @property
    def username(self) -> str:
        return self.user.username


class Follow(Base):
    """Directed follow edge: ``follower_id`` follows ``profile_id``."""

    __tablename__ = "follows"

    profile_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("profiles.id", ondelete="CASCADE"),
        primary_key=True,
    )
    follower_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("profiles.id", ondelete="CASCADE"),
        primary_key=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
