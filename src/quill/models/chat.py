# src/quill/models/chat.py
"""SQLAlchemy models for chats, their members and messages."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quill.db.session import Base
from quill.db.time import utcnow

if TYPE_CHECKING:
    from quill.models.image import Image
    from quill.models.user import Profile

CHAT_ROLE_OWNER = "OWNER"
CHAT_ROLE_ADMIN = "ADMIN"


class Chat(Base):
    """Conversation thread. Owns its participants, managers and messages."""

    __tablename__ = "chats"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    profiles: Mapped[list[ChatProfile]] = relationship(
        "ChatProfile",
        back_populates="chat",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ChatProfile.joined_at, ChatProfile.profile_name",
    )
    managers: Mapped[list[ChatManager]] = relationship(
        "ChatManager",
        back_populates="chat",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    messages: Mapped[list[Message]] = relationship(
        "Message",
        back_populates="chat",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Message.id",
    )


class ChatProfile(Base):
    """Chat participant with per-member seen/received markers."""

    __tablename__ = "chat_profiles"
    __table_args__ = (
        UniqueConstraint("chat_id", "profile_name", name="uq_chat_profiles_chat_name"),
        Index("ix_chat_profiles_profile_id", "profile_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    chat_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("chats.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Null once the profile is deleted; the name keeps the member displayable.
    profile_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    profile_name: Mapped[str] = mapped_column(String(48), nullable=False)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    last_seen_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_received_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    chat: Mapped[Chat] = relationship("Chat", back_populates="profiles")
    profile: Mapped[Profile | None] = relationship("Profile")


class ChatManager(Base):
    __tablename__ = "chat_managers"
    __table_args__ = (
        UniqueConstraint("chat_id", "profile_id", name="uq_chat_managers_chat_profile"),
        Index("ix_chat_managers_profile_role", "profile_id", "role"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    chat_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("chats.id", ondelete="CASCADE"),
        nullable=False,
    )
    profile_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    role: Mapped[str] = mapped_column(String(16), nullable=False, default=CHAT_ROLE_OWNER)

    chat: Mapped[Chat] = relationship("Chat", back_populates="managers")


class Message(Base):
    """Chat message.

    ``profile_name`` is a display snapshot taken when the message is sent. It
    is not the source of truth for the author's current username and must not
    be "fixed" when a user renames; resolve ``profile_id`` for that.
    """

    __tablename__ = "messages"
    __table_args__ = (Index("ix_messages_chat_id", "chat_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    chat_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("chats.id", ondelete="CASCADE"),
        nullable=False,
    )
    profile_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    profile_name: Mapped[str] = mapped_column(String(48), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    image_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("images.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    chat: Mapped[Chat] = relationship("Chat", back_populates="messages")
    image: Mapped[Image | None] = relationship("Image")
