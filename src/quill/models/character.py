# src/quill/models/character.py
"""SQLAlchemy models for the character-finder minigame."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from quill.db.session import Base
from quill.db.time import utcnow


class CharacterFinder(Base):
    """One play session. ``duration`` (seconds) stays null until every character is found."""

    __tablename__ = "character_finders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class CharacterRect(Base):
    """Bounding box of a character on the game picture, in image pixels."""

    __tablename__ = "character_rects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    top: Mapped[int] = mapped_column(Integer, nullable=False)
    left: Mapped[int] = mapped_column(Integer, nullable=False)
    right: Mapped[int] = mapped_column(Integer, nullable=False)
    bottom: Mapped[int] = mapped_column(Integer, nullable=False)
