# src/quill/models/image.py
"""SQLAlchemy model for hosted images."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quill.db.session import Base
from quill.db.time import utcnow

if TYPE_CHECKING:
    from quill.models.user import User


class Image(Base):
    """Image metadata; the bytes live in object storage under ``storage_full_path``."""

    __tablename__ = "images"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    src: Mapped[str] = mapped_column(String(1024), unique=True, nullable=False)
    alt: Mapped[str] = mapped_column(Text, nullable=False, default="")
    info: Mapped[str] = mapped_column(Text, nullable=False, default="")
    mimetype: Mapped[str] = mapped_column(String(64), nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False)
    width: Mapped[int] = mapped_column(Integer, nullable=False)
    height: Mapped[int] = mapped_column(Integer, nullable=False)
    # Display hints for cropping/positioning on the client.
    scale: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    x_pos: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    y_pos: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    storage_full_path: Mapped[str] = mapped_column(String(1024), nullable=False)
    storage_id: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    owner: Mapped[User] = relationship("User")
