# src/quill/models/system.py
"""Instance-wide bookkeeping rows."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column

from quill.db.session import Base

PURGE_WATERMARK_ID = 1


class PurgeWatermark(Base):
    """Single row recording the last non-admin purge.

    ``version`` is bumped on every claim; an instance only runs the purge if
    its compare-and-swap on the version succeeds.
    """

    __tablename__ = "purge_watermark"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=PURGE_WATERMARK_ID)
    last_purge_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
