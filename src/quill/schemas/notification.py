"""Notification Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class NotificationResponse(BaseModel):
    id: int
    header: str
    description: str
    url: str
    profile_id: int | None
    profile_name: str
    created_at: datetime
    seen_at: datetime | None = None
