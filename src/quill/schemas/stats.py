"""Usage statistics Pydantic schemas."""
from __future__ import annotations

from pydantic import BaseModel


class MonthlyCount(BaseModel):
    date: str
    count: int


class StatsResponse(BaseModel):
    visitors: list[MonthlyCount]
    users: list[MonthlyCount]
    posts: list[MonthlyCount]
    comments: list[MonthlyCount]
    votes: list[MonthlyCount]
    images: list[MonthlyCount]
    tags: list[MonthlyCount]
