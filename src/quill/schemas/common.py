"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

SortOrder = Literal["asc", "desc"]


class PageParams(BaseModel):
    """Keyset pagination over integer ids.

    ``cursor`` is the id of the last item of the previous page; the next page
    starts strictly after it in ``sort`` order.
    """

    cursor: int | None = Field(None, description="Id of the last item already seen")
    limit: int = Field(10, ge=1, le=100)
    sort: SortOrder = "desc"


class ErrorBody(BaseModel):
    name: str
    message: str


class ErrorResponse(BaseModel):
    """Error payload returned for every non-2xx response except 401."""

    error: ErrorBody


class CountResponse(BaseModel):
    count: int
