"""Character-finder Pydantic schemas."""
from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, RootModel, field_validator

FinderFilter = Literal["all", "winner"]


class FinderName(BaseModel):
    name: str = Field("", max_length=64)


class FinderResponse(BaseModel):
    id: int
    name: str
    duration: int | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Point(BaseModel):
    """Clicked position, truncated to whole non-negative pixels."""

    x: int
    y: int

    @field_validator("x", "y", mode="before")
    @classmethod
    def _truncate(cls, value: object) -> int:
        if not isinstance(value, int | float | str):
            raise ValueError("coordinate must be a number")
        number = float(value)
        return 0 if number <= 0 else int(number)


class Selection(RootModel[dict[str, Point]]):
    """Mapping of character name to the point the player clicked."""


class EvaluationResponse(BaseModel):
    evaluation: dict[str, bool]
    finder: FinderResponse
