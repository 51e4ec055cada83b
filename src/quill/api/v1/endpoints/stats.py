# src/quill/api/v1/endpoints/stats.py
"""Usage statistics endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from quill.api.v1.dependencies import CurrentUserDep, SessionDep
from quill.schemas.stats import StatsResponse
from quill.services.stats import get_stats

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("", response_model=StatsResponse)
async def read_stats(db: SessionDep, current_user: CurrentUserDep) -> dict[str, list[dict[str, object]]]:
    """Visitors and created entities per month."""
    return get_stats(db)
