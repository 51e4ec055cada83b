# src/quill/api/v1/endpoints/characters.py
"""Character-finder game endpoints. Anonymous; a finder id is the player's handle."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from quill.api.v1.dependencies import SessionDep
from quill.models import CharacterFinder
from quill.schemas.character import (
    EvaluationResponse,
    FinderFilter,
    FinderName,
    FinderResponse,
    Selection,
)
from quill.services import characters as service

router = APIRouter(prefix="/characters", tags=["characters"])


def purge_passive_finders(db: SessionDep) -> None:
    service.purge_passive_finders(db)


@router.get(
    "/finders",
    response_model=list[FinderResponse],
    dependencies=[Depends(purge_passive_finders)],
)
async def list_finders(db: SessionDep, filter: FinderFilter = Query("all")) -> list[CharacterFinder]:
    return service.get_all_finders(db, filter)


@router.get(
    "/finders/{finder_id}",
    response_model=FinderResponse,
    dependencies=[Depends(purge_passive_finders)],
)
async def get_finder(finder_id: int, db: SessionDep) -> CharacterFinder:
    return service.get_finder(db, finder_id)


@router.post("/finders", response_model=FinderResponse, status_code=status.HTTP_201_CREATED)
async def create_finder(payload: FinderName, db: SessionDep) -> CharacterFinder:
    return service.create_finder(db, payload.name)


@router.patch("/finders/{finder_id}", response_model=FinderResponse)
async def rename_finder(finder_id: int, payload: FinderName, db: SessionDep) -> CharacterFinder:
    return service.update_finder(db, finder_id, payload.name)


@router.post("/eval/{finder_id}", response_model=EvaluationResponse)
async def evaluate(finder_id: int, selection: Selection, db: SessionDep) -> dict[str, object]:
    """Check the clicked points; the first full find records the finder's time."""
    evaluation, finder = service.evaluate_finder(db, finder_id, selection.root)
    return {"evaluation": evaluation, "finder": finder}
