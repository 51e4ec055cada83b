# src/quill/api/v1/endpoints/profiles.py
"""Profile and follow endpoints. Every call refreshes the caller's last-seen date."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query, Response, status

from quill.api.v1.dependencies import CurrentUserDep, PageDep, SessionDep, update_last_seen
from quill.schemas.profile import ProfileResponse, ProfileUpdate
from quill.services import profiles as service

router = APIRouter(
    prefix="/profiles",
    tags=["profiles"],
    dependencies=[Depends(update_last_seen)],
)


@router.get("", response_model=list[ProfileResponse])
async def list_profiles(
    db: SessionDep,
    current_user: CurrentUserDep,
    page: PageDep,
    name: str | None = Query(None, description="Match on username or full name"),
) -> list[dict[str, Any]]:
    return service.get_all_profiles(db, current_user, page, name)


@router.get("/following", response_model=list[ProfileResponse])
async def list_following(
    db: SessionDep,
    current_user: CurrentUserDep,
    page: PageDep,
    name: str | None = Query(None),
) -> list[dict[str, Any]]:
    return service.get_following(db, current_user, page, name)


@router.get("/followers", response_model=list[ProfileResponse])
async def list_followers(
    db: SessionDep,
    current_user: CurrentUserDep,
    page: PageDep,
    name: str | None = Query(None),
) -> list[dict[str, Any]]:
    return service.get_followers(db, current_user, page, name)


@router.get("/{id_or_username}", response_model=ProfileResponse)
async def get_profile(
    id_or_username: str, db: SessionDep, current_user: CurrentUserDep
) -> dict[str, Any]:
    return service.get_profile(db, current_user, id_or_username)


@router.patch("", response_model=ProfileResponse)
async def update_profile(
    payload: ProfileUpdate, db: SessionDep, current_user: CurrentUserDep
) -> dict[str, Any]:
    return service.update_profile(db, current_user, payload)


@router.post("/following/{profile_id}", status_code=status.HTTP_201_CREATED)
async def follow_profile(profile_id: int, db: SessionDep, current_user: CurrentUserDep) -> Response:
    service.follow(db, current_user, profile_id)
    return Response(status_code=status.HTTP_201_CREATED)


@router.delete("/following/{profile_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unfollow_profile(profile_id: int, db: SessionDep, current_user: CurrentUserDep) -> None:
    service.unfollow(db, current_user, profile_id)
