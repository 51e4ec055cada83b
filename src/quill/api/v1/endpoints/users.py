# src/quill/api/v1/endpoints/users.py
"""User account endpoints."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Request, status
from sqlalchemy.orm import Session

from quill.api.v1.dependencies import (
    AdminUserDep,
    CurrentUserDep,
    PageDep,
    SessionDep,
    StorageDep,
)
from quill.core.errors import UnauthorizedError
from quill.models import User
from quill.schemas.user import AuthResponse, UserCreate, UserResponse, UserUpdate
from quill.services.auth import issue_token
from quill.services.storage import remove_quietly
from quill.services.users import (
    create_guest_user,
    create_user,
    delete_user,
    get_all_users,
    get_user_or_404,
    update_user,
)

router = APIRouter(prefix="/users", tags=["users"])


def _owned_user(db: Session, current_user: User, user_id: int) -> User:
    target = get_user_or_404(db, str(user_id))
    if not (current_user.is_admin or target.id == current_user.id):
        raise UnauthorizedError()
    return target


@router.get("", response_model=list[UserResponse])
async def list_users(db: SessionDep, admin: AdminUserDep, page: PageDep) -> list[User]:
    """List all users. Admins only."""
    return get_all_users(db, page)


@router.get("/{id_or_username}", response_model=UserResponse)
async def get_user(id_or_username: str, db: SessionDep) -> User:
    return get_user_or_404(db, id_or_username)


@router.post("", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(payload: UserCreate, db: SessionDep) -> dict[str, object]:
    user = create_user(db, payload)
    return {"token": issue_token(user), "user": user}


@router.post("/guest", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup_guest(db: SessionDep) -> dict[str, object]:
    """Create a throwaway account and sign it in."""
    user = create_guest_user(db)
    return {"token": issue_token(user), "user": user}


@router.patch("/{user_id}", response_model=AuthResponse)
async def patch_user(
    user_id: int,
    payload: UserUpdate,
    request: Request,
    db: SessionDep,
    current_user: CurrentUserDep,
) -> dict[str, object]:
    """Update a user as its owner or an admin; the caller's token is echoed back."""
    target = _owned_user(db, current_user, user_id)
    user = update_user(db, target, payload)
    return {"token": request.headers.get("Authorization", ""), "user": user}


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_user(
    user_id: int,
    db: SessionDep,
    current_user: CurrentUserDep,
    storage: StorageDep,
    background_tasks: BackgroundTasks,
) -> None:
    target = _owned_user(db, current_user, user_id)
    for path in delete_user(db, target):
        background_tasks.add_task(remove_quietly, storage, path)
