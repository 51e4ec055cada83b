"""Shared API dependencies for authentication and common functionality."""

from __future__ import annotations

from collections.abc import Callable
from typing import Annotated

from fastapi import BackgroundTasks, Depends, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from quill.core.errors import UnauthorizedError
from quill.core.security import decode_access_token
from quill.db.session import get_db, get_session_factory
from quill.models import User
from quill.schemas.common import PageParams, SortOrder
from quill.services.profiles import touch_last_seen
from quill.services.storage import ObjectStorage, get_storage

# Missing credentials are reported by the dependencies below, not by the scheme.
bearer_scheme = HTTPBearer(auto_error=False)

SessionDep = Annotated[Session, Depends(get_db)]
SessionFactoryDep = Annotated[Callable[[], Session], Depends(get_session_factory)]
StorageDep = Annotated[ObjectStorage, Depends(get_storage)]
CredentialsDep = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]


def _user_from_credentials(
    request: Request, credentials: HTTPAuthorizationCredentials | None, db: Session
) -> User | None:
    """Resolve the bearer token to a user.

    Returns None when no ``Authorization`` header was sent at all. A header
    that is present but unusable is always an error.

    Raises:
        UnauthorizedError: If the token is malformed, expired or names no user
    """
    if credentials is None:
        if request.headers.get("Authorization"):
            raise UnauthorizedError()
        return None
    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        raise UnauthorizedError()
    user = db.get(User, user_id)
    if user is None:
        raise UnauthorizedError()
    return user


def get_current_user(request: Request, credentials: CredentialsDep, db: SessionDep) -> User:
    """Get the authenticated user or fail with 401."""
    user = _user_from_credentials(request, credentials, db)
    if user is None:
        raise UnauthorizedError()
    return user


def get_optional_user(request: Request, credentials: CredentialsDep, db: SessionDep) -> User | None:
    """Get the authenticated user if the request carries a token."""
    return _user_from_credentials(request, credentials, db)


CurrentUserDep = Annotated[User, Depends(get_current_user)]
OptionalUserDep = Annotated[User | None, Depends(get_optional_user)]


def get_admin_user(user: CurrentUserDep) -> User:
    if not user.is_admin:
        raise UnauthorizedError()
    return user


AdminUserDep = Annotated[User, Depends(get_admin_user)]


def get_page_params(
    cursor: int | None = Query(None, description="Id of the last item already seen"),
    limit: int = Query(10, ge=1, le=100),
    sort: SortOrder = Query("desc"),
) -> PageParams:
    return PageParams(cursor=cursor, limit=limit, sort=sort)


PageDep = Annotated[PageParams, Depends(get_page_params)]


def update_last_seen(
    user: OptionalUserDep,
    background_tasks: BackgroundTasks,
    session_factory: SessionFactoryDep,
) -> None:
    """Record the caller's activity once the response is sent."""
    if user is not None:
        background_tasks.add_task(touch_last_seen, session_factory, user.id)
