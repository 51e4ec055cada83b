# src/quill/services/users.py
"""Account management: signup, lookup, update and deletion."""

from __future__ import annotations

import logging
import secrets

from sqlalchemy.orm import Session

from quill.core.errors import InvalidReferenceError, NotFoundError, handle_db_errors
from quill.core.security import hash_password
from quill.core.settings import settings
from quill.db.session import transaction
from quill.db.time import utcnow
from quill.models import Image, Profile, User
from quill.schemas.common import PageParams
from quill.schemas.user import UserCreate, UserUpdate
from quill.services.pagination import paginate
from quill.services.stats import register_creation

logger = logging.getLogger(__name__)

GUEST_FULLNAME = "Guest User"


def _check_avatar(db: Session, avatar_id: int | None) -> None:
    if avatar_id is not None and db.get(Image, avatar_id) is None:
        raise InvalidReferenceError("Invalid avatar id")


def _new_user(
    db: Session,
    *,
    username: str,
    fullname: str,
    password: str,
    is_admin: bool = False,
    bio: str | None = None,
    avatar_id: int | None = None,
) -> User:
    user = User(
        username=username,
        fullname=fullname,
        password=hash_password(password),
        is_admin=is_admin,
        bio=bio,
    )
    user.profile = Profile(last_seen=utcnow(), avatar_id=avatar_id)
    db.add(user)
    with handle_db_errors():
        db.flush()
    register_creation(db, "USER", user)
    return user


def create_user(db: Session, data: UserCreate) -> User:
    """Create a user and its profile.

    Raises:
        UniqueConstraintViolationError: If the username is taken
        InvalidReferenceError: If ``avatar_id`` does not name an image
    """
    with transaction(db):
        _check_avatar(db, data.avatar_id)
        user = _new_user(
            db,
            username=data.username,
            fullname=data.fullname,
            password=data.password,
            is_admin=bool(data.secret) and data.secret == settings.admin_secret,
            bio=data.bio,
            avatar_id=data.avatar_id,
        )
    db.refresh(user)
    logger.info("Created user %s", user.username)
    return user


def create_guest_user(db: Session) -> User:
    """Create a throwaway non-admin account with a random name and password."""
    with transaction(db):
        user = _new_user(
            db,
            username=f"guest_{secrets.token_hex(6)}",
            fullname=GUEST_FULLNAME,
            password=secrets.token_urlsafe(24),
        )
    db.refresh(user)
    return user


def get_all_users(db: Session, page: PageParams) -> list[User]:
    return paginate(db.query(User), User.id, page)


def find_user_by_id_or_username(db: Session, id_or_username: str) -> User | None:
    """All-digit values are treated as ids, anything else as a username."""
    if id_or_username.isdigit():
        return db.get(User, int(id_or_username))
    return db.query(User).filter(User.username == id_or_username).first()


def get_user_or_404(db: Session, id_or_username: str) -> User:
    user = find_user_by_id_or_username(db, id_or_username)
    if user is None:
        raise NotFoundError("User not found")
    return user


def update_user(db: Session, user: User, data: UserUpdate) -> User:
    """Apply a partial update; a valid ``secret`` promotes the user to admin."""
    with transaction(db):
        if data.username is not None:
            user.username = data.username
        if data.fullname is not None:
            user.fullname = data.fullname
        if data.bio is not None:
            user.bio = data.bio
        if data.password is not None:
            user.password = hash_password(data.password)
        if data.secret and data.secret == settings.admin_secret:
            user.is_admin = True
        if data.avatar_id is not None:
            _check_avatar(db, data.avatar_id)
            user.profile.avatar_id = data.avatar_id
        with handle_db_errors():
            db.flush()
    db.refresh(user)
    return user


def delete_user(db: Session, user: User) -> list[str]:
    """Delete the user; posts, comments, votes, images and profile cascade.

    Returns the storage paths of the user's images so the caller can remove
    the stored objects once the rows are gone.
    """
    user_id = user.id
    paths = [
        path for (path,) in db.query(Image.storage_full_path).filter(Image.owner_id == user.id)
    ]
    with transaction(db):
        db.delete(user)
    logger.info("Deleted user %s", user_id)
    return paths
