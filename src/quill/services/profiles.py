# src/quill/services/profiles.py
"""Profiles, follow edges and last-seen tracking."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from quill.core.errors import InvalidReferenceError, NotFoundError
from quill.db.session import transaction
from quill.db.time import utcnow
from quill.models import Follow, Profile, User
from quill.schemas.common import PageParams
from quill.schemas.profile import ProfileUpdate
from quill.services.notifications import notify

logger = logging.getLogger(__name__)


def present_profile(profile: Profile, followed: bool) -> dict[str, Any]:
    """Shape a profile for the viewer; hidden profiles report signup as last seen."""
    return {
        "id": profile.id,
        "user_id": profile.user_id,
        "user": profile.user,
        "avatar": profile.avatar,
        "last_seen": profile.last_seen if profile.visible else profile.user.created_at,
        "visible": profile.visible,
        "tangible": profile.tangible,
        "followed_by_current_user": followed,
    }


def _followed_ids(db: Session, viewer: User, profile_ids: list[int]) -> set[int]:
    if not profile_ids:
        return set()
    rows = db.query(Follow.profile_id).filter(
        Follow.follower_id == viewer.profile.id,
        Follow.profile_id.in_(profile_ids),
    )
    return {pid for (pid,) in rows}


def _present_many(db: Session, viewer: User, profiles: list[Profile]) -> list[dict[str, Any]]:
    followed = _followed_ids(db, viewer, [p.id for p in profiles])
    return [present_profile(p, p.id in followed) for p in profiles]


def _page_by_username(db: Session, query: Query[Profile], page: PageParams) -> list[Profile]:
    # Profiles are listed by username; the cursor is still a profile id.
    if page.cursor is not None:
        anchor = db.get(Profile, page.cursor)
        if anchor is not None:
            name = anchor.user.username
            query = query.filter(User.username > name if page.sort == "asc" else User.username < name)
    order = User.username.asc() if page.sort == "asc" else User.username.desc()
    return query.order_by(order).limit(page.limit).all()


def _profiles(db: Session, name: str | None) -> Query[Profile]:
    query = db.query(Profile).join(User, Profile.user_id == User.id)
    if name:
        pattern = f"%{name}%"
        query = query.filter(or_(User.username.ilike(pattern), User.fullname.ilike(pattern)))
    return query


def get_all_profiles(
    db: Session, viewer: User, page: PageParams, name: str | None = None
) -> list[dict[str, Any]]:
    return _present_many(db, viewer, _page_by_username(db, _profiles(db, name), page))


def get_following(
    db: Session, viewer: User, page: PageParams, name: str | None = None
) -> list[dict[str, Any]]:
    """Profiles the viewer follows."""
    query = _profiles(db, name).join(Follow, Follow.profile_id == Profile.id).filter(
        Follow.follower_id == viewer.profile.id
    )
    return _present_many(db, viewer, _page_by_username(db, query, page))


def get_followers(
    db: Session, viewer: User, page: PageParams, name: str | None = None
) -> list[dict[str, Any]]:
    """Profiles following the viewer."""
    query = _profiles(db, name).join(Follow, Follow.follower_id == Profile.id).filter(
        Follow.profile_id == viewer.profile.id
    )
    return _present_many(db, viewer, _page_by_username(db, query, page))


def find_profile(db: Session, id_or_username: str) -> Profile | None:
    """Usernames win over ids, so a numeric username still resolves to its owner."""
    profile = _profiles(db, None).filter(User.username == id_or_username).first()
    if profile is None and id_or_username.isdigit():
        profile = db.get(Profile, int(id_or_username))
    return profile


def get_profile(db: Session, viewer: User, id_or_username: str) -> dict[str, Any]:
    profile = find_profile(db, id_or_username)
    if profile is None:
        raise NotFoundError("Profile not found")
    return _present_many(db, viewer, [profile])[0]


def update_profile(db: Session, viewer: User, data: ProfileUpdate) -> dict[str, Any]:
    profile = viewer.profile
    with transaction(db):
        if data.visible is not None:
            profile.visible = data.visible
        if data.tangible is not None:
            profile.tangible = data.tangible
    db.refresh(profile)
    return _present_many(db, viewer, [profile])[0]


def follow(db: Session, viewer: User, profile_id: int) -> None:
    """Follow a profile. Following twice, or following yourself, changes nothing."""
    me = viewer.profile
    target = db.get(Profile, profile_id)
    if target is None:
        raise InvalidReferenceError("Invalid profile id")
    if target.id == me.id or db.get(Follow, (target.id, me.id)) is not None:
        return
    with transaction(db):
        db.add(Follow(profile_id=target.id, follower_id=me.id))
        notify(
            db,
            me,
            [target.id],
            header=f"{viewer.username} started following you",
            url=f"/profiles/{me.id}",
        )


def unfollow(db: Session, viewer: User, profile_id: int) -> None:
    """Stop following a profile; a missing edge is not an error."""
    with transaction(db):
        db.query(Follow).filter(
            Follow.profile_id == profile_id,
            Follow.follower_id == viewer.profile.id,
        ).delete(synchronize_session=False)


def touch_last_seen(session_factory: Callable[[], Session], user_id: int) -> None:
    """Record activity for ``user_id``; failures are logged and dropped."""
    db = session_factory()
    try:
        db.query(Profile).filter(Profile.user_id == user_id).update(
            {Profile.last_seen: utcnow()}, synchronize_session=False
        )
        db.commit()
    except Exception as exc:  # pragma: no cover - best effort
        db.rollback()
        logger.warning("Failed to update last seen for user %s: %s", user_id, exc)
    finally:
        db.close()
