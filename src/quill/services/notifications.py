# src/quill/services/notifications.py
"""Notifications fanned out to profiles, and each receiver's inbox."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy.orm import Session

from quill.core.errors import NotFoundError
from quill.db.session import transaction
from quill.db.time import utcnow
from quill.models import Follow, Notification, NotificationReceiver, Profile, User

logger = logging.getLogger(__name__)


def notify(
    db: Session,
    actor: Profile,
    receiver_ids: Iterable[int],
    header: str,
    url: str,
    description: str = "",
) -> Notification | None:
    """Add a notification from ``actor`` to the caller's unit of work.

    The actor never notifies itself; with no one left to receive it nothing is
    written.
    """
    receivers = sorted({pid for pid in receiver_ids if pid != actor.id})
    if not receivers:
        return None
    notification = Notification(
        header=header,
        description=description,
        url=url,
        profile_id=actor.id,
        profile_name=actor.user.username,
    )
    notification.receivers = [NotificationReceiver(profile_id=pid) for pid in receivers]
    db.add(notification)
    logger.debug("Queued notification %r for %d profiles", header, len(receivers))
    return notification


def follower_ids(db: Session, profile_id: int) -> list[int]:
    return [
        fid for (fid,) in db.query(Follow.follower_id).filter(Follow.profile_id == profile_id)
    ]


def _inbox_query(db: Session, user: User):
    return (
        db.query(Notification, NotificationReceiver.seen_at)
        .join(NotificationReceiver, NotificationReceiver.notification_id == Notification.id)
        .filter(NotificationReceiver.profile_id == user.profile.id)
    )


def _present(notification: Notification, seen_at) -> dict[str, object]:
    return {
        "id": notification.id,
        "header": notification.header,
        "description": notification.description,
        "url": notification.url,
        "profile_id": notification.profile_id,
        "profile_name": notification.profile_name,
        "created_at": notification.created_at,
        "seen_at": seen_at,
    }


def get_user_notifications(db: Session, user: User) -> list[dict[str, object]]:
    """Return the user's notifications, newest first."""
    rows = _inbox_query(db, user).order_by(Notification.id.desc()).all()
    return [_present(notification, seen_at) for notification, seen_at in rows]


def get_user_notification(db: Session, user: User, notification_id: int) -> dict[str, object]:
    row = _inbox_query(db, user).filter(Notification.id == notification_id).first()
    if row is None:
        raise NotFoundError("Notification not found.")
    return _present(*row)


def mark_notifications_seen(db: Session, user: User) -> None:
    with transaction(db):
        db.query(NotificationReceiver).filter(
            NotificationReceiver.profile_id == user.profile.id,
            NotificationReceiver.seen_at.is_(None),
        ).update({NotificationReceiver.seen_at: utcnow()}, synchronize_session=False)


def delete_user_notification(db: Session, user: User, notification_id: int) -> None:
    """Remove the notification from the user's inbox; missing ones are ignored."""
    with transaction(db):
        db.query(NotificationReceiver).filter(
            NotificationReceiver.notification_id == notification_id,
            NotificationReceiver.profile_id == user.profile.id,
        ).delete(synchronize_session=False)
