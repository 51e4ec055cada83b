# src/quill/services/purge.py
"""Periodic purge of non-admin data.

The demo instance resets itself: everything non-admin users created before
``now - interval`` is deleted, along with those users. The last run is
recorded in the ``purge_watermark`` row so several server processes share one
schedule; a process only runs the purge after winning a compare-and-swap on
the row's version.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from quill.db.session import transaction
from quill.db.time import as_utc
from quill.models import Comment, Image, Post, PostTag, Tag, User, Vote
from quill.models.system import PURGE_WATERMARK_ID, PurgeWatermark
from quill.services.storage import ObjectStorage, remove_quietly

logger = logging.getLogger(__name__)


def claim_purge(db: Session, now: datetime, interval: timedelta) -> bool:
    """Advance the watermark to ``now`` if a purge is due.

    Returns True only for the caller that moved the watermark. A missing
    watermark means a purge has never run, so it is due.
    """
    mark = db.get(PurgeWatermark, PURGE_WATERMARK_ID)
    if mark is None:
        try:
            with transaction(db):
                db.add(PurgeWatermark(id=PURGE_WATERMARK_ID, last_purge_at=now, version=1))
        except IntegrityError:
            logger.debug("Another process created the purge watermark first")
            return False
        return True

    if now - as_utc(mark.last_purge_at) < interval:
        return False

    with transaction(db):
        claimed = (
            db.query(PurgeWatermark)
            .filter(
                PurgeWatermark.id == PURGE_WATERMARK_ID,
                PurgeWatermark.version == mark.version,
            )
            .update(
                {
                    PurgeWatermark.last_purge_at: now,
                    PurgeWatermark.version: mark.version + 1,
                },
                synchronize_session=False,
            )
        )
    db.expire(mark)
    return claimed == 1


async def purge_non_admin_data(
    db: Session, storage: ObjectStorage, now: datetime, interval: timedelta
) -> None:
    """Delete non-admin rows created before ``now - interval``.

    Images go first, one at a time, so every stored object gets its remove
    call. The remaining rows are deleted in a single transaction; rows that
    hang off a deleted user or post (profiles, follows, later comments) go
    with it through the foreign-key cascades.
    """
    cutoff = now - interval
    non_admins = select(User.id).where(User.is_admin.is_(False))
    expired_users = select(User.id).where(User.is_admin.is_(False), User.created_at <= cutoff)
    expired_posts = select(Post.id).where(Post.author_id.in_(non_admins), Post.created_at <= cutoff)

    images = (
        db.query(Image)
        .filter(
            or_(
                and_(Image.owner_id.in_(non_admins), Image.created_at <= cutoff),
                Image.owner_id.in_(expired_users),
            )
        )
        .order_by(Image.id)
        .all()
    )
    for image in images:
        full_path = image.storage_full_path
        with transaction(db):
            db.delete(image)
        await remove_quietly(storage, full_path)

    with transaction(db):
        db.query(Comment).filter(
            Comment.author_id.in_(non_admins), Comment.created_at <= cutoff
        ).delete(synchronize_session=False)
        db.query(Vote).filter(Vote.post_id.in_(expired_posts)).delete(synchronize_session=False)
        db.query(PostTag).filter(PostTag.post_id.in_(expired_posts)).delete(
            synchronize_session=False
        )
        db.query(Post).filter(Post.id.in_(expired_posts)).delete(synchronize_session=False)
        users = db.query(User).filter(User.id.in_(expired_users)).delete(synchronize_session=False)
        db.query(Tag).filter(Tag.name.not_in(select(PostTag.tag_name))).delete(
            synchronize_session=False
        )
    db.expire_all()
    logger.info("Purged %d images and %d non-admin users", len(images), users)


async def run_purge_if_due(db: Session, storage: ObjectStorage, now: datetime, interval: timedelta) -> bool:
    """Claim and run the purge. Failures are logged, never raised.

    Returns whether this call ran the purge.
    """
    try:
        if not claim_purge(db, now, interval):
            return False
        await purge_non_admin_data(db, storage, now, interval)
        logger.info("All non-admin data has been purged")
        return True
    except Exception as exc:
        db.rollback()
        logger.error("Could not purge the non-admin data: %s", exc)
        return False
