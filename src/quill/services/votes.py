# src/quill/services/votes.py
"""Idempotent vote toggling.

There is at most one vote row per (post, user). Upvoting twice keeps the one
row; downvoting removes it, and downvoting without a row is a quiet no-op.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from quill.db.session import transaction
from quill.models import Post, User, Vote
from quill.schemas.common import PageParams
from quill.services.pagination import paginate
from quill.services.posts import find_post_or_404
from quill.services.stats import register_creation
from quill.services.visibility import post_visibility_clause

logger = logging.getLogger(__name__)


@dataclass
class VoteFilters:
    actor_id: int | None = None
    author_id: int | None = None
    post_id: int | None = None
    is_upvote: bool | None = None


def _find_vote(db: Session, post_id: int, user_id: int) -> Vote | None:
    return db.query(Vote).filter(Vote.post_id == post_id, Vote.user_id == user_id).first()


def upvote_post(db: Session, post_id: int, user: User) -> Post:
    """Connect-or-create the user's vote on a post they can read."""
    post = find_post_or_404(db, post_id, user.id)
    if _find_vote(db, post.id, user.id) is None:
        try:
            with transaction(db):
                db.add(Vote(post_id=post.id, user_id=user.id, is_upvote=True))
                db.flush()
                register_creation(db, "VOTE", user)
        except IntegrityError:
            # A concurrent upvote from the same user won the insert.
            logger.debug("Duplicate upvote by %s on post %s ignored", user.id, post.id)
    db.refresh(post)
    return post


def downvote_post(db: Session, post_id: int, user: User) -> Post:
    """Remove the user's vote if there is one; either way return the post."""
    post = find_post_or_404(db, post_id, user.id)
    with transaction(db):
        removed = (
            db.query(Vote)
            .filter(Vote.post_id == post.id, Vote.user_id == user.id)
            .delete(synchronize_session=False)
        )
    if not removed:
        logger.debug("Downvote by %s on post %s had no vote to remove", user.id, post.id)
    db.refresh(post)
    return post


def _filtered_votes(db: Session, filters: VoteFilters) -> Query[Vote]:
    query = db.query(Vote).join(Post, Vote.post_id == Post.id).filter(
        post_visibility_clause(filters.actor_id)
    )
    if filters.author_id is not None:
        query = query.filter(Vote.user_id == filters.author_id)
    if filters.post_id is not None:
        query = query.filter(Vote.post_id == filters.post_id)
    if filters.is_upvote is not None:
        query = query.filter(Vote.is_upvote.is_(filters.is_upvote))
    return query


def find_votes(db: Session, filters: VoteFilters, page: PageParams) -> list[Vote]:
    return paginate(_filtered_votes(db, filters), Vote.id, page)


def count_votes(db: Session, filters: VoteFilters) -> int:
    return _filtered_votes(db, filters).count()
