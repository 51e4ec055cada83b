# src/quill/services/visibility.py
"""Who may read or change a post or comment.

The predicates work on already-loaded rows; the ``*_clause`` helpers express
the same rule as SQL so private rows are never loaded for other actors.
Callers turn "not visible" into ``NotFoundError``: a private post must be
indistinguishable from a missing one.
"""

from __future__ import annotations

from typing import Protocol

from sqlalchemy import ColumnElement, or_, true

from quill.models import Comment, Post


class Authored(Protocol):
    author_id: int


def can_read_post(post: Post, actor_id: int | None) -> bool:
    return post.published or (actor_id is not None and actor_id == post.author_id)


def can_read_comment(comment: Comment, actor_id: int | None) -> bool:
    """A comment is readable exactly when its parent post is, whoever wrote it."""
    return can_read_post(comment.post, actor_id)


def can_mutate(resource: Authored, actor_id: int | None, is_admin: bool = False) -> bool:
    """Admins may change anything; everyone else only what they authored."""
    return is_admin or (actor_id is not None and actor_id == resource.author_id)


def post_visibility_clause(actor_id: int | None) -> ColumnElement[bool]:
    """``WHERE published OR author_id = :actor``.

    Also filters comments, votes and tag links once the query joins ``Post``.
    """
    if actor_id is None:
        return Post.published == true()
    return or_(Post.published == true(), Post.author_id == actor_id)

