# src/quill/services/posts.py
"""Posts, their tags and comments.

Every read goes through ``post_visibility_clause`` so private posts (and the
comments, votes and tags hanging off them) only ever load for their author.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import distinct, func, or_
from sqlalchemy.orm import Query, Session

from quill.core.errors import (
    InvalidReferenceError,
    NotFoundError,
    UnauthorizedError,
    handle_db_errors,
)
from quill.db.session import transaction
from quill.models import Comment, Image, Post, PostTag, Tag, User
from quill.schemas.common import PageParams
from quill.schemas.post import CommentCreate, PostCreate, PostUpdate
from quill.services.notifications import follower_ids, notify
from quill.services.pagination import paginate
from quill.services.stats import register_creation
from quill.services.visibility import can_mutate, post_visibility_clause

logger = logging.getLogger(__name__)


@dataclass
class PostFilters:
    actor_id: int | None = None
    author_id: int | None = None
    text: str | None = None
    tags: list[str] = field(default_factory=list)


@dataclass
class CommentFilters:
    actor_id: int | None = None
    author_id: int | None = None
    post_id: int | None = None
    text: str | None = None


def _visible_posts(db: Session, actor_id: int | None) -> Query[Post]:
    return db.query(Post).filter(post_visibility_clause(actor_id))


def _filtered_posts(db: Session, filters: PostFilters) -> Query[Post]:
    query = _visible_posts(db, filters.actor_id)
    if filters.author_id is not None:
        query = query.filter(Post.author_id == filters.author_id)
    if filters.text:
        pattern = f"%{filters.text}%"
        query = query.filter(or_(Post.title.ilike(pattern), Post.content.ilike(pattern)))
    if filters.tags:
        tagged = db.query(PostTag.post_id).filter(
            func.lower(PostTag.tag_name).in_([t.lower() for t in filters.tags])
        )
        query = query.filter(Post.id.in_(tagged))
    return query


def find_posts(db: Session, filters: PostFilters, page: PageParams) -> list[Post]:
    return paginate(_filtered_posts(db, filters), Post.id, page)


def count_posts(db: Session, filters: PostFilters) -> int:
    return _filtered_posts(db, filters).count()


def find_post_or_404(db: Session, post_id: int, actor_id: int | None) -> Post:
    """Return the post if ``actor_id`` may read it.

    Raises:
        NotFoundError: If the post is missing or private to someone else
    """
    post = _visible_posts(db, actor_id).filter(Post.id == post_id).first()
    if post is None:
        raise NotFoundError("Post not found")
    return post


def _check_image(db: Session, image_id: int | None) -> None:
    if image_id is not None and db.get(Image, image_id) is None:
        raise InvalidReferenceError("Invalid image id")


def _connect_or_create_tags(db: Session, names: list[str], author: User) -> None:
    if not names:
        return
    existing = {name for (name,) in db.query(Tag.name).filter(Tag.name.in_(names))}
    for name in names:
        if name not in existing:
            db.add(Tag(name=name))
            register_creation(db, "TAG", author)


def create_post(db: Session, author: User, data: PostCreate) -> Post:
    """Create a post and connect-or-create its tags.

    Followers of the author are notified when the post is published.
    """
    with transaction(db):
        _check_image(db, data.image_id)
        _connect_or_create_tags(db, data.tags, author)
        post = Post(
            author_id=author.id,
            title=data.title,
            content=data.content,
            published=data.published,
            image_id=data.image_id,
        )
        post.tag_links = [PostTag(tag_name=name) for name in data.tags]
        db.add(post)
        with handle_db_errors():
            db.flush()
        register_creation(db, "POST", author)
        if post.published:
            notify(
                db,
                author.profile,
                follower_ids(db, author.profile.id),
                header=f"{author.username} published a new post",
                description=post.title,
                url=f"/blog/{post.id}",
            )
    db.refresh(post)
    logger.info("User %s created post %s", author.id, post.id)
    return post


def update_post(db: Session, post_id: int, actor: User, data: PostUpdate) -> Post:
    """Replace a post's fields and tags. Owner or admin only."""
    post = find_post_or_404(db, post_id, actor.id)
    if not can_mutate(post, actor.id, actor.is_admin):
        raise UnauthorizedError()
    with transaction(db):
        _check_image(db, data.image_id)
        _connect_or_create_tags(db, data.tags, actor)
        post.title = data.title
        post.content = data.content
        post.published = data.published
        post.image_id = data.image_id
        wanted = set(data.tags)
        post.tag_links = [link for link in post.tag_links if link.tag_name in wanted]
        kept = {link.tag_name for link in post.tag_links}
        post.tag_links.extend(PostTag(tag_name=name) for name in data.tags if name not in kept)
        with handle_db_errors():
            db.flush()
    db.refresh(post)
    return post


def delete_post(db: Session, post_id: int, actor: User) -> str | None:
    """Delete a post; take its image along only when nobody else needs it.

    The image goes too iff the post's author owns it and no other post
    references it, even when an admin deletes someone else's post. Both rows
    are removed in one transaction.

    Returns:
        The storage path of the deleted image, for the caller to remove from
        object storage after commit, or None.
    """
    post = find_post_or_404(db, post_id, actor.id)
    if not can_mutate(post, actor.id, actor.is_admin):
        raise UnauthorizedError()
    removed_path: str | None = None
    with transaction(db):
        image = post.image
        if image is not None and image.owner_id == post.author_id:
            users_of_image = (
                db.query(func.count(Post.id)).filter(Post.image_id == image.id).scalar() or 0
            )
            if users_of_image == 1:
                removed_path = image.storage_full_path
                db.delete(image)
        db.delete(post)
    logger.info("User %s deleted post %s (image removed: %s)", actor.id, post_id, bool(removed_path))
    return removed_path


# Comments

def _visible_comments(db: Session, actor_id: int | None) -> Query[Comment]:
    return db.query(Comment).join(Post, Comment.post_id == Post.id).filter(
        post_visibility_clause(actor_id)
    )


def _filtered_comments(db: Session, filters: CommentFilters) -> Query[Comment]:
    query = _visible_comments(db, filters.actor_id)
    if filters.author_id is not None:
        query = query.filter(Comment.author_id == filters.author_id)
    if filters.post_id is not None:
        query = query.filter(Comment.post_id == filters.post_id)
    if filters.text:
        query = query.filter(Comment.content.ilike(f"%{filters.text}%"))
    return query


def find_comments(db: Session, filters: CommentFilters, page: PageParams) -> list[Comment]:
    return paginate(_filtered_comments(db, filters), Comment.id, page)


def count_comments(db: Session, filters: CommentFilters) -> int:
    return _filtered_comments(db, filters).count()


def find_comment_or_404(
    db: Session, post_id: int, comment_id: int, actor_id: int | None
) -> Comment:
    comment = (
        _visible_comments(db, actor_id)
        .filter(Comment.id == comment_id, Comment.post_id == post_id)
        .first()
    )
    if comment is None:
        raise NotFoundError("Post/Comment not found")
    return comment


def create_comment(db: Session, post_id: int, author: User, data: CommentCreate) -> Comment:
    """Comment on a post the author can read; the post's author is notified."""
    post = find_post_or_404(db, post_id, author.id)
    with transaction(db):
        comment = Comment(post_id=post.id, author_id=author.id, content=data.content)
        db.add(comment)
        with handle_db_errors():
            db.flush()
        register_creation(db, "COMMENT", author)
        notify(
            db,
            author.profile,
            [post.author.profile.id],
            header=f"{author.username} commented on your post",
            description=data.content[:200],
            url=f"/blog/{post.id}#comment-{comment.id}",
        )
    db.refresh(comment)
    return comment


def update_comment(
    db: Session, post_id: int, comment_id: int, actor: User, data: CommentCreate
) -> Comment:
    """Edit a comment. Only its author may, admins included."""
    comment = find_comment_or_404(db, post_id, comment_id, actor.id)
    if comment.author_id != actor.id:
        raise UnauthorizedError()
    with transaction(db):
        comment.content = data.content
    db.refresh(comment)
    return comment


def delete_comment(db: Session, post_id: int, comment_id: int, actor: User) -> None:
    """Delete a comment as an admin, the post's author or the comment's author."""
    comment = find_comment_or_404(db, post_id, comment_id, actor.id)
    allowed = (
        actor.is_admin
        or comment.author_id == actor.id
        or comment.post.author_id == actor.id
    )
    if not allowed:
        raise UnauthorizedError()
    with transaction(db):
        db.delete(comment)


# Tags

def find_tags(db: Session, terms: list[str] | None = None) -> list[Tag]:
    query = db.query(Tag)
    if terms:
        query = query.filter(or_(*(Tag.name.ilike(f"%{term}%") for term in terms)))
    return query.order_by(Tag.name).all()


def find_post_tags(db: Session, post_id: int, actor_id: int | None) -> list[str]:
    rows = (
        db.query(PostTag.tag_name)
        .join(Post, PostTag.post_id == Post.id)
        .filter(PostTag.post_id == post_id, post_visibility_clause(actor_id))
        .order_by(PostTag.tag_name)
        .all()
    )
    return [name for (name,) in rows]


def count_post_tags(db: Session, post_id: int, actor_id: int | None) -> int:
    return len(find_post_tags(db, post_id, actor_id))


def count_distinct_tags_by_author(db: Session, author_id: int) -> int:
    """Number of different tags used across all of an author's posts."""
    return (
        db.query(func.count(distinct(PostTag.tag_name)))
        .join(Post, PostTag.post_id == Post.id)
        .filter(Post.author_id == author_id)
        .scalar()
        or 0
    )
