# tests/services/test_visibility.py
"""Unit tests for read and write permission rules."""

from quill.models import Comment, Post
from quill.services.visibility import can_mutate, can_read_comment, can_read_post


def _post(published: bool, author_id: int = 1) -> Post:
    return Post(id=10, author_id=author_id, title="t", content="c", published=published)


def test_published_post_readable_by_anyone() -> None:
    post = _post(True)
    assert can_read_post(post, None)
    assert can_read_post(post, 2)


def test_private_post_readable_by_author_only() -> None:
    post = _post(False)
    assert can_read_post(post, 1)
    assert not can_read_post(post, 2)
    assert not can_read_post(post, None)


def test_comment_follows_parent_post_visibility() -> None:
    comment = Comment(author_id=2, content="hi", post=_post(False))
    # even the comment's own author loses it once the post is private
    assert not can_read_comment(comment, 2)
    assert can_read_comment(comment, 1)


def test_mutation_rules() -> None:
    post = _post(True)
    assert can_mutate(post, 1)
    assert not can_mutate(post, 2)
    assert not can_mutate(post, None)
    assert can_mutate(post, 2, is_admin=True)
