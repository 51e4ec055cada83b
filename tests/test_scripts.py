# tests/test_scripts.py
"""Tests for the seed script's database helpers."""

import random

from quill.models import CharacterRect, Post, User
from quill.scripts.seed import CHARACTERS, POST_TITLES, seed_authors, seed_characters, seed_posts


def test_seed_creates_admin_authors_and_posts(db_session) -> None:
    authors = seed_authors(db_session, "Secret#123")
    seed_posts(db_session, authors, random.Random(7))
    db_session.commit()

    assert db_session.query(User).filter(User.is_admin.is_(True)).count() == len(authors)
    assert db_session.query(Post).filter(Post.published.is_(True)).count() == len(POST_TITLES)
    assert all(len(post.tags) == 3 for post in db_session.query(Post))


def test_seed_characters_is_an_upsert(db_session) -> None:
    db_session.add(CharacterRect(name="waldo", top=0, left=0, right=1, bottom=1))
    db_session.commit()

    seed_characters(db_session)
    seed_characters(db_session)
    db_session.commit()

    assert db_session.query(CharacterRect).count() == len(CHARACTERS)
    waldo = db_session.query(CharacterRect).filter(CharacterRect.name == "waldo").one()
    assert (waldo.top, waldo.left, waldo.right, waldo.bottom) == CHARACTERS["waldo"]
