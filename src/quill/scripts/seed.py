"""Seed the database with admin authors, sample posts and the finder characters.

Admin data survives the periodic purge, so the seeded content is the
permanent part of a demo instance. Run with ``AUTHOR_PASSWORD`` set.
"""
from __future__ import annotations

import argparse
import os
import random
import sys
from datetime import timedelta

from sqlalchemy.orm import Session

from quill.db.session import SessionLocal, create_tables, transaction
from quill.db.time import utcnow
from quill.models import CharacterRect, Post, PostTag, Tag, User
from quill.services.stats import register_creation
from quill.services.users import _new_user

AUTHORS = [
    ("nowhere_man", "Nowhere Man", "From Nowhere land with love."),
    ("superman", "Clark Kent", "From Krypton with love."),
    ("batman", "Bruce Wayne", "From Gotham with love."),
]

TAGS = [
    "open_source",
    "full_stack",
    "python",
    "security",
    "frontend",
    "software",
    "testing",
    "backend",
]

POST_TITLES = [
    "How I Built a Portfolio While Learning to Code",
    "Docker Compose for Local Development",
    "Understanding JWT: Auth Made Simple",
    "REST vs. GraphQL: A Developer's Perspective",
    "Validating Payloads with Pydantic",
    "How to Secure Your FastAPI App",
    "Why Type Hints Are Worth the Effort",
]

# name -> (top, left, right, bottom) in picture pixels
CHARACTERS = {
    "odlaw": (1148, 246, 288, 1212),
    "waldo": (1096, 1650, 1690, 1170),
    "wizard": (1480, 2288, 2340, 1560),
}


def reset_admin_data(db: Session) -> None:
    """Remove previously seeded admin content; non-admin data is left to the purge."""
    db.query(User).filter(User.is_admin.is_(True)).delete(synchronize_session=False)
    db.query(Tag).filter(Tag.name.not_in(db.query(PostTag.tag_name))).delete(
        synchronize_session=False
    )


def seed_authors(db: Session, password: str) -> list[User]:
    return [
        _new_user(
            db,
            username=username,
            fullname=fullname,
            password=password,
            is_admin=True,
            bio=bio,
        )
        for username, fullname, bio in AUTHORS
    ]


def seed_posts(db: Session, authors: list[User], rng: random.Random) -> int:
    existing = {name for (name,) in db.query(Tag.name)}
    for name in TAGS:
        if name not in existing:
            db.add(Tag(name=name))
    db.flush()

    now = utcnow()
    for index, title in enumerate(POST_TITLES):
        created_at = now - timedelta(days=len(POST_TITLES) - index, hours=rng.randint(0, 23))
        post = Post(
            author=rng.choice(authors),
            title=title,
            content=f"{title}.\n\nNotes and lessons learned along the way.",
            published=True,
            created_at=created_at,
            updated_at=created_at,
        )
        post.tag_links = [PostTag(tag_name=name) for name in rng.sample(TAGS, k=3)]
        db.add(post)
        register_creation(db, "POST", post.author)
    return len(POST_TITLES)


def seed_characters(db: Session) -> None:
    """Upsert the characters hidden in the finder picture."""
    for name, (top, left, right, bottom) in CHARACTERS.items():
        rect = db.query(CharacterRect).filter(CharacterRect.name == name).first()
        if rect is None:
            rect = CharacterRect(name=name)
            db.add(rect)
        rect.top, rect.left, rect.right, rect.bottom = top, left, right, bottom
    db.flush()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the Quill database")
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables before seeding (development databases only).",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for sample posts")
    args = parser.parse_args()

    password = os.getenv("AUTHOR_PASSWORD")
    if not password:
        print("[seed] ERROR: the AUTHOR_PASSWORD environment variable is missing", file=sys.stderr)
        sys.exit(1)

    if args.create_tables:
        create_tables()

    rng = random.Random(args.seed)
    db = SessionLocal()
    try:
        with transaction(db):
            reset_admin_data(db)
            authors = seed_authors(db, password)
            count = seed_posts(db, authors, rng)
            seed_characters(db)
        print(f"[seed] created {len(authors)} authors, {count} posts, {len(CHARACTERS)} characters")
    finally:
        db.close()


if __name__ == "__main__":
    main()
