# src/quill/services/characters.py
"""Character-finder minigame: find every character on the picture, fastest wins."""

from __future__ import annotations

import logging
import math
from datetime import timedelta

from sqlalchemy.orm import Session

from quill.core.errors import NotFoundError
from quill.core.settings import settings
from quill.db.session import transaction
from quill.db.time import as_utc, utcnow
from quill.models import CharacterFinder, CharacterRect
from quill.schemas.character import FinderFilter, Point

logger = logging.getLogger(__name__)


def purge_passive_finders(db: Session) -> int:
    """Drop unfinished finders nobody touched for ``finder_passive_days``."""
    cutoff = utcnow() - timedelta(days=settings.finder_passive_days)
    with transaction(db):
        removed = (
            db.query(CharacterFinder)
            .filter(CharacterFinder.duration.is_(None), CharacterFinder.updated_at <= cutoff)
            .delete(synchronize_session=False)
        )
    if removed:
        logger.info("Purged %d passive finders", removed)
    return removed


def get_all_finders(db: Session, filter: FinderFilter = "all") -> list[CharacterFinder]:
    """Winners first, by shortest duration, then most recently updated."""
    query = db.query(CharacterFinder)
    if filter == "winner":
        query = query.filter(CharacterFinder.duration.is_not(None))
    return query.order_by(
        CharacterFinder.duration.asc().nulls_last(),
        CharacterFinder.updated_at.desc(),
    ).all()


def get_finder(db: Session, finder_id: int) -> CharacterFinder:
    finder = db.get(CharacterFinder, finder_id)
    if finder is None:
        raise NotFoundError("finder not found")
    return finder


def create_finder(db: Session, name: str) -> CharacterFinder:
    with transaction(db):
        finder = CharacterFinder(name=name)
        db.add(finder)
    db.refresh(finder)
    return finder


def update_finder(db: Session, finder_id: int, name: str) -> CharacterFinder:
    finder = get_finder(db, finder_id)
    with transaction(db):
        finder.name = name
    db.refresh(finder)
    return finder


def is_character_found(point: Point, rect: CharacterRect) -> bool:
    """The point must lie strictly inside the rectangle; edges miss."""
    return rect.left < point.x < rect.right and rect.top < point.y < rect.bottom


def evaluate_selection(
    selection: dict[str, Point], rects: list[CharacterRect]
) -> tuple[dict[str, bool], bool]:
    """Score each named point and tell whether every character was found.

    Unknown names score False. A game with no characters can never be won.
    """
    by_name = {rect.name: rect for rect in rects}
    evaluation: dict[str, bool] = {}
    for name, point in selection.items():
        rect = by_name.get(name)
        evaluation[name] = rect is not None and is_character_found(point, rect)
    found = sum(evaluation.values())
    return evaluation, found > 0 and found == len(rects)


def evaluate_finder(
    db: Session, finder_id: int, selection: dict[str, Point]
) -> tuple[dict[str, bool], CharacterFinder]:
    """Evaluate a selection for a finder, recording its time on the first win.

    A finder that already won keeps its first (and therefore shortest)
    duration.
    """
    finder = get_finder(db, finder_id)
    rects = db.query(CharacterRect).all()
    evaluation, all_found = evaluate_selection(selection, rects)
    if all_found and finder.duration is None:
        elapsed = (utcnow() - as_utc(finder.created_at)).total_seconds()
        with transaction(db):
            finder.duration = math.ceil(elapsed)
        db.refresh(finder)
        logger.info("Finder %s won in %ss", finder.id, finder.duration)
    return evaluation, finder
