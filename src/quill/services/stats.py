# src/quill/services/stats.py
"""Usage statistics: creation and visitor records, aggregated per month."""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime

from sqlalchemy.orm import Session

from quill.models import Creation, User, Visitor
from quill.models.stats import CREATION_MODELS

logger = logging.getLogger(__name__)


def register_creation(db: Session, model: str, user: User) -> None:
    """Record that ``user`` created an entity of kind ``model``.

    Added to the caller's unit of work so the record commits with the entity.
    """
    if model not in CREATION_MODELS:
        raise ValueError(f"Unknown creation model: {model}")
    db.add(Creation(model=model, username=user.username, is_admin=user.is_admin))
    logger.debug("Registered %s creation by %s", model, user.username)


def register_visitor(db: Session) -> Visitor:
    visitor = Visitor()
    db.add(visitor)
    db.commit()
    return visitor


def _month_key(value: datetime) -> str:
    return f"{value.year:04d}-{value.month:02d}-01"


def _monthly(dates: list[datetime]) -> list[dict[str, object]]:
    counts = Counter(_month_key(d) for d in dates)
    return [{"date": key, "count": counts[key]} for key in sorted(counts)]


def get_stats(db: Session) -> dict[str, list[dict[str, object]]]:
    """Return per-month counts of visitors and of each creation kind."""
    by_model: dict[str, list[datetime]] = {model: [] for model in CREATION_MODELS}
    for model, created_at in db.query(Creation.model, Creation.created_at).all():
        by_model.setdefault(model, []).append(created_at)
    visitors = [row[0] for row in db.query(Visitor.created_at).all()]

    stats: dict[str, list[dict[str, object]]] = {"visitors": _monthly(visitors)}
    for model in CREATION_MODELS:
        stats[f"{model.lower()}s"] = _monthly(by_model[model])
    return stats
