# src/quill/services/pagination.py
"""Keyset pagination shared by list endpoints."""

from __future__ import annotations

from typing import TypeVar

from sqlalchemy import ColumnElement
from sqlalchemy.orm import Query

from quill.schemas.common import PageParams

T = TypeVar("T")


def paginate(query: Query[T], id_column: ColumnElement[int], page: PageParams) -> list[T]:
    """Apply cursor, order and limit from ``page`` and return the rows."""
    if page.sort == "asc":
        if page.cursor is not None:
            query = query.filter(id_column > page.cursor)
        query = query.order_by(id_column.asc())
    else:
        if page.cursor is not None:
            query = query.filter(id_column < page.cursor)
        query = query.order_by(id_column.desc())
    return query.limit(page.limit).all()
