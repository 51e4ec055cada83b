# src/quill/core/errors.py
"""Application error taxonomy and database error translation."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, NoResultFound


class AppError(Exception):
    """Base class for errors rendered as ``{"error": {"name", "message"}}``."""

    status_code = 500
    name = "AppError"

    def __init__(
        self,
        message: str = "something went wrong",
        status_code: int | None = None,
        name: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if name is not None:
            self.name = name

    def to_dict(self) -> dict[str, dict[str, str]]:
        return {"error": {"name": self.name, "message": self.message}}


class NotFoundError(AppError):
    """Resource missing or not visible to the requesting actor."""

    status_code = 404
    name = "NotFoundError"

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message)


class InvalidReferenceError(AppError):
    """A foreign-key shaped input does not resolve to an existing row."""

    status_code = 400
    name = "InvalidIdError"

    def __init__(self, message: str = "Invalid id") -> None:
        super().__init__(message)


class UniqueConstraintViolationError(AppError):
    status_code = 400
    name = "UniqueConstraintViolationError"

    def __init__(self, field: str = "value") -> None:
        super().__init__(f"{field} already exists")
        self.field = field


class SignInError(AppError):
    status_code = 400
    name = "SignInError"

    def __init__(self, message: str = "Incorrect username or password") -> None:
        super().__init__(message)


class UnauthorizedError(AppError):
    """Actor is anonymous or may not touch the resource; rendered with an empty body."""

    status_code = 401
    name = "UnauthorizedError"

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class InvalidImageError(AppError):
    status_code = 400
    name = "InvalidImageError"


class StorageError(AppError):
    """Object storage rejected an upload or delete."""

    status_code = 500
    name = "StorageError"


def _unique_field(exc: IntegrityError) -> str:
    # sqlite: "UNIQUE constraint failed: users.username"
    # postgres: 'Key (username)=(bob) already exists.'
    text = str(exc.orig)
    if "UNIQUE constraint failed:" in text:
        column = text.split("UNIQUE constraint failed:", 1)[1].split(",")[0].strip()
        return column.split(".")[-1]
    if "Key (" in text:
        return text.split("Key (", 1)[1].split(")", 1)[0]
    return "value"


@contextmanager
def handle_db_errors() -> Iterator[None]:
    """Translate low-level store errors raised inside the block into app errors."""
    try:
        yield
    except IntegrityError as exc:
        text = str(exc.orig).lower()
        if "foreign key" in text:
            raise InvalidReferenceError() from exc
        if "unique" in text or "duplicate key" in text:
            raise UniqueConstraintViolationError(_unique_field(exc)) from exc
        raise
    except NoResultFound as exc:
        raise NotFoundError() from exc
