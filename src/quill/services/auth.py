"""Credential checks and token issuance."""

from __future__ import annotations

from sqlalchemy.orm import Session

from quill.core.errors import SignInError
from quill.core.security import bearer, create_access_token, verify_password
from quill.models import User


def authenticate(db: Session, username: str, password: str) -> User:
    """Return the user matching the credentials.

    Raises:
        SignInError: For an unknown username or a wrong password alike
    """
    user = db.query(User).filter(User.username == username.strip()).first()
    if user is None or not verify_password(password, user.password):
        raise SignInError()
    return user


def issue_token(user: User) -> str:
    """Return ``"Bearer <jwt>"`` for ``user``."""
    return bearer(create_access_token(user.id, extra_claims={"is_admin": user.is_admin}))
