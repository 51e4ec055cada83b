# tests/conftest.py
from __future__ import annotations

import io
import os
from collections.abc import Callable, Generator, Iterator
from dataclasses import dataclass, field

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from PIL import Image as PILImage
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ADMIN_SECRET", "test-admin-secret")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("PURGE_ENABLED", "false")

from quill.db.session import Base, enable_sqlite_foreign_keys  # noqa: E402
from quill.db.session import get_db as app_get_session  # noqa: E402
from quill.db.session import get_session_factory  # noqa: E402
from quill.main import app as fastapi_app  # noqa: E402
from quill.models import Post, User  # noqa: E402
from quill.services.auth import issue_token  # noqa: E402
from quill.services.storage import UploadedObject, get_storage  # noqa: E402
from quill.services.users import _new_user  # noqa: E402

TEST_DB_URL = "sqlite://"
PASSWORD = "Secret#123"


@dataclass
class FakeStorage:
    """In-memory object store recording what the app uploads and removes."""

    root_dir: str = "test"
    bucket: str = "images"
    objects: dict[str, bytes] = field(default_factory=dict)
    removed: list[str] = field(default_factory=list)

    async def upload(
        self, path: str, data: bytes, content_type: str, upsert: bool = False
    ) -> UploadedObject:
        full_path = f"{self.bucket}/{path}"
        self.objects[full_path] = data
        return UploadedObject(
            path=path,
            full_path=full_path,
            id=full_path,
            public_url=f"https://cdn.test/{path}",
        )

    async def remove(self, full_path: str) -> None:
        self.objects.pop(full_path, None)
        self.removed.append(full_path)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="session")
def session_factory(engine: Engine) -> Callable[[], Session]:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db_session(engine: Engine, session_factory: Callable[[], Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()
        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    session_factory: Callable[[], Session],
    storage: FakeStorage,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_storage] = lambda: storage
    try:
        yield
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


def make_user(db: Session, username: str, is_admin: bool = False, password: str = PASSWORD) -> User:
    user = _new_user(
        db,
        username=username,
        fullname=username.replace("_", " ").title(),
        password=password,
        is_admin=is_admin,
    )
    db.commit()
    db.refresh(user)
    return user


def make_post(db: Session, author: User, title: str = "A post", published: bool = True) -> Post:
    post = Post(author_id=author.id, title=title, content=f"{title} content", published=published)
    db.add(post)
    db.commit()
    db.refresh(post)
    return post


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": issue_token(user)}


def png_bytes(width: int = 4, height: int = 3) -> bytes:
    buffer = io.BytesIO()
    PILImage.new("RGB", (width, height), color=(200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture()
def user(db_session: Session) -> User:
    """Create and return a persisted regular user."""
    return make_user(db_session, "alice")


@pytest.fixture()
def other_user(db_session: Session) -> User:
    """Create and return a second regular user."""
    return make_user(db_session, "bob")


@pytest.fixture()
def admin(db_session: Session) -> User:
    return make_user(db_session, "root_admin", is_admin=True)


@pytest.fixture()
def auth_token(user: User) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    return auth_headers(user)


@pytest.fixture()
def other_auth_token(other_user: User) -> dict[str, str]:
    return auth_headers(other_user)


@pytest.fixture()
def admin_token(admin: User) -> dict[str, str]:
    return auth_headers(admin)


@pytest.fixture()
def create_user(db_session: Session) -> Callable[..., User]:
    def _create(username: str, is_admin: bool = False) -> User:
        return make_user(db_session, username, is_admin=is_admin)

    return _create


@pytest.fixture()
def create_post(db_session: Session) -> Callable[..., Post]:
    def _create(author: User, title: str = "A post", published: bool = True) -> Post:
        return make_post(db_session, author, title=title, published=published)

    return _create


@pytest.fixture()
def headers_for() -> Callable[[User], dict[str, str]]:
    return auth_headers


@pytest.fixture()
def png() -> bytes:
    return png_bytes()
