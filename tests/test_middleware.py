# tests/test_middleware.py
"""Tests for the visitor registrar and purge trigger middlewares."""

from datetime import timedelta

from quill.core.settings import settings
from quill.db.time import utcnow
from quill.models import PurgeWatermark, User, Visitor
from quill.models.system import PURGE_WATERMARK_ID


def test_first_request_only_sets_browser_cookie(client, db_session) -> None:
    response = client.get("/health")
    assert "browser=1" in response.headers["set-cookie"]
    assert "visitor=" not in response.headers["set-cookie"]
    assert db_session.query(Visitor).count() == 0


def test_browser_without_visitor_cookie_is_counted(client, db_session) -> None:
    response = client.get("/health", headers={"Cookie": "browser=1"})
    cookies = response.headers.get_list("set-cookie")
    assert any(c.startswith("visitor=1") for c in cookies)
    assert any("SameSite=none" in c and "Secure" in c and "HttpOnly" in c for c in cookies)
    assert db_session.query(Visitor).count() == 1

    client.get("/health", headers={"Cookie": "browser=1; visitor=1"})
    assert db_session.query(Visitor).count() == 1


def test_auth_paths_and_writes_do_not_count_visitors(client, db_session, user) -> None:
    client.post(
        "/api/v1/auth/signin",
        json={"username": "alice", "password": "Secret#123"},
        headers={"Cookie": "browser=1"},
    )
    client.post("/api/v1/characters/finders", json={}, headers={"Cookie": "browser=1"})
    assert db_session.query(Visitor).count() == 0


def test_purge_runs_on_get_when_due(client, db_session, monkeypatch, create_user) -> None:
    monkeypatch.setattr(settings, "purge_enabled", True)
    long_ago = utcnow() - timedelta(days=2)
    old = create_user("old_timer")
    old.created_at = long_ago
    db_session.add(PurgeWatermark(id=PURGE_WATERMARK_ID, last_purge_at=long_ago, version=3))
    db_session.commit()

    client.get("/health")

    db_session.expire_all()
    assert db_session.query(User).filter(User.username == "old_timer").count() == 0
    mark = db_session.get(PurgeWatermark, PURGE_WATERMARK_ID)
    assert mark.version == 4


def test_purge_skipped_when_not_due(client, db_session, monkeypatch, create_user) -> None:
    monkeypatch.setattr(settings, "purge_enabled", True)
    old = create_user("old_timer")
    old.created_at = utcnow() - timedelta(days=2)
    db_session.add(PurgeWatermark(id=PURGE_WATERMARK_ID, last_purge_at=utcnow(), version=1))
    db_session.commit()

    client.get("/health")

    assert db_session.query(User).filter(User.username == "old_timer").count() == 1


def test_purge_not_triggered_by_plain_writes(client, db_session, monkeypatch, create_user) -> None:
    monkeypatch.setattr(settings, "purge_enabled", True)
    old = create_user("old_timer")
    old.created_at = utcnow() - timedelta(days=2)
    db_session.commit()

    client.post("/api/v1/characters/finders", json={})

    assert db_session.query(User).filter(User.username == "old_timer").count() == 1
    assert db_session.get(PurgeWatermark, PURGE_WATERMARK_ID) is None
