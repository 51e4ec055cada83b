# tests/v1/test_stats.py
"""Tests for usage statistics."""

from fastapi import status

from quill.db.time import utcnow


def test_stats_require_auth(client) -> None:
    assert client.get("/api/v1/stats").status_code == status.HTTP_401_UNAUTHORIZED


def test_stats_count_creations_per_month(client, user, auth_token) -> None:
    client.post(
        "/api/v1/posts",
        json={"title": "T", "content": "C", "published": True, "tags": ["a", "b"]},
        headers=auth_token,
    )
    stats = client.get("/api/v1/stats", headers=auth_token).json()

    month = utcnow().strftime("%Y-%m-01")
    assert stats["users"] == [{"date": month, "count": 1}]
    assert stats["posts"] == [{"date": month, "count": 1}]
    assert stats["tags"] == [{"date": month, "count": 2}]
    assert stats["comments"] == []
    assert stats["visitors"] == []


def test_creations_outlive_deleted_entities(client, db_session, user, auth_token) -> None:
    post = client.post(
        "/api/v1/posts", json={"title": "T", "content": "C"}, headers=auth_token
    ).json()
    client.delete(f"/api/v1/posts/{post['id']}", headers=auth_token)
    stats = client.get("/api/v1/stats", headers=auth_token).json()
    assert stats["posts"][0]["count"] == 1
