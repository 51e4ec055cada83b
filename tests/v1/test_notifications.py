# tests/v1/test_notifications.py
"""Tests for the notification inbox."""

from fastapi import status


def _notify_bob(client, other_user, auth_token) -> None:
    client.post(f"/api/v1/profiles/following/{other_user.profile.id}", headers=auth_token)


def test_inbox_and_seen(client, user, other_user, auth_token, other_auth_token) -> None:
    _notify_bob(client, other_user, auth_token)

    inbox = client.get("/api/v1/notifications", headers=other_auth_token).json()
    assert len(inbox) == 1
    assert inbox[0]["profile_name"] == "alice"
    assert inbox[0]["seen_at"] is None

    response = client.patch("/api/v1/notifications/seen", headers=other_auth_token)
    assert response.status_code == status.HTTP_204_NO_CONTENT
    one = client.get(f"/api/v1/notifications/{inbox[0]['id']}", headers=other_auth_token).json()
    assert one["seen_at"] is not None


def test_notification_of_someone_else_is_404(client, user, other_user, auth_token, other_auth_token) -> None:
    _notify_bob(client, other_user, auth_token)
    notification_id = client.get("/api/v1/notifications", headers=other_auth_token).json()[0]["id"]

    response = client.get(f"/api/v1/notifications/{notification_id}", headers=auth_token)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_delete_notification(client, user, other_user, auth_token, other_auth_token) -> None:
    _notify_bob(client, other_user, auth_token)
    notification_id = client.get("/api/v1/notifications", headers=other_auth_token).json()[0]["id"]

    response = client.delete(f"/api/v1/notifications/{notification_id}", headers=other_auth_token)
    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert client.get("/api/v1/notifications", headers=other_auth_token).json() == []
    # deleting again is not an error
    again = client.delete(f"/api/v1/notifications/{notification_id}", headers=other_auth_token)
    assert again.status_code == status.HTTP_204_NO_CONTENT


def test_notifications_require_auth(client) -> None:
    assert client.get("/api/v1/notifications").status_code == status.HTTP_401_UNAUTHORIZED
