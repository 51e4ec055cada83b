# tests/v1/test_chats.py
"""Tests for chat creation, convergence and membership."""

from fastapi import status

from quill.models import Chat, ChatManager, ChatProfile, Message
from quill.models.chat import CHAT_ROLE_OWNER


def _start(client, headers, profile_ids, body="hi"):
    return client.post("/api/v1/chats", json={"profiles": profile_ids, "body": body}, headers=headers)


def test_create_chat(client, user, other_user, auth_token) -> None:
    response = _start(client, auth_token, [other_user.profile.id])
    assert response.status_code == status.HTTP_201_CREATED
    chat = response.json()
    assert {p["profile_name"] for p in chat["profiles"]} == {"alice", "bob"}
    assert chat["managers"] == [{"profile_id": user.profile.id, "role": "OWNER"}]
    assert [m["body"] for m in chat["messages"]] == ["hi"]


def test_repeated_create_reuses_chat(client, db_session, other_user, auth_token) -> None:
    first = _start(client, auth_token, [other_user.profile.id], body="one").json()
    second = _start(client, auth_token, [other_user.profile.id], body="two").json()

    assert first["id"] == second["id"]
    assert [m["body"] for m in second["messages"]] == ["two", "one"]
    assert db_session.query(Chat).count() == 1
    assert db_session.query(Message).count() == 2


def test_including_self_in_profiles_is_harmless(client, user, other_user, auth_token) -> None:
    first = _start(client, auth_token, [other_user.profile.id]).json()
    second = _start(client, auth_token, [user.profile.id, other_user.profile.id]).json()
    assert first["id"] == second["id"]


def test_other_initiator_gets_own_chat(
    client, db_session, user, other_user, auth_token, other_auth_token
) -> None:
    _start(client, auth_token, [other_user.profile.id])
    _start(client, other_auth_token, [user.profile.id])
    assert db_session.query(Chat).count() == 2


def test_subset_chat_is_not_reused(client, db_session, other_user, create_user, auth_token) -> None:
    carol = create_user("carol")
    _start(client, auth_token, [other_user.profile.id])
    _start(client, auth_token, [other_user.profile.id, carol.profile.id])
    assert db_session.query(Chat).count() == 2


def test_unknown_profile_writes_nothing(client, db_session, other_user, auth_token) -> None:
    response = _start(client, auth_token, [other_user.profile.id, 9999])
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"]["message"] == "Invalid profile id"
    assert db_session.query(Chat).count() == 0
    assert db_session.query(Message).count() == 0


def _seed_chat(db_session, owner_id: int, member_id: int) -> Chat:
    chat = Chat()
    chat.managers = [ChatManager(profile_id=owner_id, role=CHAT_ROLE_OWNER)]
    chat.profiles = [
        ChatProfile(profile_id=owner_id, profile_name="alice"),
        ChatProfile(profile_id=member_id, profile_name="bob"),
    ]
    db_session.add(chat)
    return chat


def test_duplicate_chats_are_healed(client, db_session, user, other_user, auth_token) -> None:
    owner_id, member_id = user.profile.id, other_user.profile.id
    for _ in range(3):
        _seed_chat(db_session, owner_id, member_id)
    db_session.commit()

    response = _start(client, auth_token, [member_id], body="hello again")
    assert response.status_code == status.HTTP_201_CREATED

    db_session.expire_all()
    chats = db_session.query(Chat).all()
    assert [c.id for c in chats] == [response.json()["id"]]
    assert db_session.query(Message).count() == 1


def test_duplicate_with_messages_survives_healing(
    client, db_session, user, other_user, auth_token
) -> None:
    owner_id, member_id = user.profile.id, other_user.profile.id
    _seed_chat(db_session, owner_id, member_id)
    talked = _seed_chat(db_session, owner_id, member_id)
    _seed_chat(db_session, owner_id, member_id)
    db_session.flush()
    db_session.add(
        Message(chat_id=talked.id, profile_id=owner_id, profile_name="alice", body="old")
    )
    db_session.commit()
    talked_id = talked.id

    response = _start(client, auth_token, [member_id], body="new")
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["id"] == talked_id
    assert [m["body"] for m in response.json()["messages"]] == ["new", "old"]

    db_session.expire_all()
    assert [c.id for c in db_session.query(Chat).all()] == [talked_id]
    bodies = {m.body for m in db_session.query(Message).filter(Message.chat_id == talked_id)}
    assert bodies == {"old", "new"}


def test_list_chats_and_members(client, other_user, create_user, auth_token, other_auth_token) -> None:
    carol = create_user("carol")
    _start(client, auth_token, [other_user.profile.id])
    _start(client, auth_token, [carol.profile.id])

    mine = client.get("/api/v1/chats", headers=auth_token).json()
    assert len(mine) == 2
    with_bob = client.get("/api/v1/chats/members/bob", headers=auth_token).json()
    assert len(with_bob) == 1
    by_id = client.get(f"/api/v1/chats/members/{carol.profile.id}", headers=auth_token).json()
    assert len(by_id) == 1
    assert len(client.get("/api/v1/chats", headers=other_auth_token).json()) == 1

    missing = client.get("/api/v1/chats/members/nobody", headers=auth_token)
    assert missing.status_code == status.HTTP_404_NOT_FOUND


def test_non_member_cannot_read_chat(client, other_user, create_user, headers_for, auth_token) -> None:
    chat = _start(client, auth_token, [other_user.profile.id]).json()
    stranger = headers_for(create_user("mallory"))
    response = client.get(f"/api/v1/chats/{chat['id']}", headers=stranger)
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["error"]["message"] == "Chat not found"


def test_messages_and_seen(client, other_user, auth_token, other_auth_token) -> None:
    chat = _start(client, auth_token, [other_user.profile.id]).json()
    url = f"/api/v1/chats/{chat['id']}"

    reply = client.post(f"{url}/messages", json={"body": "hey"}, headers=other_auth_token)
    assert reply.status_code == status.HTTP_201_CREATED
    assert reply.json()["profile_name"] == "bob"

    messages = client.get(f"{url}/messages", headers=auth_token).json()
    assert [m["body"] for m in messages] == ["hey", "hi"]
    one = client.get(f"{url}/messages/{messages[0]['id']}", headers=auth_token)
    assert one.json()["body"] == "hey"
    assert client.get(f"{url}/messages/9999", headers=auth_token).status_code == 404

    seen = client.post(f"{url}/seen", headers=other_auth_token)
    assert seen.status_code == status.HTTP_200_OK
    assert isinstance(seen.json(), str)


def test_intangible_viewer_does_not_see_seen_dates(
    client, other_user, auth_token, other_auth_token
) -> None:
    chat = _start(client, auth_token, [other_user.profile.id]).json()
    client.post(f"/api/v1/chats/{chat['id']}/seen", headers=other_auth_token)
    client.patch("/api/v1/profiles", json={"tangible": False}, headers=auth_token)

    data = client.get(f"/api/v1/chats/{chat['id']}", headers=auth_token).json()
    seen = {p["profile_name"]: p["last_seen_at"] for p in data["profiles"]}
    assert seen["alice"] is not None
    assert seen["bob"] is None


def test_leaving_and_deleting_chat(client, db_session, other_user, auth_token, other_auth_token) -> None:
    chat = _start(client, auth_token, [other_user.profile.id]).json()
    url = f"/api/v1/chats/{chat['id']}"

    assert client.delete(url, headers=auth_token).status_code == status.HTTP_204_NO_CONTENT
    db_session.expire_all()
    assert db_session.query(ChatProfile).filter(ChatProfile.chat_id == chat["id"]).count() == 1
    assert client.get(url, headers=auth_token).status_code == 404

    client.delete(url, headers=other_auth_token)
    db_session.expire_all()
    assert db_session.get(Chat, chat["id"]) is None


def test_delete_unknown_chat_is_ignored(client, auth_token) -> None:
    assert client.delete("/api/v1/chats/424242", headers=auth_token).status_code == 204
