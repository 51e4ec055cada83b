# tests/v1/test_posts.py
"""Tests for post, tag and comment endpoints."""

from fastapi import status

from quill.models import Comment, Image, Notification, Post, Tag

NEW_POST = {
    "title": "Hello",
    "content": "First words",
    "published": True,
    "tags": ["Python", "web", "python"],
}


def test_create_post_normalizes_tags(client, auth_token, user) -> None:
    response = client.post("/api/v1/posts", json=NEW_POST, headers=auth_token)
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["author"]["username"] == "alice"
    assert data["tags"] == ["python", "web"]
    assert data["comments_count"] == 0


def test_create_post_requires_auth(client) -> None:
    response = client.post("/api/v1/posts", json=NEW_POST)
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_create_post_too_many_tags(client, auth_token) -> None:
    payload = {**NEW_POST, "tags": [f"t{i}" for i in range(8)]}
    response = client.post("/api/v1/posts", json=payload, headers=auth_token)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_create_post_tag_with_space(client, auth_token) -> None:
    payload = {**NEW_POST, "tags": ["two words"]}
    response = client.post("/api/v1/posts", json=payload, headers=auth_token)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_create_post_unknown_image(client, auth_token) -> None:
    response = client.post("/api/v1/posts", json={**NEW_POST, "image_id": 999}, headers=auth_token)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"]["name"] == "InvalidIdError"


def test_published_post_notifies_followers(
    client, db_session, user, other_user, auth_token, other_auth_token
) -> None:
    client.post(f"/api/v1/profiles/following/{user.profile.id}", headers=other_auth_token)
    client.post("/api/v1/posts", json=NEW_POST, headers=auth_token)

    inbox = client.get("/api/v1/notifications", headers=other_auth_token).json()
    assert [n["header"] for n in inbox] == ["alice published a new post"]


def test_private_post_hidden_from_others(
    client, user, create_post, auth_token, other_auth_token
) -> None:
    post = create_post(user, title="Draft", published=False)

    assert client.get(f"/api/v1/posts/{post.id}", headers=auth_token).status_code == 200
    for headers in (other_auth_token, {}):
        response = client.get(f"/api/v1/posts/{post.id}", headers=headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"]["message"] == "Post not found"


def test_list_posts_only_shows_visible(
    client, user, other_user, create_post, auth_token, other_auth_token
) -> None:
    create_post(user, title="Public")
    create_post(user, title="Draft", published=False)

    mine = {p["title"] for p in client.get("/api/v1/posts", headers=auth_token).json()}
    theirs = {p["title"] for p in client.get("/api/v1/posts", headers=other_auth_token).json()}
    anonymous = client.get("/api/v1/posts/count").json()

    assert mine == {"Public", "Draft"}
    assert theirs == {"Public"}
    assert anonymous == 1


def test_list_posts_pagination_and_search(client, user, create_post) -> None:
    posts = [create_post(user, title=f"Post {i}") for i in range(5)]

    first = client.get("/api/v1/posts", params={"limit": 2}).json()
    assert [p["id"] for p in first] == [posts[4].id, posts[3].id]
    second = client.get("/api/v1/posts", params={"limit": 2, "cursor": first[-1]["id"]}).json()
    assert [p["id"] for p in second] == [posts[2].id, posts[1].id]

    ascending = client.get("/api/v1/posts", params={"sort": "asc", "limit": 1}).json()
    assert ascending[0]["id"] == posts[0].id

    found = client.get("/api/v1/posts", params={"q": "post 3"}).json()
    assert [p["id"] for p in found] == [posts[3].id]


def test_filter_posts_by_tags_and_author(client, user, other_user, auth_token, other_auth_token) -> None:
    client.post("/api/v1/posts", json={**NEW_POST, "tags": ["python"]}, headers=auth_token)
    client.post("/api/v1/posts", json={**NEW_POST, "tags": ["rust"]}, headers=other_auth_token)

    tagged = client.get("/api/v1/posts", params={"tags": "python,go"}).json()
    assert [p["author"]["username"] for p in tagged] == ["alice"]
    by_author = client.get("/api/v1/posts/count", params={"author": other_user.id}).json()
    assert by_author == 1


def test_update_post_replaces_tags(client, auth_token) -> None:
    post = client.post("/api/v1/posts", json=NEW_POST, headers=auth_token).json()
    payload = {**NEW_POST, "title": "Edited", "tags": ["web", "api"]}
    response = client.put(f"/api/v1/posts/{post['id']}", json=payload, headers=auth_token)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["title"] == "Edited"
    assert sorted(response.json()["tags"]) == ["api", "web"]


def test_update_post_of_other_user_is_401(client, other_user, create_post, auth_token) -> None:
    post = create_post(other_user)
    response = client.put(f"/api/v1/posts/{post.id}", json=NEW_POST, headers=auth_token)
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_admin_may_delete_any_post(client, db_session, other_user, create_post, admin_token) -> None:
    post = create_post(other_user)
    post_id = post.id
    response = client.delete(f"/api/v1/posts/{post_id}", headers=admin_token)
    assert response.status_code == status.HTTP_204_NO_CONTENT
    db_session.expire_all()
    assert db_session.get(Post, post_id) is None


def _image(db_session, owner, name: str) -> Image:
    image = Image(
        owner_id=owner.id,
        src=f"https://cdn.test/{name}",
        mimetype="image/png",
        size=10,
        width=1,
        height=1,
        storage_full_path=f"images/test/{name}",
        storage_id=name,
    )
    db_session.add(image)
    db_session.commit()
    return image


def test_delete_post_removes_exclusive_image(
    client, db_session, user, auth_token, storage
) -> None:
    image = _image(db_session, user, "solo.png")
    image_id = image.id
    post = client.post(
        "/api/v1/posts", json={**NEW_POST, "image_id": image_id}, headers=auth_token
    ).json()

    client.delete(f"/api/v1/posts/{post['id']}", headers=auth_token)

    db_session.expire_all()
    assert db_session.get(Image, image_id) is None
    assert storage.removed == ["images/test/solo.png"]


def test_delete_post_keeps_shared_image(client, db_session, user, auth_token, storage) -> None:
    image = _image(db_session, user, "shared.png")
    image_id = image.id
    first = client.post(
        "/api/v1/posts", json={**NEW_POST, "image_id": image_id}, headers=auth_token
    ).json()
    client.post("/api/v1/posts", json={**NEW_POST, "image_id": image_id}, headers=auth_token)

    client.delete(f"/api/v1/posts/{first['id']}", headers=auth_token)

    db_session.expire_all()
    assert db_session.get(Image, image_id) is not None
    assert storage.removed == []


def test_delete_post_keeps_image_owned_by_someone_else(
    client, db_session, user, other_user, auth_token, storage
) -> None:
    image = _image(db_session, other_user, "borrowed.png")
    image_id = image.id
    post = client.post(
        "/api/v1/posts", json={**NEW_POST, "image_id": image_id}, headers=auth_token
    ).json()

    client.delete(f"/api/v1/posts/{post['id']}", headers=auth_token)

    db_session.expire_all()
    assert db_session.get(Image, image_id) is not None


def test_tags_listing_and_own_tag_count(client, auth_token) -> None:
    client.post("/api/v1/posts", json=NEW_POST, headers=auth_token)
    client.post("/api/v1/posts", json={**NEW_POST, "tags": ["web", "css"]}, headers=auth_token)

    names = [t["name"] for t in client.get("/api/v1/posts/tags").json()]
    assert names == ["css", "python", "web"]
    assert [t["name"] for t in client.get("/api/v1/posts/tags", params={"tags": "py"}).json()] == [
        "python"
    ]
    assert client.get("/api/v1/posts/tags/count", headers=auth_token).json() == 3


def test_post_tags_of_private_post_are_hidden(client, auth_token) -> None:
    post = client.post(
        "/api/v1/posts", json={**NEW_POST, "published": False}, headers=auth_token
    ).json()
    assert client.get(f"/api/v1/posts/{post['id']}/tags", headers=auth_token).json() == [
        "python",
        "web",
    ]
    response = client.get(f"/api/v1/posts/{post['id']}/tags")
    assert response.status_code == status.HTTP_404_NOT_FOUND


# Comments

def test_comment_flow(client, db_session, user, other_user, create_post, auth_token, other_auth_token) -> None:
    post = create_post(user)
    response = client.post(
        f"/api/v1/posts/{post.id}/comments", json={"content": "  Nice!  "}, headers=other_auth_token
    )
    assert response.status_code == status.HTTP_200_OK
    comment = response.json()
    assert comment["content"] == "Nice!"

    assert client.get(f"/api/v1/posts/{post.id}/comments/count").json() == 1
    fetched = client.get(f"/api/v1/posts/{post.id}/comments/{comment['id']}").json()
    assert fetched["author"]["username"] == "bob"

    inbox = db_session.query(Notification).all()
    assert [n.header for n in inbox] == ["bob commented on your post"]


def test_blank_comment_rejected(client, user, create_post, auth_token) -> None:
    post = create_post(user)
    response = client.post(
        f"/api/v1/posts/{post.id}/comments", json={"content": "   "}, headers=auth_token
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_comments_of_private_post_are_hidden(client, user, create_post, auth_token) -> None:
    post = create_post(user, published=False)
    client.post(f"/api/v1/posts/{post.id}/comments", json={"content": "note"}, headers=auth_token)

    assert client.get("/api/v1/posts/comments/count", headers=auth_token).json() == 1
    assert client.get("/api/v1/posts/comments/count").json() == 0
    assert client.get(f"/api/v1/posts/{post.id}/comments").status_code == 404


def test_only_comment_author_may_edit(
    client, user, other_user, admin_token, create_post, auth_token, other_auth_token
) -> None:
    post = create_post(user)
    comment = client.post(
        f"/api/v1/posts/{post.id}/comments", json={"content": "bob's"}, headers=other_auth_token
    ).json()
    url = f"/api/v1/posts/{post.id}/comments/{comment['id']}"

    assert client.put(url, json={"content": "x"}, headers=auth_token).status_code == 401
    assert client.put(url, json={"content": "x"}, headers=admin_token).status_code == 401
    response = client.put(url, json={"content": "edited"}, headers=other_auth_token)
    assert response.json()["content"] == "edited"


def test_post_author_may_delete_comments(
    client, db_session, user, other_user, create_post, auth_token, other_auth_token
) -> None:
    post = create_post(user)
    comment = client.post(
        f"/api/v1/posts/{post.id}/comments", json={"content": "spam"}, headers=other_auth_token
    ).json()

    response = client.delete(
        f"/api/v1/posts/{post.id}/comments/{comment['id']}", headers=auth_token
    )
    assert response.status_code == status.HTTP_204_NO_CONTENT
    db_session.expire_all()
    assert db_session.get(Comment, comment["id"]) is None


def test_stranger_may_not_delete_comment(
    client, create_user, headers_for, user, create_post, auth_token
) -> None:
    post = create_post(user)
    comment = client.post(
        f"/api/v1/posts/{post.id}/comments", json={"content": "mine"}, headers=auth_token
    ).json()
    stranger = headers_for(create_user("mallory"))
    response = client.delete(f"/api/v1/posts/{post.id}/comments/{comment['id']}", headers=stranger)
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_tags_are_created_once(client, db_session, auth_token, other_auth_token) -> None:
    client.post("/api/v1/posts", json=NEW_POST, headers=auth_token)
    client.post("/api/v1/posts", json=NEW_POST, headers=other_auth_token)
    assert db_session.query(Tag).count() == 2
